"""
Matplotlib scene viewer for interactive runs.

Draws the volume tree as wireframes and overlays primary trajectories,
either accumulated over the run or refreshed every event. Coordinates are
shown in metres.
"""

import logging
from typing import List

import matplotlib.pyplot as plt
import numpy as np

from muon_tomo.core.units import m
from muon_tomo.geometry.volume import Box, Tube, Volume

logger = logging.getLogger(__name__)

VOLUME_COLOURS = ['0.6', 'tab:orange', 'tab:blue', 'tab:green', 'tab:purple']
TRAJECTORY_COLOUR = 'tab:red'

# Backends that render to files only; no window is shown for these
NON_INTERACTIVE_BACKENDS = ('agg', 'cairo', 'pdf', 'pgf', 'ps', 'svg', 'template')


def box_edges(solid: Box, origin: np.ndarray) -> List[np.ndarray]:
    """The 12 edges of a box as (2, 3) arrays [m]."""
    hx, hy, hz = solid.hx, solid.hy, solid.hz
    corners = np.array([[sx * hx, sy * hy, sz * hz]
                        for sx in (-1, 1) for sy in (-1, 1) for sz in (-1, 1)])
    corners = (corners + origin) / m
    edges = []
    for i in range(8):
        for j in range(i + 1, 8):
            # Corners differing in exactly one coordinate sign share an edge
            if np.count_nonzero(corners[i] != corners[j]) == 1:
                edges.append(np.vstack([corners[i], corners[j]]))
    return edges


def tube_edges(solid: Tube, origin: np.ndarray, n_segments: int = 48) -> List[np.ndarray]:
    """Outline of a tube: top and bottom arcs plus four generatrices [m]."""
    phi = np.linspace(solid.start, solid.start + solid.sweep, n_segments + 1)
    edges = []
    for radius in (solid.rmin, solid.rmax):
        if radius <= 0:
            continue
        for z in (-solid.hz, solid.hz):
            arc = np.column_stack([radius * np.cos(phi), radius * np.sin(phi),
                                   np.full_like(phi, z)])
            edges.append((arc + origin) / m)
        for angle in np.linspace(solid.start, solid.start + solid.sweep, 4,
                                 endpoint=not solid.full_sweep):
            line = np.array([[radius * np.cos(angle), radius * np.sin(angle), -solid.hz],
                             [radius * np.cos(angle), radius * np.sin(angle), solid.hz]])
            edges.append((line + origin) / m)
    return edges


class SceneViewer:
    """
    3D wireframe view of the geometry and trajectories.

    Usage:
        viewer = SceneViewer()
        viewer.open()
        viewer.draw_volumes(world)
        viewer.add_trajectory(points)
        viewer.save('scene.png')
    """

    def __init__(self):
        self.figure = None
        self.axes = None
        self.auto_refresh = False
        self.accumulate = True
        self.interactive = False
        self._trajectory_lines = []

    @property
    def is_open(self) -> bool:
        return self.figure is not None

    def open(self):
        """Create the figure (the rendering surface)."""
        self.figure = plt.figure(figsize=(8, 8))
        self.axes = self.figure.add_subplot(projection='3d')
        self.axes.set_xlabel('x [m]')
        self.axes.set_ylabel('y [m]')
        self.axes.set_zlabel('z [m]')
        backend = plt.get_backend()
        self.interactive = backend.lower() not in NON_INTERACTIVE_BACKENDS
        if self.interactive:
            plt.ion()
            self.figure.show()
        else:
            logger.info("Backend %s cannot show a window; use /vis/viewer/export", backend)
        logger.info("Scene viewer opened (backend: %s)", backend)

    def attach(self, engine):
        """Register for end-of-event trajectory callbacks."""
        engine.end_of_event_actions.append(self.on_end_of_event)

    def draw_volumes(self, world: Volume):
        depths = {}
        for volume, parent, origin in world.walk():
            depth = 0 if parent is None else depths[parent.name] + 1
            depths[volume.name] = depth
            colour = VOLUME_COLOURS[depth % len(VOLUME_COLOURS)]

            if isinstance(volume.solid, Box):
                edges = box_edges(volume.solid, origin)
            elif isinstance(volume.solid, Tube):
                edges = tube_edges(volume.solid, origin)
            else:
                logger.warning("Cannot draw solid of volume '%s'", volume.name)
                continue
            for edge in edges:
                self.axes.plot(edge[:, 0], edge[:, 1], edge[:, 2], color=colour, linewidth=0.8)

        half = np.asarray(world.solid.half_extents()) / m
        self.axes.set_xlim(-half[0], half[0])
        self.axes.set_ylim(-half[1], half[1])
        self.axes.set_zlim(-half[2], half[2])
        if self.auto_refresh:
            self.refresh()

    def add_trajectory(self, points: np.ndarray):
        if len(points) < 2:
            return
        points = np.asarray(points) / m
        (line,) = self.axes.plot(points[:, 0], points[:, 1], points[:, 2],
                                 color=TRAJECTORY_COLOUR, linewidth=0.6)
        self._trajectory_lines.append(line)

    def clear_trajectories(self):
        for line in self._trajectory_lines:
            line.remove()
        self._trajectory_lines = []

    @property
    def n_trajectories(self) -> int:
        return len(self._trajectory_lines)

    def on_end_of_event(self, event_id: int, trajectory: np.ndarray):
        if not self.accumulate:
            self.clear_trajectories()
        self.add_trajectory(trajectory)
        if self.auto_refresh:
            self.refresh()

    def refresh(self):
        self.figure.canvas.draw_idle()
        self.figure.canvas.flush_events()
        if self.interactive:
            # Lets the GUI event loop process the redraw
            plt.pause(0.001)

    def save(self, path):
        self.figure.savefig(path, dpi=150)
        logger.info("Scene saved: %s", path)

    def close(self):
        if self.figure is not None:
            plt.close(self.figure)
            self.figure = None
            self.axes = None
