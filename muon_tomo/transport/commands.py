"""
Textual command interpreter of the transport engine.

Commands use the slash-separated Geant4 UI syntax, for example:

    /vis/open
    /vis/drawVolume
    /vis/viewer/set/autoRefresh true
    /vis/scene/add/trajectories smooth
    /vis/scene/endOfEventAction accumulate
    /run/beamOn 100
"""

import logging
import shlex
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)

EXIT_COMMANDS = ('exit', 'quit')

_TRUE = ('true', '1', 'on', 'yes')
_FALSE = ('false', '0', 'off', 'no')


class CommandError(ValueError):
    """A command could not be executed."""


def _parse_bool(args: List[str], default: bool = True) -> bool:
    if not args:
        return default
    value = args[0].lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise CommandError(f"Expected a boolean, got '{args[0]}'")


def _parse_int(args: List[str], name: str) -> int:
    if not args:
        raise CommandError(f"Missing parameter <{name}>")
    try:
        return int(args[0])
    except ValueError:
        raise CommandError(f"Parameter <{name}> must be an integer, got '{args[0]}'") from None


class CommandInterpreter:
    """
    Dispatches command strings to an engine and its scene viewer.

    Usage:
        interpreter = CommandInterpreter(engine)
        interpreter.apply('/vis/open')
        interpreter.session(sys.stdin)
    """

    def __init__(self, engine):
        self.engine = engine
        self.history: List[str] = []
        self._commands: Dict[str, Callable[[List[str]], None]] = {
            '/control/verbose': self._verbose,
            '/run/verbose': self._verbose,
            '/tracking/verbose': self._tracking_verbose,
            '/run/beamOn': self._beam_on,
            '/vis/open': self._vis_open,
            '/vis/drawVolume': self._draw_volume,
            '/vis/viewer/set/autoRefresh': self._auto_refresh,
            '/vis/viewer/flush': self._flush,
            '/vis/viewer/export': self._export,
            '/vis/scene/add/trajectories': self._add_trajectories,
            '/vis/scene/endOfEventAction': self._end_of_event_action,
            'help': self._help,
        }

    @property
    def commands(self):
        return sorted(self._commands)

    def apply(self, line: str) -> bool:
        """
        Execute one command.

        Returns:
            True if the command was executed, False if it was unknown or
            rejected (a warning is logged)
        """
        try:
            tokens = shlex.split(line, comments=True)
        except ValueError as exc:
            logger.warning("Cannot parse command '%s': %s", line, exc)
            return False
        if not tokens:
            return True

        path, args = tokens[0], tokens[1:]
        handler = self._commands.get(path)
        if handler is None:
            logger.warning("Command <%s> not found", path)
            return False

        try:
            handler(args)
        except CommandError as exc:
            logger.warning("%s: %s", path, exc)
            return False

        self.history.append(line.strip())
        return True

    def session(self, stream) -> int:
        """
        Execute commands line by line until 'exit' or end of input.

        Returns:
            Number of commands executed
        """
        executed = 0
        for line in stream:
            command = line.strip()
            if not command or command.startswith('#'):
                continue
            if command.lower() in EXIT_COMMANDS:
                break
            if self.apply(command):
                executed += 1
        return executed

    # ------------------------------------------------------------------

    def _viewer(self):
        if self.engine.viewer is None:
            raise CommandError("no viewer open, use /vis/open first")
        return self.engine.viewer

    def _verbose(self, args):
        self.engine.verbose = _parse_int(args, 'level')

    def _tracking_verbose(self, args):
        self.engine.tracking_verbose = _parse_int(args, 'level')

    def _beam_on(self, args):
        n_events = _parse_int(args, 'numberOfEvent')
        if n_events < 0:
            raise CommandError("numberOfEvent must not be negative")
        if not self.engine.initialized:
            raise CommandError("run is not initialised")
        self.engine.beam_on(n_events)

    def _vis_open(self, args):
        from muon_tomo.transport.visualization import SceneViewer

        if self.engine.viewer is None:
            viewer = SceneViewer()
            viewer.open()
            viewer.attach(self.engine)
            self.engine.viewer = viewer

    def _draw_volume(self, args):
        if self.engine.world is None:
            raise CommandError("geometry is not initialised")
        self._viewer().draw_volumes(self.engine.world)

    def _auto_refresh(self, args):
        self._viewer().auto_refresh = _parse_bool(args)

    def _flush(self, args):
        self._viewer().refresh()

    def _export(self, args):
        if not args:
            raise CommandError("Missing parameter <fileName>")
        self._viewer().save(args[0])

    def _add_trajectories(self, args):
        self._viewer()
        self.engine.store_trajectories = True

    def _end_of_event_action(self, args):
        mode = args[0] if args else 'refresh'
        if mode not in ('accumulate', 'refresh'):
            raise CommandError(f"Unknown end-of-event action '{mode}'")
        self._viewer().accumulate = mode == 'accumulate'

    def _help(self, args):
        print("Available commands:")
        for path in self.commands:
            print(f"  {path}")
