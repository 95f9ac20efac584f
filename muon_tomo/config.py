"""
Run configuration.

A run is described by a YAML file whose sections map onto the dataclasses
below. Lengths are given in metres and energies in GeV; conversion to
internal units happens in the components that consume the values.

Example:
    physics_list: FTFP_BERT
    events: 1000
    geometry:
      world_half_size: 5.0
      block_half_extents: [1.0, 1.0, 1.0]
      defect: {kind: centered-cylinder, radius: 0.1, height: 1.0}
    source:
      kind: uniform-area
      position: [0.0, 0.0, 2.5]
    output:
      path: deposits.txt
      energy_unit: keV
"""

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Optional, Tuple, Union

import yaml

from muon_tomo.errors import ConfigurationError

DEFECT_KINDS = ('none', 'centered-cylinder', 'off-axis-cylinder')
SOURCE_KINDS = ('fixed-point', 'uniform-area')


def _vector(value, name: str, size: int = 3) -> Tuple[float, ...]:
    try:
        vector = tuple(float(v) for v in value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"'{name}' must be a list of {size} numbers, got {value!r}") from None
    if len(vector) != size:
        raise ConfigurationError(f"'{name}' must have {size} components, got {len(vector)}")
    return vector


def _positive(value, name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"'{name}' must be a number, got {value!r}") from None
    if not number > 0:
        raise ConfigurationError(f"'{name}' must be positive, got {number}")
    return number


def _from_mapping(cls, data, section: str):
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigurationError(f"Section '{section}' must be a mapping")
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigurationError(f"Unknown keys in '{section}': {sorted(unknown)}")
    return cls(**data)


@dataclass
class DefectConfig:
    """Cylindrical cavity inside the detector block (axis along z)."""

    kind: str = 'none'
    radius: float = 0.1                                   # [m]
    height: float = 1.0                                   # [m]
    offset: Tuple[float, float, float] = (0.0, 0.0, 0.0)  # [m], off-axis only
    material: str = 'G4_Galactic'

    def __post_init__(self):
        if self.kind not in DEFECT_KINDS:
            raise ConfigurationError(f"Unknown defect kind '{self.kind}'. "
                                     f"Available: {list(DEFECT_KINDS)}")
        self.radius = _positive(self.radius, 'defect.radius')
        self.height = _positive(self.height, 'defect.height')
        self.offset = _vector(self.offset, 'defect.offset')

    @property
    def enabled(self) -> bool:
        return self.kind != 'none'


@dataclass
class GeometryConfig:
    """World cube, detector block and optional defect."""

    world_half_size: float = 5.0                                      # [m]
    world_material: str = 'G4_AIR'
    block_half_extents: Tuple[float, float, float] = (1.0, 1.0, 1.0)  # [m]
    block_material: str = 'G4_CONCRETE'
    defect: DefectConfig = field(default_factory=DefectConfig)

    def __post_init__(self):
        self.world_half_size = _positive(self.world_half_size, 'geometry.world_half_size')
        self.block_half_extents = _vector(self.block_half_extents, 'geometry.block_half_extents')
        for value in self.block_half_extents:
            _positive(value, 'geometry.block_half_extents')
        if isinstance(self.defect, dict):
            self.defect = _from_mapping(DefectConfig, self.defect, 'geometry.defect')
        elif self.defect is None:
            self.defect = DefectConfig()


@dataclass
class SourceConfig:
    """
    Primary source.

    For 'uniform-area' the x and y coordinates are drawn from x_range and
    y_range; the height is position[2].
    """

    kind: str = 'fixed-point'
    particle: str = 'mu-'
    energy: float = 4.0                                       # [GeV]
    position: Tuple[float, float, float] = (0.0, 0.0, 2.0)    # [m]
    direction: Tuple[float, float, float] = (0.0, 0.0, -1.0)
    x_range: Tuple[float, float] = (-1.0, 1.0)                # [m]
    y_range: Tuple[float, float] = (-1.0, 1.0)                # [m]
    seed: Optional[int] = None

    def __post_init__(self):
        if self.kind not in SOURCE_KINDS:
            raise ConfigurationError(f"Unknown source kind '{self.kind}'. "
                                     f"Available: {list(SOURCE_KINDS)}")
        self.energy = _positive(self.energy, 'source.energy')
        self.position = _vector(self.position, 'source.position')
        self.direction = _vector(self.direction, 'source.direction')
        self.x_range = _vector(self.x_range, 'source.x_range', size=2)
        self.y_range = _vector(self.y_range, 'source.y_range', size=2)


@dataclass
class OutputConfig:
    """Deposit log settings."""

    path: str = 'deposits.txt'
    # Preset name ('full', 'positions') or column names in order
    fields: Union[str, Tuple[str, ...]] = ('TrackID', 'PosX', 'PosY', 'PosZ', 'Energy')
    energy_unit: str = 'GeV'
    flush_every_row: bool = True

    def __post_init__(self):
        if not isinstance(self.fields, str):
            self.fields = tuple(self.fields)
        self.path = str(self.path)


@dataclass
class RunConfig:
    """Complete description of a run."""

    physics_list: str = 'FTFP_BERT'
    events: int = 1000
    interactive: bool = False
    geometry: GeometryConfig = field(default_factory=GeometryConfig)
    source: SourceConfig = field(default_factory=SourceConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def __post_init__(self):
        if isinstance(self.events, bool) or not isinstance(self.events, int) or self.events < 0:
            raise ConfigurationError(f"'events' must be a non-negative integer, got {self.events!r}")

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'RunConfig':
        """Build a configuration from a parsed YAML mapping."""
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown top-level keys: {sorted(unknown)}")
        try:
            data['geometry'] = _from_mapping(GeometryConfig, data.get('geometry'), 'geometry')
            data['source'] = _from_mapping(SourceConfig, data.get('source'), 'source')
            data['output'] = _from_mapping(OutputConfig, data.get('output'), 'output')
        except TypeError as exc:
            raise ConfigurationError(str(exc)) from exc
        return cls(**data)

    def to_dict(self) -> dict:
        # YAML-friendly lists instead of tuples
        return _listify(asdict(self))


def _listify(value):
    if isinstance(value, dict):
        return {k: _listify(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_listify(v) for v in value]
    return value


def load_config(path: Union[str, Path]) -> RunConfig:
    """
    Load a run configuration from a YAML file.

    Raises:
        ConfigurationError: if the file is missing, unparsable or invalid
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigurationError(f"Cannot read configuration file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Malformed configuration file {path}: {exc}") from exc

    if data is not None and not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")
    return RunConfig.from_dict(data)


def save_config(config: RunConfig, path: Union[str, Path]) -> Path:
    """Write a configuration as YAML."""
    path = Path(path)
    with open(path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(config.to_dict(), f, sort_keys=False)
    return path
