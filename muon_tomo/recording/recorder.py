"""
Step recorder writing the energy-deposit log.

One tab-separated text file per run: a header line naming the columns,
then one row per step that deposited energy (strictly positive), in the
order the engine delivers steps. Positions are the pre-step positions in
the world frame, in metres.
"""

import logging
from pathlib import Path
from typing import Sequence, Union

from muon_tomo.config import OutputConfig
from muon_tomo.core import units
from muon_tomo.core.particle import StepEvent
from muon_tomo.core.units import m
from muon_tomo.errors import ConfigurationError, ResourceError

logger = logging.getLogger(__name__)

# Column name -> header label; energy label is completed with the unit
FIELD_HEADERS = {
    'TrackID': 'TrackID',
    'PosX': 'PosX(m)',
    'PosY': 'PosY(m)',
    'PosZ': 'PosZ(m)',
    'Energy': 'Energy({unit})',
}

FIELD_PRESETS = {
    'full': ('TrackID', 'PosX', 'PosY', 'PosZ', 'Energy'),
    'positions': ('PosX', 'PosY', 'PosZ', 'Energy'),
}

LOG_ENERGY_UNITS = ('GeV', 'keV')


def resolve_fields(fields: Union[str, Sequence[str]]):
    """
    Normalise a field selection.

    Parameters:
        fields: Preset name ('full', 'positions') or sequence of column names

    Returns:
        Tuple of column names
    """
    if isinstance(fields, str):
        if fields in FIELD_PRESETS:
            return FIELD_PRESETS[fields]
        fields = (fields,)

    fields = tuple(fields)
    if not fields:
        raise ConfigurationError("At least one output field is required")
    for name in fields:
        if name not in FIELD_HEADERS:
            raise ConfigurationError(f"Unknown output field '{name}'. "
                                     f"Available: {list(FIELD_HEADERS)}")
    if len(set(fields)) != len(fields):
        raise ConfigurationError(f"Duplicate output fields in {fields}")
    return fields


class StepRecorder:
    """
    Stepping action that appends qualifying steps to the deposit log.

    The file is opened (truncated) on construction and the header written
    at once. Each row is flushed as it is written unless
    ``flush_every_row`` is disabled.

    Usage:
        with StepRecorder('deposits.txt', energy_unit='keV') as recorder:
            engine.set_stepping_action(recorder)
            engine.beam_on(1000)
    """

    def __init__(self, path: Union[str, Path], fields: Union[str, Sequence[str]] = 'full',
                 energy_unit: str = 'GeV', flush_every_row: bool = True):
        """
        Parameters:
            path: Output file
            fields: Preset name or sequence of column names
            energy_unit: 'GeV' or 'keV'
            flush_every_row: Flush the file after every row

        Raises:
            ConfigurationError: invalid field selection or energy unit
            ResourceError: the file cannot be opened for writing
        """
        if energy_unit not in LOG_ENERGY_UNITS:
            raise ConfigurationError(f"Unsupported log energy unit '{energy_unit}'. "
                                     f"Available: {list(LOG_ENERGY_UNITS)}")
        self.fields = resolve_fields(fields)
        self.energy_unit = energy_unit
        self._energy_scale = units.energy_unit(energy_unit)
        self.flush_every_row = flush_every_row
        self.path = Path(path)

        self.rows_written = 0
        self.steps_seen = 0
        self.total_deposit = 0.0   # [MeV]

        try:
            self._file = open(self.path, 'w', encoding='utf-8')
        except OSError as exc:
            raise ResourceError(f"Cannot open output log {self.path}: {exc}") from exc

        self._file.write("\t".join(self.header) + "\n")
        self._file.flush()
        logger.info("Deposit log opened: %s (%s)", self.path, ", ".join(self.header))

    @classmethod
    def from_config(cls, config: OutputConfig) -> 'StepRecorder':
        return cls(config.path, fields=config.fields, energy_unit=config.energy_unit,
                   flush_every_row=config.flush_every_row)

    @property
    def header(self):
        return [FIELD_HEADERS[name].format(unit=self.energy_unit) for name in self.fields]

    @property
    def closed(self) -> bool:
        return self._file.closed

    def format_row(self, step: StepEvent) -> str:
        """Render one log line (without the newline)."""
        x, y, z = step.pre_position
        values = {
            'TrackID': str(int(step.track_id)),
            'PosX': repr(float(x / m)),
            'PosY': repr(float(y / m)),
            'PosZ': repr(float(z / m)),
            'Energy': repr(float(step.energy_deposit / self._energy_scale)),
        }
        return "\t".join(values[name] for name in self.fields)

    def on_step(self, step: StepEvent) -> None:
        """Append a row if the step deposited energy."""
        self.steps_seen += 1
        if not step.energy_deposit > 0:
            return

        self._file.write(self.format_row(step) + "\n")
        if self.flush_every_row:
            self._file.flush()
        self.rows_written += 1
        self.total_deposit += step.energy_deposit

    def close(self) -> None:
        """Flush and close the log; further calls do nothing."""
        if self._file.closed:
            return
        self._file.flush()
        self._file.close()
        logger.info("Deposit log closed: %s (%d rows, %d steps seen)",
                    self.path, self.rows_written, self.steps_seen)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
