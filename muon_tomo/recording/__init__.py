"""Recording module: energy-deposit log."""

from muon_tomo.recording.recorder import FIELD_HEADERS, FIELD_PRESETS, StepRecorder

__all__ = ["FIELD_HEADERS", "FIELD_PRESETS", "StepRecorder"]
