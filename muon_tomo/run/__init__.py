from muon_tomo.run.controller import RunController, RunState, RunSummary

__all__ = ["RunController", "RunState", "RunSummary"]
