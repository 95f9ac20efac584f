"""
Exception hierarchy for muon_tomo.

Library code raises these; the command line front-end turns them into a
diagnostic and a non-zero exit code.
"""


class MuonTomoError(Exception):
    """Base class for all muon_tomo errors."""


class ConfigurationError(MuonTomoError):
    """
    Invalid run configuration.

    Raised at initialisation time for unknown material names, unknown
    physics lists, geometry containment violations and malformed
    configuration values. A run never starts after this error.
    """


class ResourceError(MuonTomoError):
    """The output log could not be opened for writing."""


class RunStateError(MuonTomoError):
    """A run controller operation was invoked in the wrong state."""
