"""Transport module: reference engine, command interpreter and viewer."""

from muon_tomo.transport.commands import CommandInterpreter
from muon_tomo.transport.engine import TransportEngine

__all__ = ["CommandInterpreter", "TransportEngine"]
