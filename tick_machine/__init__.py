"""tick-machine - Edge-validated finite state machines with enter/exit callbacks."""
from __future__ import annotations

from tick_machine.config import MachineConfig
from tick_machine.definition import MachineDefinition, parse_definition
from tick_machine.diagnostics import DiagnosticFormatter, Level, setup_logger
from tick_machine.machine import Machine, make_machine
from tick_machine.types import (
    AmbiguousNext,
    ConfigurationError,
    Edge,
    InvalidArgument,
    InvalidTransition,
    MachineError,
    SnapshotError,
    StateDef,
    StateId,
    TransitionInProgress,
)

__all__ = [
    "Machine",
    "make_machine",
    "MachineConfig",
    "MachineDefinition",
    "parse_definition",
    "Edge",
    "StateDef",
    "StateId",
    "Level",
    "DiagnosticFormatter",
    "setup_logger",
    "MachineError",
    "ConfigurationError",
    "InvalidArgument",
    "InvalidTransition",
    "AmbiguousNext",
    "TransitionInProgress",
    "SnapshotError",
]
