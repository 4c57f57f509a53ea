"""Core data types and errors for edge-driven state machines."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from tick_machine.machine import Machine

StateId = str

# Enter/exit callback signature: (machine, *args, **kwargs) -> None.
Callback = Callable[..., None]


class MachineError(Exception):
    """Base class for all state machine errors."""


class ConfigurationError(MachineError, ValueError):
    """Raised when a machine definition is malformed."""


class InvalidArgument(MachineError, TypeError):
    """Raised when a transition target is not a state name."""

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(
            f"Transition target must be a non-empty string naming a state, got {value!r}"
        )


class InvalidTransition(MachineError):
    """Raised when no edge leads from the current state to the target."""

    def __init__(self, target: StateId, current: StateId | None) -> None:
        self.target = target
        self.current = current
        super().__init__(
            f"State '{target}' is not a valid transition for current state '{current}'"
        )


class AmbiguousNext(MachineError):
    """Raised when next() has no single deterministic target."""

    def __init__(self, current: StateId | None) -> None:
        self.current = current
        if current is None:
            message = "Cannot use next() before the machine has a current state"
        else:
            message = (
                f"Cannot use next() from state '{current}': "
                "it needs exactly one outgoing single-target edge"
            )
        super().__init__(message)


class TransitionInProgress(MachineError):
    """Raised when a callback tries to drive its own machine mid-transition."""


class SnapshotError(MachineError):
    """Raised on restore failures (version mismatch, malformed state)."""


def is_state_id(value: Any) -> bool:
    return isinstance(value, str) and value != ""


@dataclass(frozen=True, slots=True)
class Edge:
    """Allowed transitions out of one source state.

    ``fanout`` records the shape the edge was declared with: ``False`` for a
    single target, ``True`` for a collection of targets (even a collection of
    one). Only single-target edges are eligible for ``next()``.
    """

    source: StateId
    targets: tuple[StateId, ...]
    fanout: bool = False

    def __post_init__(self) -> None:
        if not is_state_id(self.source):
            raise ConfigurationError(
                f"Edge source must be a non-empty string, got {self.source!r}"
            )
        if not self.targets:
            raise ConfigurationError(f"Edge from '{self.source}' has no targets")
        for target in self.targets:
            if not is_state_id(target):
                raise ConfigurationError(
                    f"Edge from '{self.source}' has invalid target {target!r}"
                )
        if not self.fanout and len(self.targets) != 1:
            raise ConfigurationError(
                f"Single-target edge from '{self.source}' has {len(self.targets)} targets"
            )

    @classmethod
    def single(cls, source: StateId, target: StateId) -> Edge:
        return cls(source, (target,), fanout=False)

    @classmethod
    def many(cls, source: StateId, *targets: StateId) -> Edge:
        return cls(source, tuple(targets), fanout=True)

    def leads_to(self, state: StateId) -> bool:
        return state in self.targets


class StateDef:
    """Per-state callback slots.

    ``onenter`` and ``onexit`` may be reassigned at any time, including from
    inside a running callback. Once a machine binds the record,
    ``transition()`` forwards to that machine with this state as the target.
    """

    def __init__(
        self,
        onenter: Callback | None = None,
        onexit: Callback | None = None,
    ) -> None:
        self.onenter = onenter
        self.onexit = onexit
        self._name: StateId | None = None
        self._machine: Machine | None = None

    @property
    def name(self) -> StateId | None:
        return self._name

    @property
    def machine(self) -> Machine | None:
        return self._machine

    def bind(self, name: StateId, machine: Machine) -> None:
        self._name = name
        self._machine = machine

    def transition(self, *args: Any, **kwargs: Any) -> bool:
        """Transition the owning machine into this state."""
        if self._machine is None or self._name is None:
            raise MachineError("StateDef is not bound to a machine")
        return self._machine._transition(self._name, args, kwargs)

    def __repr__(self) -> str:
        return (
            f"StateDef(name={self._name!r}, onenter={self.onenter!r}, "
            f"onexit={self.onexit!r})"
        )
