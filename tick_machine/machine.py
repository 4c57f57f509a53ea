"""Machine - edge-validated transitions with enter/exit callbacks."""
from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from tick_machine.config import MachineConfig
from tick_machine.definition import collect_states, parse_definition
from tick_machine.diagnostics import Level, report
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
    is_state_id,
)

_SNAPSHOT_VERSION = 1

# Frames between report() and the code driving the machine.
_NEXT_DEPTH = 3
_TRANSITION_DEPTH = 4


class Machine:
    """Finite state machine driven by a fixed list of edges.

    Every instance owns its current state, its history and the transient
    ``from``/``to`` pair visible to callbacks while a transition runs.
    Callbacks are invoked as ``callback(machine, *args, **kwargs)`` with the
    arguments given to ``transition()`` or ``next()``.
    """

    def __init__(
        self,
        edges: Iterable[Edge],
        initial: StateId | None = None,
        states: Mapping[StateId, StateDef] | None = None,
        config: MachineConfig | None = None,
    ) -> None:
        self._edges: tuple[Edge, ...] = tuple(edges)
        if not self._edges:
            raise ConfigurationError("Machine requires at least one edge")
        if initial is not None and not is_state_id(initial):
            raise ConfigurationError(
                f"Initial state must be a non-empty string, got {initial!r}"
            )
        self._config = config if config is not None else MachineConfig()

        supplied = dict(states) if states else {}
        self._states: dict[StateId, StateDef] = {}
        for name in collect_states(self._edges):
            slot = supplied.pop(name, None) or StateDef()
            if slot.machine is not None:
                raise ConfigurationError(
                    f"StateDef for '{name}' already belongs to another machine; "
                    "each machine needs its own records"
                )
            self._states[name] = slot
        if supplied:
            raise ConfigurationError(
                f"Callback records for states missing from edges: {sorted(supplied)}"
            )
        for name, slot in self._states.items():
            slot.bind(name, self)

        self._current: StateId | None = initial
        self._history: deque[StateId] = deque(maxlen=self._config.history_limit)
        self._from: StateId | None = None
        self._to: StateId | None = None
        self._pending: StateId | None = None

    # --- Definition ---

    @property
    def config(self) -> MachineConfig:
        return self._config

    @property
    def edges(self) -> tuple[Edge, ...]:
        return self._edges

    @property
    def states(self) -> tuple[StateId, ...]:
        return tuple(self._states)

    def __getitem__(self, name: StateId) -> StateDef:
        return self._states[name]

    def __contains__(self, name: object) -> bool:
        return name in self._states

    def __iter__(self) -> Iterator[StateId]:
        return iter(self._states)

    # --- Queries ---

    def current(self) -> StateId | None:
        return self._current

    def last(self, index: int = 0) -> StateId | None:
        """Return the ``index``-th most recently departed state (0 = latest)."""
        if index < 0 or index >= len(self._history):
            return None
        return self._history[-1 - index]

    def history(self) -> tuple[StateId, ...]:
        return tuple(self._history)

    def from_(self) -> StateId | None:
        """Source state of the transition in progress, None outside callbacks."""
        return self._from

    def to(self) -> StateId | None:
        """Target state of the transition in progress, None outside callbacks."""
        return self._to

    def next_candidate(self) -> StateId | None:
        """The single state next() would move to, or None if there is no unique one."""
        if self._current is None:
            return None
        outgoing = [edge for edge in self._edges if edge.source == self._current]
        if len(outgoing) != 1 or outgoing[0].fanout:
            return None
        return outgoing[0].targets[0]

    def can_transition(self, target: Any) -> bool:
        if not is_state_id(target):
            return False
        if self._current is None:
            return True
        return self._find_edge(target) is not None

    # --- Transitions ---

    def transition(self, target: StateId, *args: Any, **kwargs: Any) -> bool:
        """Move to ``target`` if an edge allows it. Returns True on success."""
        return self._transition(target, args, kwargs)

    def next(self, *args: Any, **kwargs: Any) -> bool:
        """Follow the only outgoing edge of the current state."""
        self._check_idle()
        target = self.next_candidate()
        if target is None:
            return self._reject(AmbiguousNext(self._current), Level.WARN, _NEXT_DEPTH)

        self._update_state(target, args, kwargs, _NEXT_DEPTH)
        return True

    def _transition(self, target: Any, args: tuple, kwargs: dict) -> bool:
        # Shared by transition() and StateDef.transition(); both sit exactly
        # one frame above this one.
        self._check_idle()
        if not is_state_id(target):
            return self._reject(InvalidArgument(target), Level.ERROR, _TRANSITION_DEPTH)

        if self._current is None:
            self._bootstrap(target, args, kwargs)
            return True

        if self._find_edge(target) is None:
            return self._reject(
                InvalidTransition(target, self._current), Level.ERROR, _TRANSITION_DEPTH
            )

        self._update_state(target, args, kwargs, _TRANSITION_DEPTH)
        return True

    def _find_edge(self, target: StateId) -> Edge | None:
        # First matching edge in declaration order wins.
        for edge in self._edges:
            if edge.source == self._current and edge.leads_to(target):
                return edge
        return None

    def _check_idle(self) -> None:
        if self._pending is not None:
            raise TransitionInProgress(
                "Cannot drive the machine from one of its own callbacks "
                f"while a transition to '{self._pending}' is in progress"
            )

    def _reject(self, error: MachineError, level: Level, stacklevel: int) -> bool:
        if self._config.strict:
            raise error
        report(level, "%s", error, stacklevel=stacklevel)
        return False

    def _bootstrap(self, target: StateId, args: tuple, kwargs: dict) -> None:
        slot = self._states.get(target)
        onenter = slot.onenter if slot is not None else None

        self._pending = target
        try:
            if onenter is not None:
                onenter(self, *args, **kwargs)
            self._current = target
        finally:
            self._pending = None
        report(Level.TRACE, "Entered initial state '%s'", target, stacklevel=_TRANSITION_DEPTH)

    def _update_state(
        self, target: StateId, args: tuple, kwargs: dict, stacklevel: int,
    ) -> None:
        source = self._current
        exit_slot = self._states.get(source)
        enter_slot = self._states.get(target)
        # Read both slots up front; reassignment inside a callback applies
        # from the next transition on.
        onexit = exit_slot.onexit if exit_slot is not None else None
        onenter = enter_slot.onenter if enter_slot is not None else None

        self._to = target
        self._from = source
        self._pending = target
        try:
            if onexit is not None:
                onexit(self, *args, **kwargs)
            if onenter is not None:
                onenter(self, *args, **kwargs)
            self._history.append(source)
            self._current = target
        finally:
            self._from = None
            self._to = None
            self._pending = None
        report(Level.TRACE, "Transitioned '%s' -> '%s'", source, target, stacklevel=stacklevel)

    # --- Snapshot ---

    def snapshot(self) -> dict[str, Any]:
        """Runtime state as a JSON-compatible dict. Edges are not included."""
        return {
            "version": _SNAPSHOT_VERSION,
            "current": self._current,
            "history": list(self._history),
        }

    def restore(self, data: Mapping[str, Any]) -> None:
        self._check_idle()
        if not isinstance(data, Mapping):
            raise SnapshotError(
                f"Snapshot must be a mapping, got {type(data).__name__}"
            )
        version = data.get("version")
        if version != _SNAPSHOT_VERSION:
            raise SnapshotError(
                f"Unsupported snapshot version {version!r}, expected {_SNAPSHOT_VERSION}"
            )

        current = data.get("current")
        if current is not None and not is_state_id(current):
            raise SnapshotError(f"Snapshot current state is invalid: {current!r}")
        history = data.get("history", [])
        if not isinstance(history, list) or not all(is_state_id(s) for s in history):
            raise SnapshotError(f"Snapshot history must be a list of state names, got {history!r}")

        self._current = current
        self._history = deque(history, maxlen=self._config.history_limit)
        self._from = None
        self._to = None

    def __repr__(self) -> str:
        return (
            f"Machine(current={self._current!r}, states={len(self._states)}, "
            f"edges={len(self._edges)})"
        )


def make_machine(
    definition: Mapping[str, Any],
    config: MachineConfig | None = None,
) -> Machine:
    """Validate ``definition`` and build a Machine from it.

    Example::

        machine = make_machine({
            "initial": "start",
            "edges": [
                {"from": "start", "to": "splash"},
                {"from": "splash", "to": "menu"},
                {"from": "menu", "to": ["settings", "load_game"]},
            ],
            "splash": {"onenter": lambda m, msg: print(msg)},
        })

    Raises ConfigurationError if the definition is malformed.
    """
    parsed = parse_definition(definition)
    return Machine(
        parsed.edges,
        initial=parsed.initial,
        states=parsed.slots,
        config=config,
    )
