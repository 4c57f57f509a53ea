"""Parse step turning a raw machine definition into typed edges and states."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from tick_machine.types import ConfigurationError, Edge, StateDef, StateId, is_state_id

EDGE_KEYS = frozenset({"from", "to"})
SLOT_KEYS = frozenset({"onenter", "onexit"})
RESERVED_KEYS = frozenset({"edges", "initial", "current"})

_EDGE_SHAPE = "{'from': str, 'to': str | list[str]}"


@dataclass
class MachineDefinition:
    """Validated machine definition.

    Attributes:
        edges: Edges in declaration order.
        states: Every state named by an edge, in first-appearance order.
        initial: Starting state (``current`` wins over ``initial``), or None.
        slots: Caller-supplied callback records keyed by state name.
    """

    edges: tuple[Edge, ...]
    states: tuple[StateId, ...]
    initial: StateId | None = None
    slots: dict[StateId, StateDef] = field(default_factory=dict)


def collect_states(edges: tuple[Edge, ...]) -> tuple[StateId, ...]:
    """Deduplicate state names across edges, keeping first appearance."""
    seen: dict[StateId, None] = {}
    for edge in edges:
        seen.setdefault(edge.source, None)
        for target in edge.targets:
            seen.setdefault(target, None)
    return tuple(seen)


def parse_edge(raw: Any, index: int) -> Edge:
    """Validate one ``{from, to}`` entry. ``index`` is 1-based for messages."""
    if not isinstance(raw, Mapping):
        raise ConfigurationError(
            f"Edges index {index}: edge must be a mapping of the form {_EDGE_SHAPE}"
        )

    extra = set(raw) - EDGE_KEYS
    if extra:
        raise ConfigurationError(
            f"Edges index {index}: edge keys must be named 'from' and 'to', "
            f"got {sorted(map(str, extra))}"
        )
    missing = EDGE_KEYS - set(raw)
    if missing:
        raise ConfigurationError(
            f"Edges index {index}: edge is missing {sorted(missing)}"
        )

    source = raw["from"]
    if not is_state_id(source):
        raise ConfigurationError(
            f"Edges index {index}: 'from' value must be a non-empty string "
            f"naming the state, got {source!r}"
        )

    target = raw["to"]
    if is_state_id(target):
        return Edge.single(source, target)
    if isinstance(target, (list, tuple, set, frozenset)):
        targets = tuple(target)
        if targets and all(is_state_id(t) for t in targets):
            return Edge.many(source, *targets)
    raise ConfigurationError(
        f"Edges index {index}: 'to' value must be either a non-empty string "
        f"or a non-empty list of non-empty strings, got {target!r}"
    )


def parse_slot(name: StateId, raw: Any) -> StateDef:
    if isinstance(raw, StateDef):
        return raw
    if not isinstance(raw, Mapping):
        raise ConfigurationError(
            f"State '{name}': section must be a mapping with 'onenter'/'onexit' "
            f"or a StateDef, got {type(raw).__name__}"
        )

    extra = set(raw) - SLOT_KEYS
    if extra:
        raise ConfigurationError(
            f"State '{name}': unknown keys {sorted(map(str, extra))}, "
            "expected 'onenter' and/or 'onexit'"
        )
    for key in SLOT_KEYS:
        value = raw.get(key)
        if value is not None and not callable(value):
            raise ConfigurationError(
                f"State '{name}': '{key}' must be callable or None, got {value!r}"
            )
    return StateDef(onenter=raw.get("onenter"), onexit=raw.get("onexit"))


def parse_definition(raw: Mapping[str, Any]) -> MachineDefinition:
    """Validate a raw definition mapping.

    Recognized keys are ``edges`` (required), ``initial`` and ``current``.
    Any other key must name a state from the edges and holds its callback
    section. Raises ConfigurationError on the first malformed field.
    """
    if not isinstance(raw, Mapping):
        raise ConfigurationError(
            f"Machine definition must be a mapping, got {type(raw).__name__}"
        )

    raw_edges = raw.get("edges")
    if not isinstance(raw_edges, (list, tuple)) or not raw_edges:
        raise ConfigurationError(
            f"Machine must have a non-empty list of edges of the form {_EDGE_SHAPE}"
        )
    edges = tuple(parse_edge(entry, i) for i, entry in enumerate(raw_edges, start=1))
    states = collect_states(edges)

    for key in ("current", "initial"):
        value = raw.get(key)
        if value is not None and not is_state_id(value):
            raise ConfigurationError(
                f"'{key}' must be a non-empty string naming a state, got {value!r}"
            )
    initial = raw.get("current") or raw.get("initial")

    known = set(states)
    slots: dict[StateId, StateDef] = {}
    for key, value in raw.items():
        if key in RESERVED_KEYS:
            continue
        if key not in known:
            raise ConfigurationError(
                f"Section {key!r} does not name a state that appears in edges"
            )
        slots[key] = parse_slot(key, value)

    return MachineDefinition(edges=edges, states=states, initial=initial, slots=slots)
