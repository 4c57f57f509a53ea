"""Tests for runtime snapshot/restore."""

import json

import pytest

from tick_machine import MachineConfig, SnapshotError, make_machine

DEFINITION = {
    "initial": "start",
    "edges": [
        {"from": "start", "to": "splash"},
        {"from": "splash", "to": "menu"},
        {"from": "menu", "to": ["settings", "game"]},
        {"from": "settings", "to": "menu"},
    ],
}


def test_snapshot_round_trip():
    """Snapshot survives JSON and restores current state and history."""
    machine = make_machine(DEFINITION)
    machine.next()
    machine.next()
    machine.transition("settings")

    data = json.loads(json.dumps(machine.snapshot()))

    restored = make_machine(DEFINITION)
    restored.restore(data)

    assert restored.current() == "settings"
    assert restored.history() == ("start", "splash", "menu")
    assert restored.last(0) == "menu"
    assert restored.transition("menu") is True


def test_snapshot_contents():
    machine = make_machine(DEFINITION)
    machine.next()

    assert machine.snapshot() == {
        "version": 1,
        "current": "splash",
        "history": ["start"],
    }


def test_snapshot_of_unset_machine():
    machine = make_machine({"edges": DEFINITION["edges"]})

    snap = machine.snapshot()

    assert snap["current"] is None
    assert snap["history"] == []


def test_restore_to_unset_state_allows_bootstrap():
    machine = make_machine(DEFINITION)
    machine.next()

    machine.restore({"version": 1, "current": None, "history": []})

    assert machine.current() is None
    assert machine.transition("game") is True


def test_restore_version_mismatch():
    machine = make_machine(DEFINITION)

    with pytest.raises(SnapshotError, match="version"):
        machine.restore({"version": 2, "current": "menu", "history": []})
    assert machine.current() == "start"


@pytest.mark.parametrize("data", [None, [1, "menu", []], "menu", 1])
def test_restore_rejects_non_mapping(data):
    """Anything that is not a mapping is a bad snapshot, not a crash."""
    machine = make_machine(DEFINITION)

    with pytest.raises(SnapshotError, match="mapping"):
        machine.restore(data)
    assert machine.current() == "start"


@pytest.mark.parametrize("current", [5, "", ["menu"]])
def test_restore_bad_current(current):
    machine = make_machine(DEFINITION)

    with pytest.raises(SnapshotError):
        machine.restore({"version": 1, "current": current, "history": []})


@pytest.mark.parametrize("history", ["start", ["start", None], ("start",)])
def test_restore_bad_history(history):
    machine = make_machine(DEFINITION)

    with pytest.raises(SnapshotError):
        machine.restore({"version": 1, "current": "menu", "history": history})
    assert machine.current() == "start"


def test_restore_respects_history_limit():
    machine = make_machine(DEFINITION, config=MachineConfig(history_limit=2))

    machine.restore({
        "version": 1,
        "current": "menu",
        "history": ["start", "splash", "menu", "settings"],
    })

    assert machine.history() == ("menu", "settings")
