"""Integration tests: a menu-driven scene manager."""
import logging

from tick_machine import MachineConfig, StateDef, make_machine


class SceneLog:
    """Collects callback activity."""

    def __init__(self):
        self.events = []

    def enter(self, name):
        def callback(machine, *args, **kwargs):
            self.events.append(("enter", name, machine.from_(), args, kwargs))
        return callback

    def exit(self, name):
        def callback(machine, *args, **kwargs):
            self.events.append(("exit", name, machine.to(), args, kwargs))
        return callback


def build(log, config=None):
    return make_machine({
        "initial": "start",
        "edges": [
            {"from": "start", "to": "splash"},
            {"from": "splash", "to": "menu"},
            {"from": "menu", "to": ["settings", "load_game"]},
            {"from": "settings", "to": ["menu", "game"]},
            {"from": "load_game", "to": "game"},
        ],
        "splash": {"onenter": log.enter("splash"), "onexit": log.exit("splash")},
        "menu": StateDef(onenter=log.enter("menu")),
        "settings": {"onenter": log.enter("settings"), "onexit": log.exit("settings")},
        "game": {"onenter": log.enter("game")},
    }, config=config)


class TestSceneManager:

    def test_full_walkthrough(self, caplog):
        # Arrange
        log = SceneLog()
        scenes = build(log)

        # Act
        with caplog.at_level(logging.WARNING, logger="tick_machine"):
            assert scenes.next("Welcome!")
            assert scenes.next()
            assert not scenes.next()                 # menu fans out
            assert scenes["settings"].transition()
            assert scenes.transition(scenes.last(0))  # back to menu
            assert scenes.transition("load_game")
            assert not scenes.transition("settings")  # no edge from load_game
            assert scenes.next(save_slot=3)

        # Assert
        assert scenes.current() == "game"
        assert scenes.history() == (
            "start", "splash", "menu", "settings", "menu", "load_game",
        )
        assert log.events == [
            ("enter", "splash", "start", ("Welcome!",), {}),
            ("exit", "splash", "menu", (), {}),
            ("enter", "menu", "splash", (), {}),
            ("enter", "settings", "menu", (), {}),
            ("exit", "settings", "menu", (), {}),
            ("enter", "menu", "settings", (), {}),
            ("enter", "game", "load_game", (), {"save_slot": 3}),
        ]
        levels = [r.levelno for r in caplog.records]
        assert levels == [logging.WARNING, logging.ERROR]

    def test_game_is_a_dead_end(self):
        log = SceneLog()
        scenes = build(log, config=MachineConfig(strict=True))
        for state in ["splash", "menu", "settings", "game"]:
            scenes.transition(state)

        assert scenes.next_candidate() is None
        assert not scenes.can_transition("menu")

    def test_bootstrap_from_snapshot_reset(self):
        """Restoring an unset state lets the caller jump straight to any scene."""
        log = SceneLog()
        scenes = build(log)
        scenes.restore({"version": 1, "current": None, "history": []})

        assert scenes.transition("game", save_slot=1)
        assert log.events == [("enter", "game", None, (), {"save_slot": 1})]
        assert scenes.history() == ()
