"""Scene manager -- driving a game's screens with a state machine.

Demonstrates:
- Declaring edges with single and multiple targets
- onenter / onexit callbacks receiving transition arguments
- Using from_() and to() inside callbacks
- next() along single-target edges, and its warning when ambiguous
- Going back with last()
- Per-state transition forwarders

Run: python -m examples.scenes
"""

from tick_machine import Machine, make_machine, setup_logger


# ---------------------------------------------------------------------------
# Callbacks
# ---------------------------------------------------------------------------

def show_splash(machine: Machine, message: str = "") -> None:
    print(f"  [splash] {message}")


def leave_splash(machine: Machine, *args: object) -> None:
    print(f"  [splash] fading out, heading to {machine.to()}")


def enter_settings(machine: Machine, *args: object) -> None:
    print(f"  [settings] opened from {machine.from_()}")


def enter_game(machine: Machine, save_slot: int = 0) -> None:
    print(f"  [game] loading save slot {save_slot}")


# ---------------------------------------------------------------------------
# Setup and run
# ---------------------------------------------------------------------------

def build_scenes() -> Machine:
    return make_machine({
        "initial": "start",
        "edges": [
            {"from": "start", "to": "splash"},
            {"from": "splash", "to": "menu"},
            {"from": "menu", "to": ["settings", "load_game"]},
            {"from": "settings", "to": ["menu", "game"]},
            {"from": "load_game", "to": "game"},
        ],
        "splash": {"onenter": show_splash, "onexit": leave_splash},
        "settings": {"onenter": enter_settings},
        "game": {"onenter": enter_game},
    })


def main() -> None:
    print("=== Scenes: menus as a state machine ===\n")

    setup_logger("WARNING")
    scenes = build_scenes()

    scenes.next("Welcome!")
    scenes.next()
    print(f"  now at {scenes.current()}")

    # menu has two choices, so next() only warns.
    scenes.next()

    scenes["settings"].transition()
    scenes.transition(scenes.last(0))
    scenes.transition("load_game")
    scenes.next(save_slot=3)

    print(f"\n  history: {' -> '.join(scenes.history())} -> {scenes.current()}")


if __name__ == "__main__":
    main()
