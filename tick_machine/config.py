"""Machine configuration dataclass."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MachineConfig:
    """Immutable runtime options for a Machine.

    Attributes:
        strict: Raise InvalidArgument, InvalidTransition and AmbiguousNext
            instead of logging them and returning False.
        history_limit: Maximum number of departed states kept for last()
            (None for unbounded).
    """

    strict: bool = False
    history_limit: int | None = None

    def __post_init__(self) -> None:
        if self.history_limit is not None and self.history_limit < 1:
            raise ValueError(f"history_limit must be >= 1, got {self.history_limit}")
