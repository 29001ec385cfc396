"""Per-game settings chosen by the host at creation time."""

from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from game.logic.colors import PALETTE_BY_ID, GameColor
from game.logic.enums import GameMode, GameSpeed

MIN_DIFFICULTY = 4
MAX_DIFFICULTY = 9
ALLOWED_ROUNDS = (5, 10, 15, 20)


class GameSettings(BaseModel):
    """
    Host-selected configuration for one game.

    ``selected_colors`` accepts palette ids or color objects on input and is
    always resolved against the fixed palette, so clients cannot invent
    colors. ``rounds`` only applies to best-of-X games.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    difficulty: int = Field(ge=MIN_DIFFICULTY, le=MAX_DIFFICULTY)
    selected_colors: tuple[GameColor, ...]
    speed: GameSpeed
    mode: GameMode
    rounds: int | None = None

    @field_validator("selected_colors", mode="before")
    @classmethod
    def _resolve_palette_colors(cls, value: Any) -> Any:
        if not isinstance(value, list | tuple):
            return value
        resolved = []
        for item in value:
            color_id = item.get("id") if isinstance(item, dict) else getattr(item, "id", item)
            if not isinstance(color_id, str) or color_id not in PALETTE_BY_ID:
                raise ValueError(f"unknown color: {color_id!r}")
            resolved.append(PALETTE_BY_ID[color_id])
        return resolved

    @model_validator(mode="before")
    @classmethod
    def _drop_unused_rounds(cls, data: Any) -> Any:
        # lastManStanding has no round limit
        if isinstance(data, dict) and data.get("mode") != GameMode.BEST_OF_X:
            return {k: v for k, v in data.items() if k != "rounds"}
        return data

    @model_validator(mode="after")
    def _check_consistency(self) -> Self:
        ids = [c.id for c in self.selected_colors]
        if len(ids) != self.difficulty:
            raise ValueError(f"expected {self.difficulty} colors, got {len(ids)}")
        if len(set(ids)) != len(ids):
            raise ValueError("selected colors must be distinct")
        if self.mode == GameMode.BEST_OF_X and self.rounds not in ALLOWED_ROUNDS:
            raise ValueError(f"rounds must be one of {ALLOWED_ROUNDS} in bestOfX mode")
        return self

    @property
    def color_ids(self) -> list[str]:
        return [c.id for c in self.selected_colors]
