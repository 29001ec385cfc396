"""
Color palette, sequence generation, and round time limits.

Colors are drawn with an OS-backed random source. Callers that need
reproducible draws (tests) pass their own ``random.Random`` instance.
"""

import random
import secrets

from pydantic import BaseModel, ConfigDict, Field

BASE_TIME_LIMIT_SECONDS = 10
SECONDS_PER_SEQUENCE_ITEM = 2

_system_rng = secrets.SystemRandom()


class GameColor(BaseModel):
    """A playable color: display name, CSS color, and the tone clients play for it."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    color: str
    sound_freq: float = Field(alias="soundFreq")


COLOR_PALETTE: tuple[GameColor, ...] = (
    GameColor(id="red", name="Red", color="#EF4444", sound_freq=329.63),
    GameColor(id="blue", name="Blue", color="#3B82F6", sound_freq=261.63),
    GameColor(id="green", name="Green", color="#10B981", sound_freq=392.0),
    GameColor(id="yellow", name="Yellow", color="#F59E0B", sound_freq=440.0),
    GameColor(id="purple", name="Purple", color="#8B5CF6", sound_freq=493.88),
    GameColor(id="orange", name="Orange", color="#F97316", sound_freq=523.25),
    GameColor(id="pink", name="Pink", color="#EC4899", sound_freq=587.33),
    GameColor(id="cyan", name="Cyan", color="#06B6D4", sound_freq=659.25),
    GameColor(id="lime", name="Lime", color="#84CC16", sound_freq=698.46),
    GameColor(id="magenta", name="Magenta", color="#DB2777", sound_freq=739.99),
    GameColor(id="teal", name="Teal", color="#14B8A6", sound_freq=783.99),
    GameColor(id="indigo", name="Indigo", color="#6366F1", sound_freq=830.61),
)

PALETTE_BY_ID: dict[str, GameColor] = {c.id: c for c in COLOR_PALETTE}


def select_random_colors(count: int, rng: random.Random | None = None) -> list[GameColor]:
    """Draw ``count`` distinct colors from the palette (without replacement)."""
    if not (0 <= count <= len(COLOR_PALETTE)):
        raise ValueError(f"count must be 0-{len(COLOR_PALETTE)}, got {count}")
    return (rng or _system_rng).sample(COLOR_PALETTE, count)


def generate_sequence(
    colors: list[GameColor] | tuple[GameColor, ...],
    length: int,
    rng: random.Random | None = None,
) -> list[str]:
    """
    Generate a sequence of color ids of the given length.

    Each element is an independent uniform draw with replacement, so repeats
    within a sequence are expected.
    """
    if length > 0 and not colors:
        raise ValueError("cannot generate a sequence from an empty color set")
    source = rng or _system_rng
    return [source.choice(colors).id for _ in range(length)]


def calculate_time_limit(sequence_length: int) -> int:
    """Input deadline in seconds for a sequence of the given length."""
    return BASE_TIME_LIMIT_SECONDS + sequence_length * SECONDS_PER_SEQUENCE_ITEM
