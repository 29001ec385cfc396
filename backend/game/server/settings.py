"""Game server configuration via environment variables."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from game.logic.models import MAX_PLAYERS
from game.server.rate_limit import ConnectionLimits
from game.session.orchestrator import OrchestratorTiming
from shared.validators import CorsEnvSettingsSource, parse_cors_origins

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


class GameServerSettings(BaseSettings):
    model_config = {"env_prefix": "GAME_"}

    max_capacity: int = Field(default=100, ge=1)
    log_dir: str = Field(default="backend/logs/game", min_length=1)
    cors_origins: list[str] = ["http://localhost:5173"]
    max_players: int = Field(default=MAX_PLAYERS, ge=2, le=MAX_PLAYERS)

    # Round pacing (seconds)
    announcement_delay_seconds: float = Field(default=1.0, ge=0)
    tick_seconds: float = Field(default=1.0, gt=0)
    all_submitted_delay_seconds: float = Field(default=1.0, ge=0)
    leaderboard_display_seconds: float = Field(default=7.0, ge=0)
    next_round_countdown: int = Field(default=3, ge=0)

    # Per-connection abuse limits
    messages_per_second: float = Field(default=50.0, gt=0)
    message_burst: int = Field(default=80, ge=1)
    max_decode_errors: int = Field(default=5, ge=1)

    # Logging; LOG_FORMAT / LOG_LEVEL are used when unset
    log_format: Literal["json", "console"] | None = None
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] | None = None

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_cors_origins(v)

    def orchestrator_timing(self) -> OrchestratorTiming:
        return OrchestratorTiming(
            announcement_delay_seconds=self.announcement_delay_seconds,
            tick_seconds=self.tick_seconds,
            all_submitted_delay_seconds=self.all_submitted_delay_seconds,
            leaderboard_display_seconds=self.leaderboard_display_seconds,
            next_round_countdown=self.next_round_countdown,
        )

    def connection_limits(self) -> ConnectionLimits:
        return ConnectionLimits(
            messages_per_second=self.messages_per_second,
            message_burst=self.message_burst,
            max_decode_errors=self.max_decode_errors,
        )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, CorsEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings
