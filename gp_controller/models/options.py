"""Configuration options for SettingsController construction."""

from __future__ import annotations

from typing import Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from gp_common.config.env import env_value, parse_bool_env, parse_ms_env
from gp_common.errors import ConfigurationError


class ControllerOptions(BaseModel):
    """Timing and write-policy knobs of a SettingsController."""

    debounce_ms: int = Field(
        default=100, ge=0, description="Quiescence window for toolbar and grid-option edits"
    )
    refresh_on_frame: bool = Field(
        default=True,
        description="Schedule the batched refresh on the next frame instead of inline",
    )
    runtime_options_only: bool = Field(
        default=True,
        description="Skip initial-only grid options, which need a grid rebuild",
    )

    @property
    def debounce_s(self) -> float:
        return self.debounce_ms / 1000.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ControllerOptions":
        """Build options from ``GP_DEBOUNCE_MS`` and ``GP_REFRESH_ON_FRAME``."""
        data: dict[str, object] = {}
        try:
            debounce = parse_ms_env(env_value("DEBOUNCE_MS", environ))
            refresh = env_value("REFRESH_ON_FRAME", environ)
            if debounce is not None:
                data["debounce_ms"] = debounce
            if refresh is not None:
                data["refresh_on_frame"] = parse_bool_env(refresh)
            return cls(**data)
        except (ValueError, ValidationError) as exc:
            raise ConfigurationError(
                f"Invalid controller options in environment: {exc}", cause=exc
            ) from exc
