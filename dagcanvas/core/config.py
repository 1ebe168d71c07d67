"""
Configuration for the layout engine and the API service.

Defaults match the canvas the editor renders to: 172x36 nodes and 50px
gaps between ranks and between nodes of the same rank. Service settings
can be overridden through DAGCANVAS_* environment variables.
"""

import os
from typing import Mapping, Optional, Union
from pydantic import BaseModel, Field, field_validator

from .errors import LayoutConfigError
from .models import LayoutDirection, NODE_HEIGHT, NODE_WIDTH


DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8765
ENV_PREFIX = "DAGCANVAS_"
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def resolve_direction(direction: Union[str, LayoutDirection, None]) -> LayoutDirection:
    """
    Turn a user supplied direction into a LayoutDirection.

    None means the default (left to right). Matching is case-insensitive.

    Raises:
        LayoutConfigError: If the direction is not recognised
    """
    if direction is None:
        return LayoutDirection.LR
    if isinstance(direction, LayoutDirection):
        return direction
    try:
        return LayoutDirection(str(direction).upper())
    except ValueError:
        allowed = ", ".join(d.value for d in LayoutDirection)
        raise LayoutConfigError(f"Unknown layout direction: {direction!r} (expected one of {allowed})") from None


class LayoutConfig(BaseModel):
    """Spacing and sizing rules of the layered layout."""
    direction: LayoutDirection = LayoutDirection.LR
    node_width: float = Field(default=NODE_WIDTH, gt=0)    # Size of new nodes
    node_height: float = Field(default=NODE_HEIGHT, gt=0)
    rank_sep: float = Field(default=50, ge=0)   # Gap between consecutive ranks
    node_sep: float = Field(default=50, ge=0)   # Gap between nodes of one rank
    sweeps: int = Field(default=24, ge=0)       # Max barycenter passes


class Settings(BaseModel):
    """Service settings."""
    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    log_level: str = "INFO"
    api_base: Optional[str] = None
    cors_origins: list[str] = Field(default_factory=list)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {value!r} (expected one of {', '.join(LOG_LEVELS)})")
        return level

    @property
    def resolved_api_base(self) -> str:
        """Base URL of the REST API, derived from host/port unless set."""
        return self.api_base or f"http://{self.host}:{self.port}/api"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Recognised: DAGCANVAS_HOST, DAGCANVAS_PORT, DAGCANVAS_LOG_LEVEL,
        DAGCANVAS_API_BASE, DAGCANVAS_CORS_ORIGINS (comma separated) and
        DAGCANVAS_LAYOUT_DIRECTION.

        Raises:
            pydantic.ValidationError: Bad port or log level
            LayoutConfigError: Unknown layout direction
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            return env.get(ENV_PREFIX + name)

        origins = get("CORS_ORIGINS") or ""

        return cls(
            host=get("HOST") or DEFAULT_HOST,
            port=get("PORT") or DEFAULT_PORT,
            log_level=get("LOG_LEVEL") or "INFO",
            api_base=get("API_BASE"),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            layout=LayoutConfig(direction=resolve_direction(get("LAYOUT_DIRECTION"))),
        )
