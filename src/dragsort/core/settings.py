"""
Centralized settings and per-instance options for dragsort.

Manifesto:
    Key spacing (``step``) and key precision are deployment decisions: a
    board persisted in a ``NUMERIC(18, 8)`` column needs a different precision
    than one kept in memory. ``DragSortSettings`` reads process-wide defaults
    from ``DRAGSORT_*`` environment variables and ``.env`` files;
    ``SortOptions`` is the validated, per-collection view of those defaults
    with the renumber sink attached.

    - **Pydantic validation:** step > 0, 0 <= precision <= 15 at startup
    - **Environment-driven:** ``DRAGSORT_STEP=100`` changes every new collection
    - **Per-instance overrides:** ``SortOptions.merged(step=10)``

Examples:
    >>> from dragsort.core.settings import SortOptions
    >>> options = SortOptions.from_settings().merged(step=10, precision=2)
    >>> options.step, options.precision
    (10.0, 2)

Tags:
    settings, configuration, pydantic, environment, dragsort

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import InvalidConfigError
from .renumber import RenumberSink

# float64 carries ~15-17 significant digits; more decimals are noise.
MAX_PRECISION = 15


class DragSortSettings(BaseSettings):
    """Process-wide dragsort defaults.

    Fields
    ──────
    step        : Key spacing used on append and renumber
    precision   : Decimal digits kept in generated keys
    log_level   : Structlog log level
    log_format  : "json" or "console"
    """

    model_config = SettingsConfigDict(
        env_prefix="DRAGSORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Keys ─────────────────────────────────────────────────────
    step: float = Field(default=1000.0, gt=0, description="Spacing between renumbered keys")
    precision: int = Field(default=8, ge=0, le=MAX_PRECISION, description="Decimal digits kept in keys")

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")


@lru_cache(maxsize=1)
def get_settings() -> DragSortSettings:
    """Return the cached process-wide settings."""
    return DragSortSettings()


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()


@dataclass(frozen=True)
class SortOptions:
    """
    Validated options for one ``DragSortLibrary`` instance.

    Attributes:
        step: Spacing used on renumber/append, must be > 0
        precision: Decimal digits kept in generated keys, 0..15
        on_renumber: Optional sink called with the items whose key changed
        context: Opaque value passed through to ``on_renumber``
    """

    step: float = 1000.0
    precision: int = 8
    on_renumber: RenumberSink | None = None
    context: Any = None

    def __post_init__(self) -> None:
        if isinstance(self.step, bool) or not isinstance(self.step, (int, float)):
            raise InvalidConfigError(f"step must be a number, got {self.step!r}", key="step")
        if not self.step > 0:
            raise InvalidConfigError(f"step must be > 0, got {self.step!r}", key="step")
        if isinstance(self.precision, bool) or not isinstance(self.precision, int):
            raise InvalidConfigError(
                f"precision must be an int, got {self.precision!r}", key="precision"
            )
        if not 0 <= self.precision <= MAX_PRECISION:
            raise InvalidConfigError(
                f"precision must be in [0, {MAX_PRECISION}], got {self.precision}",
                key="precision",
            )
        if self.on_renumber is not None and not callable(self.on_renumber):
            raise InvalidConfigError("on_renumber must be callable", key="on_renumber")
        object.__setattr__(self, "step", float(self.step))

    @classmethod
    def from_settings(cls, settings: DragSortSettings | None = None) -> SortOptions:
        """Build options from (cached) environment settings."""
        settings = settings or get_settings()
        return cls(step=settings.step, precision=settings.precision)

    def merged(self, **overrides: Any) -> SortOptions:
        """Return a copy with ``overrides`` applied; None values are ignored."""
        unknown = set(overrides) - {"step", "precision", "on_renumber", "context"}
        if unknown:
            raise InvalidConfigError(f"Unknown option(s): {', '.join(sorted(unknown))}")
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self


__all__ = [
    "MAX_PRECISION",
    "DragSortSettings",
    "SortOptions",
    "get_settings",
    "reset_settings",
]
