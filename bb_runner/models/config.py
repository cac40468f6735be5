"""Run configuration (canonical definition shared with worker processes)."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from bb_common.errors import ConfigurationError


DEFAULT_BOOKMARKS: Tuple[str, ...] = (
    "https://news.ycombinator.com/",
    "https://stackoverflow.com/questions",
    "https://github.com/trending",
    "https://developer.apple.com/documentation",
)


class WorkloadMode(str, Enum):
    """Sustained CPU duty cycle of the background workload."""

    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"


class RunConfig(BaseModel):
    """Immutable configuration for one battery benchmark run."""

    model_config = ConfigDict(frozen=True)

    mode: WorkloadMode = Field(default=WorkloadMode.MEDIUM, description="Workload intensity")
    workload_path: Optional[Path] = Field(
        default=None,
        description="External build project driven by the build loop",
    )
    log_interval_seconds: int = Field(default=60, ge=1, description="Battery sampling interval in seconds")
    target_percent: Optional[int] = Field(
        default=None,
        ge=1,
        le=100,
        description="Stop the run once the battery drops to this level",
    )
    browser_enabled: bool = Field(default=True, description="Drive the browser refresh loop")
    browser_app: str = Field(default="Safari", description="Browser application driven by the refresh loop")
    bookmark_urls: Tuple[str, ...] = Field(
        default=DEFAULT_BOOKMARKS,
        description="Pages opened once when the browser loop starts",
    )
    output_dir: Path = Field(default=Path("."), description="Directory receiving the CSV log")

    @field_validator("browser_app")
    @classmethod
    def _validate_browser_app(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("browser_app must be non-empty")
        return value.strip()

    @property
    def build_project_valid(self) -> bool:
        """True when a build project is configured and is an existing directory."""
        return self.workload_path is not None and self.workload_path.is_dir()

    @classmethod
    def from_options(cls, **options: Any) -> "RunConfig":
        """Build a config from CLI-style options, raising ConfigurationError."""
        cleaned: Dict[str, Any] = {k: v for k, v in options.items() if v is not None}
        try:
            return cls.model_validate(cleaned)
        except ValidationError as exc:
            raise ConfigurationError(
                "Invalid run configuration",
                context={"errors": [err["msg"] for err in exc.errors()]},
                cause=exc,
            ) from exc

    @classmethod
    def from_json(cls, json_str: str) -> "RunConfig":
        return cls.model_validate_json(json_str)

    def to_json(self) -> str:
        return self.model_dump_json()
