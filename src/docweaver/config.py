"""Processing settings, optionally read from the environment or a `.env` file."""

from __future__ import annotations

import os
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from .processor import DEFAULT_PROCESS_LIMIT

DEFAULT_PROCESSORS = (
    "include",
    "includeFile",
    "arg",
    "comment",
    "sample",
    "removeEscapeChars",
)

ENV_PREFIX = "DOCWEAVER_"


class ProcessingSettings(BaseModel):
    processors: list[str] = Field(default_factory=lambda: list(DEFAULT_PROCESSORS))
    process_limit: int = Field(default=DEFAULT_PROCESS_LIMIT, gt=0)
    log_not_found: bool = True
    presort_includes: bool = True
    max_workers: int = Field(default=8, ge=1)

    @field_validator("processors", mode="before")
    @classmethod
    def _split_processors(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [name.strip() for name in value.split(",") if name.strip()]
        return value

    @classmethod
    def from_env(cls, **overrides: Any) -> "ProcessingSettings":
        """Build settings from `DOCWEAVER_*` variables; explicit overrides win."""

        load_dotenv()
        values: dict[str, Any] = {}
        for field_name in cls.model_fields:
            raw = os.getenv(ENV_PREFIX + field_name.upper())
            if raw is not None and raw.strip():
                values[field_name] = raw.strip()
        values.update({key: value for key, value in overrides.items() if value is not None})
        try:
            return cls.model_validate(values)
        except ValidationError as exc:
            raise ValueError(f"Invalid docweaver settings: {exc}") from exc
