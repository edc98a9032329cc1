from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SearchOptions(BaseModel):
    """Per-request knobs for ``SearchOrchestrator.search``."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    user_location: str = Field("India", alias="userLocation", min_length=1)
    enable_web_fetch: bool = Field(True, alias="enableWebFetch")
    max_content_chars: int = Field(2000, alias="maxContentChars", ge=100, le=20000)

    @field_validator("user_location")
    @classmethod
    def strip_location(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("user_location must not be blank")
        return value

    @classmethod
    def from_any(cls, options: "SearchOptions | dict[str, Any] | None") -> "SearchOptions":
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        return cls.model_validate(options)
