"""Base model for Volvo On Call API responses.

Every response model inherits from :class:`VocBaseModel` which provides:

* ``alias_generator=to_camel`` so camelCase API keys map automatically to
  snake_case fields.
* A ``model_validator(mode="before")`` that drops ``None`` values so the
  field default is used.
* A ``raw`` dict that captures the original payload. Published MQTT
  snapshots are built from ``raw`` so no cloud field is lost.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class VocBaseModel(BaseModel):
    """Base for VOC API response models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original API response dict."""

    @model_validator(mode="before")
    @classmethod
    def _stash_raw(cls, values: Any) -> Any:
        """Drop ``None`` values and stash the raw payload."""
        if not isinstance(values, dict):
            return values
        cleaned = {key: value for key, value in values.items() if value is not None}
        # Keep an explicitly supplied raw= (kwargs construction) untouched.
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned
