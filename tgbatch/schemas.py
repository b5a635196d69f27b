# tgbatch/schemas.py
"""
Pydantic models for the batch file read by the command-line runner.

Only the document shape is checked here; parameter values are resolved
and validated per item by the payload builder.
"""
from __future__ import annotations

import binascii
from base64 import b64decode
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator


class BinaryEntryIn(BaseModel):
    """File attached to an item: read from ``path`` or decoded from ``base64``."""

    model_config = ConfigDict(extra="forbid")

    path: str | None = Field(default=None, min_length=1)
    base64: str | None = None
    mime_type: str = Field(default="application/octet-stream", min_length=1)
    file_name: str | None = None

    @field_validator("base64")
    @classmethod
    def base64_must_decode(cls, v: str | None) -> str | None:
        if v is not None:
            try:
                b64decode(v, validate=True)
            except (binascii.Error, ValueError):
                raise ValueError("base64 is not valid base64 data") from None
        return v

    @model_validator(mode="after")
    def exactly_one_source(self) -> "BinaryEntryIn":
        if (self.path is None) == (self.base64 is None):
            raise ValueError("Binary entry needs exactly one of 'path' or 'base64'")
        return self


class BatchItemIn(BaseModel):
    data: dict[str, Any] | None = Field(default=None, alias="json")
    binary: dict[str, BinaryEntryIn] = Field(default_factory=dict)


class BatchFile(BaseModel):
    """``{"parameters": {...}, "items": [...]}``"""

    parameters: dict[str, Any] = Field(default_factory=dict)
    items: list[BatchItemIn] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def must_be_object(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            raise ValueError("batch file must be a JSON object")
        return data


def describe_errors(exc: ValidationError) -> str:
    """One line per pydantic error: ``items.0.binary.data: <message>``."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "document"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def failing_item_index(exc: ValidationError) -> int | None:
    """Index of the first item the errors point at, if any."""
    for error in exc.errors():
        loc = error["loc"]
        if len(loc) >= 2 and loc[0] == "items" and isinstance(loc[1], int):
            return loc[1]
    return None
