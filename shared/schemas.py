"""
Shared schemas for the timelens pipeline: media assets, function schemas,
generation requests/responses and timecoded query results.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class AssetState(str, Enum):
    """Processing state of an uploaded media asset."""
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    READY = "READY"
    FAILED = "FAILED"


class AssetHandle(BaseModel):
    """Identifier returned by an upload; used to poll processing status."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Backend asset name, e.g. 'files/abc123'.")
    display_name: str = Field(default="", description="Name shown in the backend console.")
    mime_type: str = Field(default="video/mp4")


class MediaAsset(BaseModel):
    """Snapshot of an uploaded asset as reported by the backend."""

    model_config = ConfigDict(frozen=True)

    id: str
    uri: str = Field(default="", description="URI referenced from generation requests.")
    mime_type: str = "video/mp4"
    state: AssetState = AssetState.PENDING
    display_name: str = ""


class FunctionSchema(BaseModel):
    """
    The single function the model may call. `parameters` is a JSON-Schema object;
    `entries_field` names the array argument holding timed items and
    `value_field` the key of each item used as the entry value.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    description: str = ""
    parameters: dict[str, Any] = Field(default_factory=dict)
    entries_field: str = "timecodes"
    value_field: str = "value"


class FunctionCall(BaseModel):
    """One function call emitted by the model."""

    name: str
    args: dict[str, Any] = Field(default_factory=dict)


class GenerationRequest(BaseModel):
    """Single-turn multimodal request: prompt + uploaded asset + one callable function."""

    model: str
    prompt: str
    asset_uri: str
    asset_mime_type: str
    system_instruction: str
    function: FunctionSchema
    temperature: float = Field(..., ge=0.0, le=2.0)


class GenerationResponse(BaseModel):
    """Model output reduced to the parts the dispatcher inspects."""

    function_calls: list[FunctionCall] = Field(default_factory=list)
    text: Optional[str] = None


class TimedEntry(BaseModel):
    """One timecoded item of a query result."""

    model_config = ConfigDict(frozen=True)

    time: str = Field(..., description="Timecode, 'MM:SS' or 'HH:MM:SS'.")
    value: Any = None
    attributes: dict[str, Any] = Field(default_factory=dict, description="Other keys of the item.")


class QueryResult(BaseModel):
    """Entries in the order the model returned them."""

    function_name: str
    entries: list[TimedEntry] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def times(self) -> list[str]:
        return [e.time for e in self.entries]
