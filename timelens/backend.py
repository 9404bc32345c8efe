"""
InferenceBackend protocol and implementations: Dummy (offline) and Gemini (google-genai).
"""
from __future__ import annotations

import io
import itertools
from typing import Any, Protocol

import httpx
import structlog
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from shared.schemas import (
    AssetHandle,
    AssetState,
    FunctionCall,
    FunctionSchema,
    GenerationRequest,
    GenerationResponse,
    MediaAsset,
)

from .errors import BackendError, UploadError
from .timecode import format_timecode

logger = structlog.get_logger()


class InferenceBackend(Protocol):
    """
    The three operations the pipeline needs from a remote inference service.
    Implementations hold no per-asset state and must be safe to share between
    concurrent pipelines.
    """

    async def upload(self, data: bytes, display_name: str, mime_type: str) -> AssetHandle:
        """Store bytes remotely. Raises UploadError on transport/storage failure."""
        ...

    async def get_status(self, handle: AssetHandle) -> MediaAsset:
        """Current asset snapshot. Raises UploadError (transient flag set for network glitches)."""
        ...

    async def generate_content(self, request: GenerationRequest) -> GenerationResponse:
        """Run one generation. Raises BackendError on transport failure."""
        ...


class DummyBackend:
    """
    In-memory backend with deterministic output for testing. No real API calls.

    Each asset reports PROCESSING for `processing_polls` status fetches, then
    READY (or FAILED when `fail_processing` is set). Generation answers with one
    call to the requested function carrying `num_entries` entries spaced
    `spacing_sec` apart.

    Unlike the real backends it keeps per-asset poll counters, which are never
    evicted; use one instance per test or short offline run.
    """

    def __init__(
        self,
        processing_polls: int = 1,
        fail_processing: bool = False,
        num_entries: int = 4,
        spacing_sec: int = 5,
    ):
        self.processing_polls = processing_polls
        self.fail_processing = fail_processing
        self.num_entries = num_entries
        self.spacing_sec = spacing_sec
        self._ids = itertools.count(1)
        self._assets: dict[str, AssetHandle] = {}
        self._polls: dict[str, int] = {}

    async def upload(self, data: bytes, display_name: str, mime_type: str) -> AssetHandle:
        handle = AssetHandle(
            id=f"files/dummy-{next(self._ids)}",
            display_name=display_name,
            mime_type=mime_type,
        )
        self._assets[handle.id] = handle
        self._polls[handle.id] = 0
        return handle

    async def get_status(self, handle: AssetHandle) -> MediaAsset:
        if handle.id not in self._assets:
            raise UploadError(f"Unknown asset {handle.id}")
        self._polls[handle.id] += 1
        if self._polls[handle.id] <= self.processing_polls:
            state = AssetState.PROCESSING
        elif self.fail_processing:
            state = AssetState.FAILED
        else:
            state = AssetState.READY
        return MediaAsset(
            id=handle.id,
            uri=f"dummy://{handle.id}",
            mime_type=handle.mime_type,
            state=state,
            display_name=handle.display_name,
        )

    async def generate_content(self, request: GenerationRequest) -> GenerationResponse:
        fn = request.function
        value_type = _item_property_type(fn, fn.value_field)
        entries = []
        for i in range(self.num_entries):
            item: dict[str, Any] = {"time": format_timecode(i * self.spacing_sec)}
            if value_type in ("number", "integer"):
                item[fn.value_field] = i % 3 + i
            else:
                item[fn.value_field] = f"Segment {i + 1}"
            for key in _item_required(fn):
                if key not in item:
                    item[key] = [] if _item_property_type(fn, key) == "array" else ""
            entries.append(item)
        return GenerationResponse(
            function_calls=[FunctionCall(name=fn.name, args={fn.entries_field: entries})],
        )


def _item_schema(fn: FunctionSchema) -> dict[str, Any]:
    entries = fn.parameters.get("properties", {}).get(fn.entries_field, {})
    return entries.get("items", {}) if isinstance(entries, dict) else {}


def _item_property_type(fn: FunctionSchema, key: str) -> str | None:
    prop = _item_schema(fn).get("properties", {}).get(key)
    return prop.get("type") if isinstance(prop, dict) else None


def _item_required(fn: FunctionSchema) -> list[str]:
    return list(_item_schema(fn).get("required", []))


# --- Gemini ---

_GEMINI_STATES = {
    "PROCESSING": AssetState.PROCESSING,
    "ACTIVE": AssetState.READY,
    "FAILED": AssetState.FAILED,
}


def to_gemini_schema(node: dict[str, Any]) -> types.Schema:
    """Convert a JSON-Schema fragment into a Gemini types.Schema (recursive)."""
    kwargs: dict[str, Any] = {"type": str(node.get("type", "string")).upper()}
    if node.get("description"):
        kwargs["description"] = node["description"]
    if node.get("enum"):
        kwargs["enum"] = [str(v) for v in node["enum"]]
    if "properties" in node:
        kwargs["properties"] = {
            name: to_gemini_schema(prop) for name, prop in node["properties"].items()
        }
    if node.get("required"):
        kwargs["required"] = list(node["required"])
    if "items" in node:
        kwargs["items"] = to_gemini_schema(node["items"])
    return types.Schema(**kwargs)


def to_function_declaration(fn: FunctionSchema) -> types.FunctionDeclaration:
    return types.FunctionDeclaration(
        name=fn.name,
        description=fn.description or None,
        parameters=to_gemini_schema(fn.parameters) if fn.parameters else None,
    )


def _state_name(state: Any) -> str:
    if state is None:
        return ""
    return str(getattr(state, "value", state)).upper()


def _to_media_asset(file: types.File, handle: AssetHandle) -> MediaAsset:
    return MediaAsset(
        id=file.name or handle.id,
        uri=file.uri or "",
        mime_type=file.mime_type or handle.mime_type,
        state=_GEMINI_STATES.get(_state_name(file.state), AssetState.PENDING),
        display_name=file.display_name or handle.display_name,
    )


def _is_transient(exc: Exception) -> bool:
    if isinstance(exc, genai_errors.ServerError):
        return True
    if isinstance(exc, genai_errors.APIError):
        return exc.code == 429
    return isinstance(exc, httpx.TransportError)


class GeminiBackend:
    """
    Gemini API backend (Files API + generate_content) on the google-genai async client.
    """

    def __init__(
        self,
        api_key: str | None = None,
        client: genai.Client | None = None,
    ):
        if client is None:
            client = genai.Client(api_key=api_key)
        self.client = client

    async def upload(self, data: bytes, display_name: str, mime_type: str) -> AssetHandle:
        try:
            uploaded = await self.client.aio.files.upload(
                file=io.BytesIO(data),
                config=types.UploadFileConfig(display_name=display_name, mime_type=mime_type),
            )
        except (genai_errors.APIError, httpx.HTTPError) as e:
            raise UploadError(f"Upload of '{display_name}' failed: {e}", transient=_is_transient(e)) from e
        return AssetHandle(
            id=uploaded.name,
            display_name=uploaded.display_name or display_name,
            mime_type=uploaded.mime_type or mime_type,
        )

    async def get_status(self, handle: AssetHandle) -> MediaAsset:
        try:
            file = await self.client.aio.files.get(name=handle.id)
        except (genai_errors.APIError, httpx.HTTPError) as e:
            raise UploadError(f"Status fetch for {handle.id} failed: {e}", transient=_is_transient(e)) from e
        return _to_media_asset(file, handle)

    async def generate_content(self, request: GenerationRequest) -> GenerationResponse:
        contents = [
            types.Content(
                role="user",
                parts=[
                    types.Part(text=request.prompt),
                    types.Part(
                        file_data=types.FileData(
                            file_uri=request.asset_uri,
                            mime_type=request.asset_mime_type,
                        )
                    ),
                ],
            )
        ]
        config = types.GenerateContentConfig(
            system_instruction=request.system_instruction,
            temperature=request.temperature,
            tools=[types.Tool(function_declarations=[to_function_declaration(request.function)])],
        )
        try:
            response = await self.client.aio.models.generate_content(
                model=request.model,
                contents=contents,
                config=config,
            )
        except (genai_errors.APIError, httpx.HTTPError) as e:
            raise BackendError(f"generate_content failed: {e}", transient=_is_transient(e)) from e

        calls: list[FunctionCall] = []
        texts: list[str] = []
        candidates = response.candidates or []
        parts = (candidates[0].content.parts if candidates and candidates[0].content else None) or []
        for part in parts:
            if part.function_call:
                fc = part.function_call
                calls.append(FunctionCall(name=fc.name or "", args=dict(fc.args) if fc.args else {}))
            elif part.text:
                texts.append(part.text)
        logger.debug(
            "Gemini response parsed",
            model=request.model,
            function_calls=len(calls),
            has_text=bool(texts),
        )
        return GenerationResponse(function_calls=calls, text="\n".join(texts) or None)
