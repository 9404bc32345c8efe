"""
Orchestrates: read file → upload → wait for processing → structured query.
"""
from __future__ import annotations

import time
from pathlib import Path
from typing import Optional

import structlog
from pydantic import BaseModel

from shared.config import settings
from shared.schemas import FunctionSchema, MediaAsset, QueryResult

from .backend import DummyBackend, GeminiBackend, InferenceBackend
from .chart import ChartSample, samples_from_result
from .functions import get_function
from .prompts_loader import get_mode_prompt
from .query import QueryDispatcher
from .upload import ProgressCallback, UploadCoordinator

logger = structlog.get_logger()


class PipelineResult(BaseModel):
    """Outcome of one upload + query run."""

    asset: MediaAsset
    result: QueryResult
    prompt: str
    elapsed_sec: float

    def chart_samples(self) -> list[ChartSample]:
        return samples_from_result(self.result)


def get_backend(name: str | None = None) -> InferenceBackend:
    """
    Select a backend: 'gemini', 'dummy', or None for gemini when an API key is
    configured and dummy otherwise.
    """
    if name is None:
        name = "gemini" if settings.gemini_api_key else "dummy"
    if name == "gemini":
        return GeminiBackend(api_key=settings.gemini_api_key)
    if name == "dummy":
        return DummyBackend()
    raise ValueError(f"Unknown backend '{name}'")


def resolve_query(
    mode: Optional[str],
    query: str = "",
    prompt: Optional[str] = None,
    function: Optional[str] = None,
) -> tuple[str, FunctionSchema]:
    """Either a catalogued mode (+ query) or an explicit prompt + function name."""
    if prompt:
        return prompt, get_function(function or "set_timecodes")
    if not mode:
        raise ValueError("Either a mode or a prompt is required")
    prompt_text, function_name = get_mode_prompt(mode, query)
    return prompt_text, get_function(function or function_name)


async def run_pipeline(
    path: str | Path,
    *,
    mode: Optional[str] = None,
    query: str = "",
    prompt: Optional[str] = None,
    function: Optional[str] = None,
    backend: InferenceBackend | None = None,
    uploader: UploadCoordinator | None = None,
    dispatcher: QueryDispatcher | None = None,
    mime_type: Optional[str] = None,
    backoff: float | None = None,
    max_attempts: int | None = None,
    on_progress: ProgressCallback | None = None,
) -> PipelineResult:
    """
    Upload a local video, wait until the backend has processed it and run one
    structured query over it. Errors from any stage propagate unchanged.
    """
    path = Path(path)
    prompt_text, schema = resolve_query(mode, query, prompt, function)

    backend = backend or get_backend()
    uploader = uploader or UploadCoordinator(backend)
    dispatcher = dispatcher or QueryDispatcher(backend)

    t0 = time.perf_counter()
    data = path.read_bytes()
    asset = await uploader.upload_and_wait(
        data,
        path.name,
        mime_type,
        backoff=backoff,
        max_attempts=max_attempts,
        on_progress=on_progress,
    )
    logger.info("Asset processed", asset_id=asset.id, elapsed_sec=round(time.perf_counter() - t0, 2))

    result = await dispatcher.generate(prompt_text, asset, schema)
    elapsed = time.perf_counter() - t0

    return PipelineResult(
        asset=asset,
        result=result,
        prompt=prompt_text,
        elapsed_sec=round(elapsed, 2),
    )
