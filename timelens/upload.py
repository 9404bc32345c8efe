"""
UploadCoordinator: upload → poll → READY | FAILED.

    PENDING --(upload ok)--> PROCESSING --(poll)--> READY
                                        `--(poll)--> FAILED

READY and FAILED are terminal. Polling sleeps cooperatively between status
fetches and is bounded by max_attempts.
"""
from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Optional

import structlog

from shared.config import settings
from shared.schemas import AssetHandle, AssetState, MediaAsset
from shared.telemetry import PipelineMetrics, get_tracer

from .backend import InferenceBackend
from .errors import PollTimeoutError, ProcessingFailed, UploadError
from .media import resolve_mime_type, validate_media

logger = structlog.get_logger()

ProgressCallback = Callable[[AssetState], None]
SleepFn = Callable[[float], Awaitable[None]]


class UploadCoordinator:
    """Uploads media to the backend and waits for server-side processing."""

    def __init__(
        self,
        backend: InferenceBackend,
        *,
        status_retries: int | None = None,
        max_upload_bytes: int | None = None,
        sleep: SleepFn = asyncio.sleep,
    ):
        self.backend = backend
        self.status_retries = settings.status_retries if status_retries is None else status_retries
        self.max_upload_bytes = max_upload_bytes or settings.max_upload_bytes
        self._sleep = sleep
        self.metrics = PipelineMetrics()

    async def submit(
        self,
        data: bytes,
        display_name: str,
        mime_type: Optional[str] = None,
    ) -> AssetHandle:
        """Upload bytes and return the backend handle. Raises UploadError."""
        validate_media(data, display_name, self.max_upload_bytes)
        mime_type = resolve_mime_type(data, display_name, mime_type)

        with get_tracer().start_as_current_span("upload_asset") as span:
            span.set_attribute("display_name", display_name)
            span.set_attribute("mime_type", mime_type)
            span.set_attribute("size_bytes", len(data))

            logger.info("Uploading", display_name=display_name, mime_type=mime_type, size=len(data))
            try:
                handle = await self.backend.upload(data, display_name, mime_type)
            except UploadError as e:
                logger.error("Upload failed", display_name=display_name, error=str(e))
                span.record_exception(e)
                raise
            self.metrics.record_upload(mime_type)
            span.set_attribute("asset_id", handle.id)
            logger.info("Uploaded", asset_id=handle.id)
            return handle

    async def await_ready(
        self,
        handle: AssetHandle,
        backoff: float | None = None,
        max_attempts: int | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> MediaAsset:
        """
        Poll until the asset leaves PROCESSING.

        Returns the READY asset. Raises ProcessingFailed on FAILED (no further
        polling), PollTimeoutError after max_attempts non-terminal reports, and
        UploadError when a status fetch keeps failing. Cancelling the awaiting
        task interrupts the sleep and stops polling.
        """
        backoff = settings.poll_interval_sec if backoff is None else backoff
        max_attempts = settings.poll_max_attempts if max_attempts is None else max_attempts
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        with get_tracer().start_as_current_span("await_asset_ready") as span:
            span.set_attribute("asset_id", handle.id)
            started = time.perf_counter()
            attempts = 0
            while True:
                asset = await self._fetch_status(handle, backoff)
                attempts += 1
                self.metrics.record_poll(asset.state.value)
                logger.info("Current file status", asset_id=handle.id, state=asset.state.value, attempt=attempts)
                if on_progress is not None:
                    on_progress(asset.state)

                if asset.state == AssetState.READY:
                    elapsed_ms = (time.perf_counter() - started) * 1000
                    self.metrics.record_processing_wait(elapsed_ms)
                    span.set_attribute("attempts", attempts)
                    logger.info("Asset ready", asset_id=handle.id, attempts=attempts)
                    return asset

                if asset.state == AssetState.FAILED:
                    self.metrics.record_processing_failure()
                    span.set_attribute("attempts", attempts)
                    logger.error("File processing failed", asset_id=handle.id)
                    raise ProcessingFailed(handle.id)

                if attempts >= max_attempts:
                    logger.warning(
                        "Asset did not become ready in time",
                        asset_id=handle.id,
                        attempts=attempts,
                        backoff=backoff,
                    )
                    raise PollTimeoutError(handle.id, attempts)

                logger.debug("File is still processing", asset_id=handle.id, retry_in=backoff)
                await self._sleep(backoff)

    def start_waiting(
        self,
        handle: AssetHandle,
        backoff: float | None = None,
        max_attempts: int | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> asyncio.Task:
        """Run await_ready as a task the caller can cancel."""
        return asyncio.create_task(
            self.await_ready(handle, backoff=backoff, max_attempts=max_attempts, on_progress=on_progress),
            name=f"await-ready:{handle.id}",
        )

    async def upload_and_wait(
        self,
        data: bytes,
        display_name: str,
        mime_type: Optional[str] = None,
        *,
        backoff: float | None = None,
        max_attempts: int | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> MediaAsset:
        handle = await self.submit(data, display_name, mime_type)
        return await self.await_ready(
            handle, backoff=backoff, max_attempts=max_attempts, on_progress=on_progress
        )

    async def _fetch_status(self, handle: AssetHandle, backoff: float) -> MediaAsset:
        """One status fetch, retrying transient transport errors up to status_retries times."""
        failures = 0
        while True:
            try:
                return await self.backend.get_status(handle)
            except UploadError as e:
                if not e.transient or failures >= self.status_retries:
                    logger.error(
                        "Status fetch failed",
                        asset_id=handle.id,
                        error=str(e),
                        retries=failures,
                    )
                    raise
                failures += 1
                logger.warning(
                    "Transient status fetch failure, retrying",
                    asset_id=handle.id,
                    error=str(e),
                    retry=failures,
                    retry_in=backoff,
                )
                await self._sleep(backoff)
