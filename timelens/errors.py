"""
Error taxonomy for the upload → poll → query → chart pipeline.

Only transient BackendErrors raised while polling processing status are
retried automatically; everything else reaches the caller unchanged.
"""
from __future__ import annotations


class TimelensError(Exception):
    """Base class for all pipeline errors."""


class BackendError(TimelensError):
    """Transport or storage failure talking to the inference backend."""

    def __init__(self, message: str, *, transient: bool = False):
        super().__init__(message)
        self.transient = transient


class UploadError(BackendError):
    """Upload or status fetch failed. The caller may retry submit itself."""


class ProcessingFailed(TimelensError):
    """The backend reported FAILED for an uploaded asset. Terminal, never retried."""

    def __init__(self, asset_id: str):
        super().__init__(f"Processing failed for asset {asset_id}")
        self.asset_id = asset_id


class PollTimeoutError(TimelensError, TimeoutError):
    """Asset still processing after the allowed number of status fetches."""

    def __init__(self, asset_id: str, attempts: int):
        super().__init__(f"Asset {asset_id} not ready after {attempts} status checks")
        self.asset_id = asset_id
        self.attempts = attempts


class InvalidState(TimelensError):
    """An operation was attempted on an asset that is not READY."""


class SchemaViolation(TimelensError):
    """The model response does not match the declared function contract."""

    NO_CALL = "no function call"
    AMBIGUOUS = "ambiguous function call"
    ARGUMENT_MISMATCH = "argument mismatch"

    def __init__(self, reason: str, detail: str | None = None):
        super().__init__(f"{reason}: {detail}" if detail else reason)
        self.reason = reason
        self.detail = detail


class FormatError(TimelensError, ValueError):
    """Malformed timecode string (or unrepresentable seconds value)."""
