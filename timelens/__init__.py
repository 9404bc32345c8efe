"""
timelens: upload a video to an inference backend, ask for timecoded results
through a single constrained function call and chart them.
"""
from .backend import DummyBackend, GeminiBackend, InferenceBackend
from .chart import ChartGeometry, ChartSample, TimeSeriesChart, compute_geometry
from .errors import (
    BackendError,
    FormatError,
    InvalidState,
    PollTimeoutError,
    ProcessingFailed,
    SchemaViolation,
    TimelensError,
    UploadError,
)
from .functions import FUNCTIONS, get_function
from .pipeline import PipelineResult, run_pipeline
from .query import GENERATION_TEMPERATURE, QueryDispatcher
from .timecode import format_timecode, parse_timecode
from .upload import UploadCoordinator

__all__ = [
    "BackendError",
    "ChartGeometry",
    "ChartSample",
    "DummyBackend",
    "FUNCTIONS",
    "FormatError",
    "GENERATION_TEMPERATURE",
    "GeminiBackend",
    "InferenceBackend",
    "InvalidState",
    "PipelineResult",
    "PollTimeoutError",
    "ProcessingFailed",
    "QueryDispatcher",
    "SchemaViolation",
    "TimeSeriesChart",
    "TimelensError",
    "UploadCoordinator",
    "UploadError",
    "compute_geometry",
    "format_timecode",
    "get_function",
    "parse_timecode",
    "run_pipeline",
]
