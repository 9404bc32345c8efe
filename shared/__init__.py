"""
Shared components for the timelens pipeline.
"""
from .config import settings
from .schemas import (
    AssetHandle,
    AssetState,
    FunctionCall,
    FunctionSchema,
    GenerationRequest,
    GenerationResponse,
    MediaAsset,
    QueryResult,
    TimedEntry,
)
from .telemetry import setup_telemetry, get_tracer, get_meter

__all__ = [
    "settings",
    "AssetHandle",
    "AssetState",
    "FunctionCall",
    "FunctionSchema",
    "GenerationRequest",
    "GenerationResponse",
    "MediaAsset",
    "QueryResult",
    "TimedEntry",
    "setup_telemetry",
    "get_tracer",
    "get_meter",
]
