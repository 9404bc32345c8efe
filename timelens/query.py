"""
QueryDispatcher: one constrained multimodal request per query, answered by
exactly one function call whose arguments become an ordered QueryResult.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

import structlog
from jsonschema import Draft7Validator
from jsonschema.exceptions import best_match

from shared.config import settings
from shared.schemas import (
    AssetState,
    FunctionCall,
    FunctionSchema,
    GenerationRequest,
    GenerationResponse,
    MediaAsset,
    QueryResult,
    TimedEntry,
)
from shared.telemetry import PipelineMetrics, get_tracer

from .backend import InferenceBackend
from .errors import FormatError, InvalidState, SchemaViolation
from .functions import get_function
from .prompts_loader import get_mode_prompt, get_system_instruction
from .timecode import parse_timecode

logger = structlog.get_logger()

# Sampling temperature for every query
GENERATION_TEMPERATURE = 0.5


# --- Call outcome (tagged variant) ---


@dataclass(frozen=True)
class NoCall:
    """The response carried no call to the declared function."""


@dataclass(frozen=True)
class SingleCall:
    call: FunctionCall


@dataclass(frozen=True)
class MultipleCalls:
    count: int


CallOutcome = Union[NoCall, SingleCall, MultipleCalls]


def classify_response(response: GenerationResponse, function_name: str) -> CallOutcome:
    """
    Reduce a response to NoCall / SingleCall / MultipleCalls.

    Any response with more than one call is ambiguous, whatever the names. A
    lone call to a different function counts as no call.
    """
    calls = response.function_calls
    if len(calls) > 1:
        return MultipleCalls(len(calls))
    if len(calls) == 1 and calls[0].name == function_name:
        return SingleCall(calls[0])
    return NoCall()


def build_query_result(call: FunctionCall, schema: FunctionSchema) -> QueryResult:
    """Validate call arguments against the schema and keep the entries in order."""
    args = call.args
    if schema.parameters:
        first = best_match(Draft7Validator(schema.parameters).iter_errors(args))
        if first is not None:
            where = "/".join(str(p) for p in first.path) or "<root>"
            raise SchemaViolation(SchemaViolation.ARGUMENT_MISMATCH, f"{where}: {first.message}")

    items = args.get(schema.entries_field)
    if not isinstance(items, list):
        raise SchemaViolation(
            SchemaViolation.ARGUMENT_MISMATCH,
            f"'{schema.entries_field}' must be an array",
        )

    entries: list[TimedEntry] = []
    for i, item in enumerate(items):
        if not isinstance(item, dict) or not isinstance(item.get("time"), str):
            raise SchemaViolation(
                SchemaViolation.ARGUMENT_MISMATCH,
                f"{schema.entries_field}/{i} has no 'time' string",
            )
        try:
            parse_timecode(item["time"])
        except FormatError as e:
            raise SchemaViolation(SchemaViolation.ARGUMENT_MISMATCH, f"{schema.entries_field}/{i}: {e}") from e
        attributes = {k: v for k, v in item.items() if k not in ("time", schema.value_field)}
        entries.append(TimedEntry(time=item["time"], value=item.get(schema.value_field), attributes=attributes))

    return QueryResult(function_name=schema.name, entries=entries)


class QueryDispatcher:
    """Builds the single-function request and validates the model's answer."""

    def __init__(
        self,
        backend: InferenceBackend,
        *,
        model: str | None = None,
        system_instruction: str | None = None,
        temperature: float = GENERATION_TEMPERATURE,
    ):
        self.backend = backend
        self.model = model or settings.gemini_model
        self.system_instruction = system_instruction or get_system_instruction()
        self.temperature = temperature
        self.metrics = PipelineMetrics()

    def build_request(self, prompt: str, asset: MediaAsset, schema: FunctionSchema) -> GenerationRequest:
        return GenerationRequest(
            model=self.model,
            prompt=prompt,
            asset_uri=asset.uri,
            asset_mime_type=asset.mime_type,
            system_instruction=self.system_instruction,
            function=schema,
            temperature=self.temperature,
        )

    async def generate(self, prompt: str, asset: MediaAsset, schema: FunctionSchema) -> QueryResult:
        """
        Ask the model about a READY asset and return its timecoded answer.

        Raises InvalidState if the asset is not READY (no backend call is made),
        SchemaViolation if the response is not exactly one well-formed call to
        `schema.name`.
        """
        if asset.state != AssetState.READY:
            raise InvalidState(f"Asset {asset.id} is {asset.state.value}, expected READY")

        with get_tracer().start_as_current_span("generate_timecodes") as span:
            span.set_attribute("asset_id", asset.id)
            span.set_attribute("function", schema.name)
            span.set_attribute("model", self.model)

            request = self.build_request(prompt, asset, schema)
            logger.info("Dispatching query", asset_id=asset.id, function=schema.name, model=self.model)
            response = await self.backend.generate_content(request)

            try:
                result = self._validate(response, schema)
            except SchemaViolation as e:
                self.metrics.record_schema_violation(e.reason)
                span.record_exception(e)
                logger.warning(
                    "Model response rejected",
                    asset_id=asset.id,
                    function=schema.name,
                    reason=e.reason,
                    detail=e.detail,
                    calls=[c.name for c in response.function_calls],
                )
                raise

            span.set_attribute("entries", len(result))
            logger.info("Query answered", asset_id=asset.id, function=schema.name, entries=len(result))
            return result

    async def run_mode(self, mode: str, asset: MediaAsset, query: str = "") -> QueryResult:
        """Dispatch one of the catalogued analysis modes (captions, chart, ...)."""
        prompt, function_name = get_mode_prompt(mode, query)
        return await self.generate(prompt, asset, get_function(function_name))

    @staticmethod
    def _validate(response: GenerationResponse, schema: FunctionSchema) -> QueryResult:
        outcome = classify_response(response, schema.name)
        if isinstance(outcome, SingleCall):
            return build_query_result(outcome.call, schema)
        if isinstance(outcome, MultipleCalls):
            raise SchemaViolation(SchemaViolation.AMBIGUOUS, f"{outcome.count} calls returned")
        if isinstance(outcome, NoCall):
            raise SchemaViolation(SchemaViolation.NO_CALL)
        raise TypeError(f"Unhandled call outcome: {outcome!r}")
