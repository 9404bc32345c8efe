"""
Stock function schemas offered to the model. Each one takes a single
`timecodes` array; they differ in what every item carries.
"""
from __future__ import annotations

from shared.schemas import FunctionSchema

SET_TIMECODES = FunctionSchema(
    name="set_timecodes",
    description="Set the timecodes for the video with associated text",
    parameters={
        "type": "object",
        "properties": {
            "timecodes": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "time": {"type": "string"},
                        "text": {"type": "string"},
                    },
                    "required": ["time", "text"],
                },
            },
        },
        "required": ["timecodes"],
    },
    value_field="text",
)

SET_TIMECODES_WITH_OBJECTS = FunctionSchema(
    name="set_timecodes_with_objects",
    description="Set the timecodes for the video with associated text and object list",
    parameters={
        "type": "object",
        "properties": {
            "timecodes": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "time": {"type": "string"},
                        "text": {"type": "string"},
                        "objects": {
                            "type": "array",
                            "items": {"type": "string"},
                        },
                    },
                    "required": ["time", "text", "objects"],
                },
            },
        },
        "required": ["timecodes"],
    },
    value_field="text",
)

SET_TIMECODES_WITH_NUMERIC_VALUES = FunctionSchema(
    name="set_timecodes_with_numeric_values",
    description="Set the timecodes for the video with associated numeric values",
    parameters={
        "type": "object",
        "properties": {
            "timecodes": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "time": {"type": "string"},
                        "value": {"type": "number"},
                    },
                    "required": ["time", "value"],
                },
            },
        },
        "required": ["timecodes"],
    },
    value_field="value",
)

FUNCTIONS: dict[str, FunctionSchema] = {
    fn.name: fn
    for fn in (SET_TIMECODES, SET_TIMECODES_WITH_OBJECTS, SET_TIMECODES_WITH_NUMERIC_VALUES)
}


def get_function(name: str) -> FunctionSchema:
    """Look up a stock function schema by name. Raises KeyError for unknown names."""
    try:
        return FUNCTIONS[name]
    except KeyError:
        raise KeyError(f"Unknown function '{name}'. Known: {', '.join(sorted(FUNCTIONS))}") from None
