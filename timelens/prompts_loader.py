"""
Load the system instruction and analysis modes from YAML config. Falls back to
built-in defaults if the file is missing.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from shared.config import settings

logger = logging.getLogger(__name__)

# Resolve path: timelens/prompts_loader.py -> config/prompts.yaml
_CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"
_PROMPTS_PATH = _CONFIG_DIR / "prompts.yaml"

_BuiltinDefaults: dict[str, Any] = {
    "system_instruction": (
        "When given a video and a query, call the relevant function only once "
        "with the appropriate timecodes and text for the video"
    ),
    "modes": {
        "captions": {
            "function": "set_timecodes",
            "template": (
                "For each scene in this video, generate captions that describe the "
                "scene along with any spoken text placed in quotation marks. Place each "
                "caption into an object sent to set_timecodes with the timecode of the "
                "caption in the video."
            ),
        },
        "chart": {
            "function": "set_timecodes_with_numeric_values",
            "template": (
                "Generate chart data for this video based on the following instructions: "
                "{query}. Call set_timecodes_with_numeric_values once with the list of "
                "data values and timecodes."
            ),
            "presets": {},
        },
    },
}


def _prompts_path() -> Path:
    return Path(settings.prompts_path) if settings.prompts_path else _PROMPTS_PATH


def _load_yaml() -> dict[str, Any]:
    """Load prompts from YAML file or return built-in defaults."""
    path = _prompts_path()
    if not path.exists():
        logger.debug("Prompts config not found at %s, using built-in defaults", path)
        return _deep_merge({}, _BuiltinDefaults)

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Failed to load prompts from %s: %s. Using built-in defaults.", path, e)
        return _deep_merge({}, _BuiltinDefaults)
    if not isinstance(data, dict):
        return _deep_merge({}, _BuiltinDefaults)
    # Deep merge with defaults so missing keys fall back
    return _deep_merge(_BuiltinDefaults, data)


def _deep_merge(base: dict, override: dict) -> dict:
    """Merge override into base recursively. Override values take precedence."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _get_prompts_data() -> dict[str, Any]:
    """Lazy load prompts data (cached)."""
    if not hasattr(_get_prompts_data, "_cache"):
        _get_prompts_data._cache = _load_yaml()
    return _get_prompts_data._cache


def reload_prompts() -> None:
    """Drop the cache so the next lookup re-reads the YAML file."""
    if hasattr(_get_prompts_data, "_cache"):
        del _get_prompts_data._cache


def get_system_instruction() -> str:
    return str(_get_prompts_data().get("system_instruction", _BuiltinDefaults["system_instruction"]))


def list_modes() -> list[str]:
    modes = _get_prompts_data().get("modes", {})
    return sorted(modes) if isinstance(modes, dict) else []


def get_mode_prompt(mode: str, query: str = "") -> tuple[str, str]:
    """
    Render the prompt for an analysis mode. Returns (prompt_text, function_name).

    For templates with a {query} slot the query is required; a query naming one
    of the mode's presets (e.g. 'excitement') is replaced by the preset text.
    """
    modes = _get_prompts_data().get("modes", {})
    mode_config = modes.get(mode) if isinstance(modes, dict) else None
    if not isinstance(mode_config, dict) or not mode_config.get("template"):
        raise KeyError(f"Unknown analysis mode '{mode}'. Known: {', '.join(list_modes())}")

    template: str = mode_config["template"]
    function_name: str = mode_config.get("function", "set_timecodes")

    if "{query}" in template:
        presets = mode_config.get("presets") or {}
        query = query.strip()
        query = presets.get(query.lower(), query) if isinstance(presets, dict) else query
        if not query:
            raise ValueError(f"Mode '{mode}' needs a query")
        return template.format(query=query), function_name

    if query.strip():
        return f"{template}\n{query.strip()}", function_name
    return template, function_name
