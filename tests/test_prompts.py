"""Tests for the prompt catalog and the stock function schemas."""

import pytest

from shared.config import settings
from timelens.functions import FUNCTIONS, get_function
from timelens.prompts_loader import (
    get_mode_prompt,
    get_system_instruction,
    list_modes,
    reload_prompts,
)


@pytest.fixture
def prompts_file(tmp_path, monkeypatch):
    """Point the loader at a temporary YAML file and restore the cache afterwards."""
    path = tmp_path / "prompts.yaml"
    monkeypatch.setattr(settings, "prompts_path", str(path))
    reload_prompts()
    yield path
    reload_prompts()


# --- modes from config/prompts.yaml ---


def test_all_modes_listed():
    assert list_modes() == ["captions", "chart", "haiku", "key_moments", "paragraph", "table"]


def test_every_mode_targets_a_known_function():
    for mode in list_modes():
        query = "excitement" if mode == "chart" else ""
        _, function_name = get_mode_prompt(mode, query)
        assert function_name in FUNCTIONS


def test_table_mode_uses_objects_function():
    prompt, function_name = get_mode_prompt("table")
    assert function_name == "set_timecodes_with_objects"
    assert "key shots" in prompt


def test_chart_preset_expands():
    prompt, function_name = get_mode_prompt("chart", "people")
    assert function_name == "set_timecodes_with_numeric_values"
    assert "count the number of people" in prompt


def test_chart_free_text_query():
    prompt, _ = get_mode_prompt("chart", "how loud is each scene from 1 to 5")
    assert "how loud is each scene from 1 to 5" in prompt


def test_chart_requires_query():
    with pytest.raises(ValueError):
        get_mode_prompt("chart", "  ")


def test_extra_query_appended_to_fixed_template():
    prompt, _ = get_mode_prompt("captions", "Focus on the dialogue.")
    assert prompt.endswith("\nFocus on the dialogue.")


def test_unknown_mode():
    with pytest.raises(KeyError):
        get_mode_prompt("storyboard")


# --- file handling ---


def test_missing_file_falls_back_to_builtin(prompts_file):
    assert not prompts_file.exists()
    assert "captions" in list_modes()
    assert "only once" in get_system_instruction()


def test_partial_file_merges_with_builtin(prompts_file):
    prompts_file.write_text(
        "modes:\n"
        "  shots:\n"
        "    function: set_timecodes\n"
        "    template: List the camera cuts.\n",
        encoding="utf-8",
    )
    assert set(list_modes()) == {"captions", "chart", "shots"}
    assert get_mode_prompt("shots") == ("List the camera cuts.", "set_timecodes")
    assert "only once" in get_system_instruction()


def test_invalid_yaml_falls_back_to_builtin(prompts_file):
    prompts_file.write_text("modes: [unclosed\n", encoding="utf-8")
    assert "chart" in list_modes()


# --- function catalog ---


def test_function_catalog():
    assert sorted(FUNCTIONS) == [
        "set_timecodes",
        "set_timecodes_with_numeric_values",
        "set_timecodes_with_objects",
    ]
    for name, fn in FUNCTIONS.items():
        assert fn.name == name
        assert fn.entries_field == "timecodes"
        assert fn.parameters["required"] == ["timecodes"]


def test_numeric_function_value_is_number():
    item = get_function("set_timecodes_with_numeric_values").parameters["properties"]["timecodes"]["items"]
    assert item["properties"]["value"] == {"type": "number"}


def test_unknown_function():
    with pytest.raises(KeyError):
        get_function("set_everything")
