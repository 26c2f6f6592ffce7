"""Input validation tests (JSON Schema)."""

import pytest

from relay_tools.exceptions import ConfigurationError, ToolValidationError
from relay_tools.schemas import ToolConfig
from relay_tools.validation import check_input_schema, normalize_input_schema, validate_input

from conftest import item_tool


@pytest.fixture
def config():
    return ToolConfig.model_validate(
        item_tool(
            inputSchema={
                "type": "object",
                "properties": {
                    "itemId": {"type": "string"},
                    "limit": {"type": "integer", "minimum": 1},
                },
                "required": ["itemId"],
            }
        )
    )


def test_valid_input_passes(config):
    """Test valid input passes."""
    params = {"itemId": "42", "limit": 5}

    assert validate_input(config, params) == params


def test_missing_required_field(config):
    """Test missing required field."""
    with pytest.raises(ToolValidationError) as exc_info:
        validate_input(config, {})

    assert exc_info.value.message == "Input validation failed."
    assert exc_info.value.details == [
        {"path": "/", "message": "'itemId' is a required property"}
    ]


def test_all_errors_reported_with_paths(config):
    """Test all errors reported with paths."""
    with pytest.raises(ToolValidationError) as exc_info:
        validate_input(config, {"itemId": 42, "limit": 0})

    paths = [detail["path"] for detail in exc_info.value.details]
    assert paths == ["/itemId", "/limit"]


def test_non_object_params_rejected(config):
    """Test non object params rejected."""
    with pytest.raises(ToolValidationError):
        validate_input(config, ["itemId"])


def test_empty_schema_accepts_any_object():
    """Test empty schema accepts any object."""
    config = ToolConfig.model_validate({"id": "plain", "provider": "crisp"})

    assert validate_input(config, {"anything": 1}) == {"anything": 1}


def test_bare_properties_map_normalized():
    """Test bare properties map normalized."""
    schema = normalize_input_schema(
        {
            "email": {"type": "string", "required": True},
            "limit": {"type": "integer", "required": False},
        }
    )

    assert schema == {
        "type": "object",
        "properties": {"email": {"type": "string"}, "limit": {"type": "integer"}},
        "required": ["email"],
    }


def test_normalize_does_not_mutate_original():
    """Test normalize does not mutate original."""
    original = {"email": {"type": "string", "required": True}}

    normalize_input_schema(original)

    assert original == {"email": {"type": "string", "required": True}}


def test_invalid_schema_fails_check():
    """Test invalid schema fails check."""
    config = ToolConfig.model_validate(
        item_tool(inputSchema={"type": "object", "properties": {"itemId": {"type": "text"}}})
    )

    with pytest.raises(ConfigurationError):
        check_input_schema(config)
