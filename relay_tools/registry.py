"""Tool Registry.

Explicit registry of ToolConfigs, constructed at startup and injected into the
ToolEngine. Configs are validated when registered, never at call time.
"""

import json
from importlib import resources
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from relay_obs.logging import get_logger
from relay_tools.base import UtilityProvider
from relay_tools.exceptions import ConfigurationError, ToolNotFoundError
from relay_tools.schemas import ToolConfig
from relay_tools.validation import check_input_schema, normalize_input_schema

logger = get_logger(__name__)


class DuplicateToolError(ConfigurationError):
    """A tool with the same id is already registered."""

    pass


def parse_tool_config(document: dict[str, Any]) -> ToolConfig:
    """Parse and validate a ToolConfig wire document.

    Raises:
        ConfigurationError: Document violates the ToolConfig shape or invariants
    """
    try:
        config = ToolConfig.model_validate(document)
    except ValidationError as e:
        tool_id = document.get("id") if isinstance(document, dict) else None
        raise ConfigurationError(
            f"Invalid tool configuration '{tool_id or '<unknown>'}'",
            details=[
                {"loc": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                for err in e.errors()
            ],
        ) from e
    check_input_schema(config)
    return config


class ToolRegistry:
    """Registry of declaratively configured tools."""

    def __init__(self):
        self._tools: dict[str, ToolConfig] = {}

    def register(self, config: ToolConfig | dict[str, Any]) -> ToolConfig:
        """Register a tool.

        Args:
            config: ToolConfig or its camelCase JSON document

        Returns:
            The registered ToolConfig

        Raises:
            ConfigurationError: Invalid definition
            DuplicateToolError: Id already registered
        """
        if isinstance(config, ToolConfig):
            check_input_schema(config)
        else:
            config = parse_tool_config(config)

        if config.id in self._tools:
            raise DuplicateToolError(f"Tool with ID '{config.id}' already exists.")

        self._tools[config.id] = config
        logger.info(
            "tool_registered",
            tool_id=config.id,
            provider=config.provider.value,
            auth_method=config.auth_method.value,
        )
        return config

    def get(self, tool_id: str) -> ToolConfig | None:
        """Get tool by id."""
        return self._tools.get(tool_id)

    def require(self, tool_id: str) -> ToolConfig:
        """Get tool by id.

        Raises:
            ToolNotFoundError: No such tool
        """
        config = self._tools.get(tool_id)
        if config is None:
            raise ToolNotFoundError(f"Tool configuration with ID '{tool_id}' not found.")
        return config

    def list_tools(self) -> list[dict[str, str]]:
        """List registered tools (id and description)."""
        return [
            {"id": config.id, "description": config.description}
            for config in self._tools.values()
        ]

    def filter_by_provider(self, provider: UtilityProvider | str) -> list[ToolConfig]:
        """Filter tools by provider."""
        provider = UtilityProvider(provider)
        return [t for t in self._tools.values() if t.provider == provider]

    def describe(self, tool_id: str) -> dict[str, Any]:
        """Describe a tool for a calling agent (no secrets, no endpoint details)."""
        config = self.require(tool_id)
        return {
            "id": config.id,
            "description": config.description,
            "provider": config.provider.value,
            "authMethod": config.auth_method.value,
            "inputSchema": normalize_input_schema(config.input_schema),
        }

    def load_file(self, path: str | Path) -> ToolConfig:
        """Register a tool from a JSON file."""
        path = Path(path)
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Tool configuration {path.name} is not valid JSON: {e}") from e
        return self.register(document)

    def load_directory(self, directory: str | Path) -> int:
        """Register every *.json tool configuration in a directory.

        Returns:
            Number of tools registered
        """
        count = 0
        for path in sorted(Path(directory).glob("*.json")):
            self.load_file(path)
            count += 1
        return count

    def __contains__(self, tool_id: str) -> bool:
        return tool_id in self._tools

    def __len__(self) -> int:
        return len(self._tools)


def load_catalog(registry: ToolRegistry) -> int:
    """Register the bundled tool catalog.

    Returns:
        Number of tools registered
    """
    count = 0
    catalog = resources.files("relay_tools") / "catalog"
    for entry in sorted(catalog.iterdir(), key=lambda e: e.name):
        if entry.name.endswith(".json"):
            registry.register(json.loads(entry.read_text(encoding="utf-8")))
            count += 1
    return count
