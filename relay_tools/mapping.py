"""Request Mapper.

Translates validated input parameters into a concrete HTTP request using the
tool's explicit parameter mappings. Parameters that no mapping mentions are
dropped; nothing is passed through implicitly.
"""

from typing import Any
from urllib.parse import quote, urlencode

from pydantic import BaseModel, Field

from relay_tools.base import BODYLESS_METHODS, HttpMethod
from relay_tools.exceptions import ConfigurationError, ToolValidationError
from relay_tools.schemas import PLACEHOLDER_PATTERN, ApiDetails, QueryMapping

_SCALARS = (str, int, float, bool)


class PreparedRequest(BaseModel):
    """Outgoing request, ready for authentication and execution."""

    method: HttpMethod
    url: str
    query: list[tuple[str, str]] = Field(default_factory=list)
    headers: dict[str, str] = Field(default_factory=dict)
    json_body: dict[str, Any] | None = None

    @property
    def full_url(self) -> str:
        """URL with the encoded query string (commas kept literal)."""
        if not self.query:
            return self.url
        return f"{self.url}?{urlencode(self.query, safe=',', quote_via=quote)}"

    def set_header(self, name: str, value: str) -> None:
        """Set a header, replacing any existing one case-insensitively."""
        for existing in [k for k in self.headers if k.lower() == name.lower()]:
            del self.headers[existing]
        self.headers[name] = value

    def get_header(self, name: str) -> str | None:
        for key, value in self.headers.items():
            if key.lower() == name.lower():
                return value
        return None


def _scalar_to_str(param: str, value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, _SCALARS):
        return str(value)
    raise ToolValidationError(
        f"Parameter '{param}' must be a scalar value; {type(value).__name__} "
        "values need a transform",
        details={"parameter": param},
    )


class RequestMapper:
    """Builds PreparedRequests from ApiDetails and input parameters."""

    def build_request(self, api_details: ApiDetails, params: dict[str, Any]) -> PreparedRequest:
        """Map input parameters onto path, query and body.

        Args:
            api_details: Tool's API call details
            params: Validated input parameters

        Returns:
            PreparedRequest with static headers applied (no auth yet)

        Raises:
            ToolValidationError: Missing or non-mappable parameter values
            ConfigurationError: Unsupported transform
        """
        path = self._build_path(api_details, params)
        query = self._build_query(api_details, params)
        body = self._build_body(api_details, params)

        request = PreparedRequest(
            method=api_details.method,
            url=f"{api_details.base_url}{path}",
            query=query,
            json_body=body,
        )
        for name, value in api_details.static_headers.items():
            request.set_header(name, value)
        return request

    def _build_path(self, api_details: ApiDetails, params: dict[str, Any]) -> str:
        param_by_placeholder = {
            placeholder: param for param, placeholder in api_details.param_mappings.path.items()
        }

        def substitute(match) -> str:
            placeholder = match.group(1)
            param = param_by_placeholder.get(placeholder, placeholder)
            value = params.get(param)
            if value is None or value == "":
                if placeholder in param_by_placeholder:
                    raise ToolValidationError(
                        f"Missing required path parameter: {param}",
                        details={"parameter": param, "placeholder": placeholder},
                    )
                raise ToolValidationError(
                    f"Unresolved path parameter: {placeholder}",
                    details={"placeholder": placeholder},
                )
            return quote(_scalar_to_str(param, value), safe="")

        return PLACEHOLDER_PATTERN.sub(substitute, api_details.path_template)

    def _build_query(
        self, api_details: ApiDetails, params: dict[str, Any]
    ) -> list[tuple[str, str]]:
        query: list[tuple[str, str]] = []
        for param, mapping in api_details.param_mappings.query.items():
            value = params.get(param)
            if value is None:
                continue

            if isinstance(mapping, str):
                query.append((mapping, _scalar_to_str(param, value)))
                continue

            query.append((mapping.target, self._apply_transform(param, mapping, value)))
        return query

    def _apply_transform(self, param: str, mapping: QueryMapping, value: Any) -> str:
        if mapping.transform is None:
            return _scalar_to_str(param, value)
        if mapping.transform == "joinComma":
            if not isinstance(value, list):
                raise ToolValidationError(
                    f"Parameter '{param}' must be an array for the joinComma transform",
                    details={"parameter": param},
                )
            return ",".join(_scalar_to_str(param, item) for item in value)
        raise ConfigurationError(
            f"Unsupported query transform '{mapping.transform}' for parameter '{param}'"
        )

    def _build_body(
        self, api_details: ApiDetails, params: dict[str, Any]
    ) -> dict[str, Any] | None:
        if api_details.method in BODYLESS_METHODS:
            return None

        body: dict[str, Any] = {}
        for param, field_name in api_details.param_mappings.body.items():
            value = params.get(param)
            if value is not None:
                body[field_name] = value
        return body
