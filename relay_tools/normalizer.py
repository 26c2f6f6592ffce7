"""Response Normalizer.

The single place that turns engine outcomes into the three-way envelope:

    Success:      {ok: true, data}
    SetupNeeded:  {ok: false, needsSetup: true, provider, oauthProvider?, title, message, ...}
    Error:        {ok: false, needsSetup: false, kind, message, details?}
"""

import json
from typing import Any

from relay_obs.logging import get_logger
from relay_tools.exceptions import ErrorKind, ToolEngineError
from relay_tools.results import ErrorResult, ExecutionResult, SetupNeeded, SuccessResult

logger = get_logger(__name__)


class ResponseNormalizer:
    """Builds envelopes from results and errors."""

    def success(self, data: Any) -> SuccessResult:
        return SuccessResult(data=data)

    def from_error(self, error: ToolEngineError) -> ErrorResult:
        return ErrorResult(kind=error.kind, message=error.message, details=error.details)

    def unexpected(self, error: Exception) -> ErrorResult:
        return ErrorResult(
            kind=ErrorKind.INTERNAL_ERROR,
            message=f"Tool Execution Failed: {error}",
            details={"type": type(error).__name__},
        )

    def to_envelope(self, result: ExecutionResult) -> dict[str, Any]:
        """Serialize a result into the envelope returned to the agent layer."""
        if isinstance(result, SuccessResult):
            return {"ok": True, "data": result.data}

        if isinstance(result, SetupNeeded):
            return {"ok": False, "needsSetup": True, **result.to_wire()}

        envelope: dict[str, Any] = {
            "ok": False,
            "needsSetup": False,
            "kind": result.kind.value,
            "message": result.message,
        }
        if result.details is not None:
            details = self._serializable_details(result)
            if isinstance(details, ErrorResult):
                return self.to_envelope(details)
            envelope["details"] = details
        return envelope

    def _serializable_details(self, result: ErrorResult) -> Any:
        try:
            return json.loads(json.dumps(result.details))
        except (TypeError, ValueError) as e:
            logger.warning("error_details_not_serializable", kind=result.kind.value, error=str(e))
            return ErrorResult(
                kind=ErrorKind.SERIALIZATION_ERROR,
                message=f"Failed to serialize details for {result.kind.value}: {result.message}",
                details={"original_kind": result.kind.value, "repr": repr(result.details)[:500]},
            )
