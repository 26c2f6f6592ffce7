"""Execution result types.

ExecutionResult is the tagged union handed to the ResponseNormalizer:
SuccessResult | SetupNeeded | ErrorResult.
"""

from typing import Any, Literal, Union

from pydantic import BaseModel, Field

from relay_tools.base import OAuthProvider, UtilityProvider
from relay_tools.exceptions import ErrorKind
from relay_tools.schemas import WireModel


class SuccessResult(BaseModel):
    status: Literal["success"] = "success"
    data: Any = None


class SetupNeeded(WireModel):
    """Required credentials or consent are missing; not an error."""

    status: Literal["setup_needed"] = Field("setup_needed", exclude=True)
    provider: UtilityProvider
    oauth_provider: OAuthProvider | None = None
    title: str
    message: str
    description: str | None = None
    button_text: str | None = None
    required_secret_inputs: list[str] = Field(default_factory=list)
    required_action_confirmations: list[str] = Field(default_factory=list)
    required_scopes: list[str] = Field(default_factory=list)
    setup_url: str | None = None


class ErrorResult(BaseModel):
    status: Literal["error"] = "error"
    kind: ErrorKind
    message: str
    details: Any = None


ExecutionResult = Union[SuccessResult, SetupNeeded, ErrorResult]
