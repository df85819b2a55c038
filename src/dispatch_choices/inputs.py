"""Validated inputs for a workflow choice update run."""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from .engine.policy import MutationAction, MutationRequest

__all__ = [
    "DEFAULT_COMMIT_MESSAGE",
    "InputValidationError",
    "UpdateInputs",
    "parse_workflow_list",
    "validate_inputs",
]

DEFAULT_COMMIT_MESSAGE = "chore: update workflow dispatch choices"


class InputValidationError(ValueError):
    """Raised when update inputs are missing or inconsistent."""


def parse_workflow_list(raw: str) -> List[str]:
    """Split a comma separated workflow list, dropping blanks."""

    return [item.strip() for item in raw.split(",") if item.strip()]


class UpdateInputs(BaseModel):
    """Everything needed to update one input across several workflows."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    action: MutationAction
    input_name: str
    workflows: List[str]
    choice_value: str
    new_choice_value: Optional[str] = None
    commit_message: str = DEFAULT_COMMIT_MESSAGE
    branch: Optional[str] = None

    @field_validator("action", mode="before")
    @classmethod
    def _normalise_action(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("workflows", mode="before")
    @classmethod
    def _split_workflows(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_workflow_list(value)
        if isinstance(value, (list, tuple)):
            return [str(item).strip() for item in value if str(item).strip()]
        return value

    @field_validator("input_name", "choice_value", "commit_message", mode="before")
    @classmethod
    def _strip_required(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("new_choice_value", "branch", mode="before")
    @classmethod
    def _blank_as_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @model_validator(mode="after")
    def _check_consistency(self) -> "UpdateInputs":
        if not self.input_name:
            raise ValueError("input-name is required")
        if not self.choice_value:
            raise ValueError("choice-value is required")
        if not self.workflows:
            raise ValueError("At least one workflow file must be specified")
        if self.action is MutationAction.UPDATE and not self.new_choice_value:
            raise ValueError("new-choice-value is required for the update action")
        if not self.commit_message:
            raise ValueError("commit-message must not be empty")
        return self

    def to_request(self) -> MutationRequest:
        return MutationRequest(
            action=self.action,
            input_name=self.input_name,
            choice_value=self.choice_value,
            new_choice_value=self.new_choice_value,
        )


def _describe(error: ValidationError) -> str:
    messages: List[str] = []
    for entry in error.errors():
        message = str(entry.get("msg", "invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        location = ".".join(str(part) for part in entry.get("loc", ()))
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)


def validate_inputs(**raw: Any) -> UpdateInputs:
    """Build :class:`UpdateInputs`, raising :class:`InputValidationError` on failure."""

    try:
        return UpdateInputs(**raw)
    except ValidationError as error:
        raise InputValidationError(_describe(error)) from error
