"""Edit the options of workflow_dispatch choice inputs while keeping formatting intact."""

from .engine import (
    EditStrategy,
    MutationAction,
    MutationOutcome,
    MutationRequest,
    MutationResult,
    OutcomeReason,
    extract_options,
    mutate,
    mutate_document,
    splice_options,
)
from .inputs import InputValidationError, UpdateInputs, validate_inputs
from .notices import LoggingNoticeSink, Notice, NoticeLevel, NoticeLog, NoticeSink
from .updater import UpdateResult, update_workflow_choices

__all__ = [
    "EditStrategy",
    "InputValidationError",
    "LoggingNoticeSink",
    "MutationAction",
    "MutationOutcome",
    "MutationRequest",
    "MutationResult",
    "Notice",
    "NoticeLevel",
    "NoticeLog",
    "NoticeSink",
    "OutcomeReason",
    "UpdateInputs",
    "UpdateResult",
    "extract_options",
    "mutate",
    "mutate_document",
    "splice_options",
    "update_workflow_choices",
    "validate_inputs",
]
