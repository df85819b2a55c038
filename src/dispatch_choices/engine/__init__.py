"""Workflow document mutation engine."""

from .base import EditResult, EditStrategy, OptionEditor
from .dispatcher import MutationResult, extract_options, mutate, mutate_document, splice_options
from .fallback import FallbackScanner
from .policy import MutationAction, MutationOutcome, MutationRequest, OutcomeReason, apply_mutation
from .structural import DocumentParseError, StructuralEditError, StructuralEditor, UnsafeSerializationError

__all__ = [
    "DocumentParseError",
    "EditResult",
    "EditStrategy",
    "FallbackScanner",
    "MutationAction",
    "MutationOutcome",
    "MutationRequest",
    "MutationResult",
    "OptionEditor",
    "OutcomeReason",
    "StructuralEditError",
    "StructuralEditor",
    "UnsafeSerializationError",
    "apply_mutation",
    "extract_options",
    "mutate",
    "mutate_document",
    "splice_options",
]
