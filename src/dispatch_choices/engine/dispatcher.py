"""Choose between the structural editor and the fallback scanner.

Every call starts in the structural state.  A parse failure, or a
serialization the structural editor refuses to trust, moves the call to the
fallback scanner exactly once; the scanner's answer is final.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from ..notices import Notice, NoticeLevel, NoticeLog, NoticeSink
from . import fallback
from .base import EditResult, EditStrategy
from .fallback import FallbackScanner
from .policy import MutationRequest
from .structural import DocumentParseError, StructuralEditError, StructuralEditor

__all__ = ["MutationResult", "extract_options", "mutate", "mutate_document", "splice_options"]


@dataclass(frozen=True, slots=True)
class MutationResult:
    """Outcome of :func:`mutate_document`."""

    text: str
    changed: bool
    options: Tuple[str, ...]
    strategy: EditStrategy
    notices: Tuple[Notice, ...] = ()

    @classmethod
    def from_edit(cls, edit: EditResult, notices: NoticeLog) -> "MutationResult":
        return cls(
            text=edit.text,
            changed=edit.changed,
            options=edit.options,
            strategy=edit.strategy,
            notices=notices.snapshot(),
        )


def mutate_document(
    text: str,
    request: MutationRequest,
    *,
    notices: NoticeSink | None = None,
) -> MutationResult:
    """Apply ``request`` to ``text`` and describe how it went.

    Notices from an abandoned structural attempt are discarded; ``notices``
    only receives the ones belonging to the strategy that produced the result.
    """

    log = NoticeLog()
    try:
        edit = StructuralEditor(log).apply(text, request)
    except StructuralEditError as error:
        log = NoticeLog()
        if isinstance(error, DocumentParseError):
            log.notify(NoticeLevel.WARNING, f"{error}; falling back to line-based editing")
        else:
            log.notify(NoticeLevel.WARNING, f"{error}; retrying with line-based editing")
        edit = FallbackScanner(log).apply(text, request)

    if notices is not None:
        for notice in log.notices:
            notices.notify(notice.level, notice.message)
    return MutationResult.from_edit(edit, log)


def mutate(text: str, request: MutationRequest, *, notices: NoticeSink | None = None) -> str:
    """Return ``text`` with ``request`` applied (unchanged text when nothing changed)."""

    return mutate_document(text, request, notices=notices).text


def extract_options(text: str, input_name: str) -> List[str]:
    """Return the options of ``input_name``; empty when it has none.

    The parsed tree is consulted first, so flow-style lists and non-string
    scalars are read the same way :func:`mutate_document` sees them.  Text
    that does not parse is handed to the line scanner.
    """

    try:
        options = StructuralEditor(NoticeLog()).read_options(text, input_name)
    except DocumentParseError:
        return fallback.extract(text.splitlines(keepends=True), input_name)
    return options if options is not None else []


def splice_options(text: str, input_name: str, options: Sequence[str]) -> str:
    """Replace only the options block of ``input_name`` inside ``text``."""

    return FallbackScanner().splice(text, input_name, options)
