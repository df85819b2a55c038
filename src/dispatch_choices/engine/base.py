"""Interface shared by the structural and line-oriented option editors."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, List, Sequence, Tuple

from ..notices import NoticeLog, NoticeSink
from .policy import MutationOutcome, MutationRequest, apply_mutation, report_outcome

__all__ = ["EditResult", "EditStrategy", "OptionEditor"]


class EditStrategy(str, Enum):
    """Strategy that produced an edit."""

    STRUCTURAL = "structural"
    FALLBACK = "fallback"


@dataclass(frozen=True, slots=True)
class EditResult:
    """Rendered document plus the option list it now carries."""

    text: str
    changed: bool
    options: Tuple[str, ...]
    strategy: EditStrategy
    outcome: MutationOutcome | None = None


class OptionEditor(ABC):
    """Read, mutate and re-render the option list of one choice input.

    Subclasses supply :meth:`read_options` and :meth:`splice`; the mutation
    policy and the notices it produces live here so both strategies agree on
    semantics.
    """

    strategy: ClassVar[EditStrategy]

    def __init__(self, notices: NoticeSink | None = None) -> None:
        self.notices: NoticeSink = notices if notices is not None else NoticeLog()

    @abstractmethod
    def read_options(self, text: str, input_name: str) -> List[str] | None:
        """Return the current options, or ``None`` when they cannot be located."""

    @abstractmethod
    def splice(self, text: str, input_name: str, options: Sequence[str]) -> str:
        """Return ``text`` with the input's option list replaced by ``options``."""

    def apply(self, text: str, request: MutationRequest) -> EditResult:
        current = self.read_options(text, request.input_name)
        if current is None:
            return EditResult(text=text, changed=False, options=(), strategy=self.strategy)

        outcome = apply_mutation(current, request)
        report_outcome(request, outcome, self.notices)
        if not outcome.changed:
            return EditResult(
                text=text,
                changed=False,
                options=outcome.options,
                strategy=self.strategy,
                outcome=outcome,
            )

        rendered = self.splice(text, request.input_name, outcome.options)
        return EditResult(
            text=rendered,
            changed=True,
            options=outcome.options,
            strategy=self.strategy,
            outcome=outcome,
        )
