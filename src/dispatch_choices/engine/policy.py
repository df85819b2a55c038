"""Mutation policy shared by every option editor.

The policy is a pure function over an ordered option list.  It never fails:
a missing value, or an ``update`` request without a replacement, is an
unchanged outcome tagged with the reason so callers can tell the cases
apart.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Tuple

from ..notices import NoticeLevel, NoticeSink

__all__ = [
    "MutationAction",
    "MutationOutcome",
    "MutationRequest",
    "OutcomeReason",
    "apply_mutation",
    "report_outcome",
]


class MutationAction(str, Enum):
    """Edits supported on a choice input's option list."""

    ADD = "add"
    DELETE = "delete"
    UPDATE = "update"


class OutcomeReason(str, Enum):
    """Why a mutation did or did not change the option list."""

    APPLIED = "applied"
    ALREADY_PRESENT = "already_present"
    NOT_FOUND = "not_found"
    INVALID_REQUEST = "invalid_request"


@dataclass(frozen=True, slots=True)
class MutationRequest:
    """Validated edit targeting a single workflow_dispatch input."""

    action: MutationAction
    input_name: str
    choice_value: str
    new_choice_value: str | None = None


@dataclass(frozen=True, slots=True)
class MutationOutcome:
    """Result of running the policy against an option list."""

    options: Tuple[str, ...]
    changed: bool
    reason: OutcomeReason

    @property
    def duplicates(self) -> Tuple[str, ...]:
        """Values that occur more than once in ``options``."""

        seen: set[str] = set()
        repeated: List[str] = []
        for value in self.options:
            if value in seen and value not in repeated:
                repeated.append(value)
            seen.add(value)
        return tuple(repeated)


def _index_of(options: Sequence[str], value: str) -> int:
    for index, candidate in enumerate(options):
        if candidate == value:
            return index
    return -1


def apply_mutation(options: Sequence[str], request: MutationRequest) -> MutationOutcome:
    """Compute the option list produced by ``request``."""

    current = list(options)
    action = MutationAction(request.action)
    value = request.choice_value

    if action is MutationAction.ADD:
        if _index_of(current, value) != -1:
            return MutationOutcome(tuple(current), False, OutcomeReason.ALREADY_PRESENT)
        current.append(value)
        return MutationOutcome(tuple(current), True, OutcomeReason.APPLIED)

    if action is MutationAction.DELETE:
        index = _index_of(current, value)
        if index == -1:
            return MutationOutcome(tuple(current), False, OutcomeReason.NOT_FOUND)
        del current[index]
        return MutationOutcome(tuple(current), True, OutcomeReason.APPLIED)

    replacement = request.new_choice_value
    if not replacement:
        return MutationOutcome(tuple(current), False, OutcomeReason.INVALID_REQUEST)
    index = _index_of(current, value)
    if index == -1:
        return MutationOutcome(tuple(current), False, OutcomeReason.NOT_FOUND)
    current[index] = replacement
    return MutationOutcome(tuple(current), True, OutcomeReason.APPLIED)


def report_outcome(request: MutationRequest, outcome: MutationOutcome, sink: NoticeSink) -> None:
    """Describe ``outcome`` to ``sink`` in user-facing terms."""

    name = request.input_name
    value = request.choice_value
    action = MutationAction(request.action)

    if outcome.reason is OutcomeReason.INVALID_REQUEST:
        sink.notify(
            NoticeLevel.WARNING,
            f'Update of choice "{value}" in input "{name}" has no replacement value; nothing changed',
        )
        return

    if action is MutationAction.ADD:
        if outcome.changed:
            sink.notify(NoticeLevel.INFO, f'Added choice "{value}" to input "{name}"')
        else:
            sink.notify(NoticeLevel.INFO, f'Choice "{value}" already exists in input "{name}"')
    elif not outcome.changed:
        sink.notify(NoticeLevel.INFO, f'Choice "{value}" not found in input "{name}"')
    elif action is MutationAction.DELETE:
        sink.notify(NoticeLevel.INFO, f'Deleted choice "{value}" from input "{name}"')
    else:
        sink.notify(
            NoticeLevel.INFO,
            f'Updated choice "{value}" to "{request.new_choice_value}" in input "{name}"',
        )

    if action is MutationAction.UPDATE and outcome.changed and request.new_choice_value in outcome.duplicates:
        sink.notify(
            NoticeLevel.WARNING,
            f'Choice "{request.new_choice_value}" now appears more than once in input "{name}"',
        )
