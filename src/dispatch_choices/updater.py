"""Apply one choice update across several workflow files and commit the results."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from .engine.dispatcher import mutate_document
from .inputs import UpdateInputs
from .notices import LoggingNoticeSink, NoticeLevel, NoticeSink
from .tools.stores import (
    DEFAULT_WORKFLOWS_DIR,
    CommitStatus,
    DocumentNotFoundError,
    DocumentStore,
    NotAFileError,
    RevisionConflictError,
    workflow_path,
)

__all__ = ["UpdateResult", "update_workflow_choices"]

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class UpdateResult:
    """Workflows that received a commit during an update run."""

    updated_workflows: List[str] = field(default_factory=list)

    @property
    def changes_made(self) -> bool:
        return bool(self.updated_workflows)


def update_workflow_choices(
    store: DocumentStore,
    inputs: UpdateInputs,
    *,
    workflows_dir: str = DEFAULT_WORKFLOWS_DIR,
    notices: NoticeSink | None = None,
) -> UpdateResult:
    """Fetch, mutate and commit each workflow named in ``inputs``.

    Workflows that are missing (or are not files) are skipped with a warning.
    A workflow that changed between fetch and commit raises
    :class:`RevisionConflictError`; any other store failure propagates.
    """

    sink = notices if notices is not None else LoggingNoticeSink(LOGGER)
    request = inputs.to_request()
    result = UpdateResult()

    for workflow in inputs.workflows:
        path = workflow_path(workflow, workflows_dir)
        try:
            document = store.fetch(path)
        except NotAFileError:
            sink.notify(NoticeLevel.WARNING, f"{workflow} is not a file, skipping")
            continue
        except DocumentNotFoundError:
            sink.notify(NoticeLevel.WARNING, f"Workflow {workflow} not found, skipping")
            continue

        mutation = mutate_document(document.text, request, notices=sink)
        if not mutation.changed:
            sink.notify(NoticeLevel.INFO, f"No changes needed for {workflow}")
            continue

        status = store.commit(path, mutation.text, document.revision, inputs.commit_message)
        if status is CommitStatus.NOT_FOUND:
            sink.notify(NoticeLevel.WARNING, f"Workflow {workflow} not found, skipping")
            continue
        if status is CommitStatus.CONFLICT:
            raise RevisionConflictError(
                f"{workflow} changed while it was being updated",
                details={"path": path, "revision": document.revision},
            )

        result.updated_workflows.append(workflow)
        sink.notify(NoticeLevel.INFO, f"Updated {workflow}")

    return result
