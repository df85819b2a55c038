from __future__ import annotations

import pytest

from dispatch_choices.inputs import validate_inputs
from dispatch_choices.notices import NoticeLog
from dispatch_choices.tools.git_store import GitWorkflowStore
from dispatch_choices.tools.stores import CommitStatus, DocumentNotFoundError, NotAFileError, workflow_path
from dispatch_choices.tools.vcs import GitError, GitRepository
from dispatch_choices.updater import update_workflow_choices


def test_workflow_path_joins_directory() -> None:
    assert workflow_path("deploy.yml") == ".github/workflows/deploy.yml"
    assert workflow_path("deploy.yml", "ci/") == "ci/deploy.yml"


def test_fetch_reads_text_and_blob_hash(workflow_repo) -> None:
    store = GitWorkflowStore(GitRepository(workflow_repo.root))

    document = store.fetch(".github/workflows/deploy.yml")

    assert document.text == workflow_repo.read("deploy.yml")
    assert document.revision == workflow_repo.git("rev-parse", "HEAD:.github/workflows/deploy.yml")


def test_fetch_missing_and_directory(workflow_repo) -> None:
    store = GitWorkflowStore(GitRepository(workflow_repo.root))

    with pytest.raises(DocumentNotFoundError):
        store.fetch(".github/workflows/missing.yml")
    with pytest.raises(NotAFileError):
        store.fetch(".github/workflows/templates")


def test_commit_writes_and_commits_single_path(workflow_repo) -> None:
    store = GitWorkflowStore(GitRepository(workflow_repo.root))
    document = store.fetch(".github/workflows/deploy.yml")
    before = workflow_repo.commit_count()

    status = store.commit(document.path, document.text + "# touched\n", document.revision, "chore: touch deploy")

    assert status is CommitStatus.OK
    assert workflow_repo.commit_count() == before + 1
    assert workflow_repo.git("log", "-1", "--format=%s") == "chore: touch deploy"
    assert workflow_repo.git("show", "--name-only", "--format=", "HEAD") == ".github/workflows/deploy.yml"
    assert workflow_repo.read("deploy.yml").endswith("# touched\n")


def test_commit_detects_concurrent_change(workflow_repo) -> None:
    store = GitWorkflowStore(GitRepository(workflow_repo.root))
    document = store.fetch(".github/workflows/deploy.yml")
    (workflow_repo.workflows_dir / "deploy.yml").write_text("name: changed\n", encoding="utf-8")

    status = store.commit(document.path, document.text, document.revision, "chore: stale")

    assert status is CommitStatus.CONFLICT
    assert workflow_repo.read("deploy.yml") == "name: changed\n"


def test_commit_reports_vanished_file(workflow_repo) -> None:
    store = GitWorkflowStore(GitRepository(workflow_repo.root))
    document = store.fetch(".github/workflows/deploy.yml")
    (workflow_repo.workflows_dir / "deploy.yml").unlink()

    assert store.commit(document.path, document.text, document.revision, "chore: gone") is CommitStatus.NOT_FOUND


def test_branch_must_be_checked_out(workflow_repo) -> None:
    repo = GitRepository(workflow_repo.root)

    assert GitWorkflowStore(repo, branch="main").branch == "main"
    with pytest.raises(GitError, match="not checked out"):
        GitWorkflowStore(repo, branch="release")


def test_discover_walks_up_to_repository(workflow_repo, tmp_path) -> None:
    repo = GitRepository.discover(workflow_repo.workflows_dir)

    assert repo.root == workflow_repo.root.resolve()
    with pytest.raises(GitError):
        GitRepository(tmp_path)


def test_updater_commits_each_changed_workflow(workflow_repo) -> None:
    store = GitWorkflowStore(GitRepository(workflow_repo.root))
    inputs = validate_inputs(
        action="update",
        input_name="environment",
        workflows="deploy.yml,release.yml,missing.yml",
        choice_value="staging",
        new_choice_value="stage",
        commit_message="chore: rename staging",
    )
    before = workflow_repo.commit_count()

    result = update_workflow_choices(store, inputs, notices=NoticeLog())

    assert result.updated_workflows == ["deploy.yml", "release.yml"]
    assert workflow_repo.commit_count() == before + 2
    assert "          - stage\n" in workflow_repo.read("release.yml")
    assert workflow_repo.git("status", "--porcelain") == ""
