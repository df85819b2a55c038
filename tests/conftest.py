from __future__ import annotations

import subprocess
import sys
import textwrap
from dataclasses import dataclass
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


DEPLOY_WORKFLOW = textwrap.dedent(
    """\
    name: Deploy
    on:
      workflow_dispatch:
        inputs:
          environment:
            description: 'Target environment'
            required: true
            type: choice
            options:
              - development
              - staging
              - production

    jobs:
      deploy:
        runs-on: ubuntu-latest
        steps:
          - uses: actions/checkout@v4
    """
)


@pytest.fixture()
def deploy_workflow() -> str:
    """Workflow with a single ``environment`` choice input."""

    return DEPLOY_WORKFLOW


@dataclass(slots=True)
class WorkflowRepo:
    """Fixture payload describing a throwaway repository with workflows."""

    root: Path

    @property
    def workflows_dir(self) -> Path:
        return self.root / ".github" / "workflows"

    def read(self, name: str) -> str:
        with (self.workflows_dir / name).open("r", encoding="utf-8", newline="") as handle:
            return handle.read()

    def git(self, *args: str) -> str:
        result = subprocess.run(
            ["git", *args],
            cwd=self.root,
            check=True,
            capture_output=True,
            text=True,
        )
        return result.stdout.strip()

    def commit_count(self) -> int:
        return int(self.git("rev-list", "--count", "HEAD"))


@pytest.fixture()
def workflow_repo(tmp_path: Path) -> WorkflowRepo:
    """Create a git repository holding ``deploy.yml`` and ``release.yml``."""

    repo_root = tmp_path / "workflow-repo"
    repo_root.mkdir()
    repo = WorkflowRepo(root=repo_root)

    repo.git("init")
    repo.git("config", "user.email", "agent@example.com")
    repo.git("config", "user.name", "Workflow Bot")
    repo.git("symbolic-ref", "HEAD", "refs/heads/main")

    repo.workflows_dir.mkdir(parents=True)
    for name in ("deploy.yml", "release.yml"):
        (repo.workflows_dir / name).write_text(DEPLOY_WORKFLOW, encoding="utf-8")
    (repo.workflows_dir / "templates").mkdir()
    (repo.workflows_dir / "templates" / "README.md").write_text("Shared snippets.\n", encoding="utf-8")

    repo.git("add", ".")
    repo.git("commit", "-m", "Initial workflows")
    return repo
