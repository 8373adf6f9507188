from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from aibuddy.context import ConfigStore, Context  # noqa: E402
from aibuddy.errors import GitError  # noqa: E402
from aibuddy.models import RunConfig  # noqa: E402


def git(root: Path, *args: str) -> str:
    result = subprocess.run(["git", *args], cwd=root, check=True, capture_output=True, text=True)
    return result.stdout


def init_repo(root: Path, files: Dict[str, str]) -> Path:
    """Create a git repository at root with files committed on an initial commit."""
    root.mkdir(parents=True, exist_ok=True)
    git(root, "init", "-q")
    git(root, "config", "user.email", "dev@example.com")
    git(root, "config", "user.name", "Dev")
    git(root, "config", "commit.gpgsign", "false")
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    git(root, "add", "-A")
    git(root, "commit", "-q", "-m", "init")
    return root


class RecordingContext(Context):
    """Context that records output and answers prompts from a queue."""

    def __init__(self, answers: Optional[Iterable[str]] = None) -> None:
        self.messages: List[str] = []
        self.logs: List[str] = []
        self.errors: List[str] = []
        self.answers = list(answers or [])
        self.questions: List[str] = []

    def send_to_user(self, message: str) -> None:
        self.messages.append(message)

    def log(self, message: str) -> None:
        self.logs.append(message)

    def error_message(self, message: str) -> None:
        self.errors.append(message)

    def prompt_user(self, question: str) -> str:
        self.questions.append(question)
        return self.answers.pop(0) if self.answers else ""


class FakeClient:
    """Stands in for ChatCompletionsClient; replies are consumed in order."""

    def __init__(self, replies: Iterable[Any]) -> None:
        self.replies = list(replies)
        self.prompts: List[str] = []

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        return {"model": "fake", "messages": [{"role": "user", "content": prompt}]}

    def complete(self, ctx: Context, payload: Dict[str, Any]) -> str:
        self.prompts.append(payload["messages"][-1]["content"])
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeVcs:
    """In-memory Vcs recording every call."""

    def __init__(self, tracked: Optional[List[str]] = None, repository: bool = True, remote: bool = False) -> None:
        self.tracked = list(tracked or [])
        self.repository = repository
        self.remote = remote
        self.branches: List[str] = []
        self.commits: List[str] = []
        self.pushed: List[str] = []
        self.dirty = True
        self.fail_commit = False

    def is_repository(self) -> bool:
        return self.repository

    def list_tracked(self) -> List[str]:
        return list(self.tracked)

    def create_branch(self, name: str) -> None:
        self.branches.append(name)

    def commit_all(self, message: str) -> bool:
        if self.fail_commit:
            raise GitError("git commit -m failed: boom")
        if not self.dirty:
            return False
        self.commits.append(message)
        return True

    def has_remote(self) -> bool:
        return self.remote

    def push(self, branch: str) -> None:
        self.pushed.append(branch)


def make_run_config(repo_root: Path, **overrides: Any) -> RunConfig:
    values: Dict[str, Any] = dict(
        repo_root=repo_root,
        api_key="sk-test",
        context_files=[],
        app_description="A test app",
        model="fake-model",
        max_completion_tokens=1000,
        timeout_sec=5.0,
        branch_prefix="aibuddy",
        push=True,
        keep_artifacts=False,
    )
    values.update(overrides)
    return RunConfig(**values)


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    return home_dir


@pytest.fixture
def ctx() -> RecordingContext:
    return RecordingContext()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def store(project: Path, tmp_path: Path) -> ConfigStore:
    return ConfigStore(project, global_path=tmp_path / "global.json")
