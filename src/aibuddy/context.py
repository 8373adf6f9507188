# aibuddy: Console I/O Context plus the ConfigStore that owns the three persisted documents (global config, local config, plan file) and merges them into a RunConfig.

import pathlib
import sys
from typing import Any, Dict, Optional

from pydantic import ValidationError

from . import config
from .errors import AIBuddyError, ConfigMissingError
from .fs import read_json, write_json
from .models import GlobalConfig, LocalConfig, Plan, RunConfig, Settings


def _pick(value: Any, default: Any) -> Any:
    return default if value is None else value


class Context:
    """
    Thin wrapper around console I/O and logging.

    Handlers receive a Context instead of printing directly so tests can capture
    output and substitute stdin.
    """

    def send_to_user(self, message: str) -> None:
        """Send a user-facing message to stdout."""
        print(message)

    def log(self, message: str) -> None:
        """Emit a lightweight log line to stdout, prefixed for readability."""
        print(f"[LOG] {message}")

    def error_message(self, message: str) -> None:
        """Print an error message to stderr."""
        print(f"Error: {message}", file=sys.stderr)

    def prompt_user(self, question: str) -> str:
        """Ask a question on stdin and return the stripped answer ('' on EOF)."""
        try:
            return input(question).strip()
        except EOFError:
            return ""


class ConfigStore:
    """
    Persistence wrapper for aibuddy's JSON documents.

    The global document lives in the user's home directory; the local document
    and the plan file live at the repository root.
    """

    def __init__(self, repo_root: pathlib.Path, global_path: Optional[pathlib.Path] = None) -> None:
        self.repo_root = repo_root
        self.global_path = global_path or config.global_config_path()
        self.local_path = repo_root / config.LOCAL_CONFIG_NAME
        self.plan_path = repo_root / config.PLAN_FILE_NAME

    def has_global(self) -> bool:
        return self.global_path.exists()

    def has_local(self) -> bool:
        return self.local_path.exists()

    @staticmethod
    def _read_document(path: pathlib.Path) -> Dict[str, Any]:
        data = read_json(path, {})
        return data if isinstance(data, dict) else {}

    def load_global(self) -> GlobalConfig:
        try:
            return GlobalConfig.model_validate(self._read_document(self.global_path))
        except ValidationError as e:
            raise AIBuddyError(f"Invalid global config {self.global_path}: {e}")

    def load_local(self) -> LocalConfig:
        try:
            return LocalConfig.model_validate(self._read_document(self.local_path))
        except ValidationError as e:
            raise AIBuddyError(f"Invalid local config {self.local_path}: {e}")

    def save_global(self, doc: GlobalConfig) -> None:
        write_json(self.global_path, doc.model_dump())

    def save_local(self, doc: LocalConfig) -> None:
        write_json(self.local_path, doc.model_dump())

    def load_run_config(self, settings: Optional[Dict[str, Any]] = None) -> RunConfig:
        """
        Merge global and local documents (local wins) with runtime knobs.

        Raises:
            ConfigMissingError: If the local document is absent or no API key is configured.
            AIBuddyError: If a settings value has the wrong type or is out of range.
        """
        if not self.has_local():
            raise ConfigMissingError(f"Local {config.LOCAL_CONFIG_NAME} file is missing. Run install first.")
        merged: Dict[str, Any] = {**self.load_global().model_dump(), **self.load_local().model_dump()}
        api_key = merged.get("OPENAI_API_KEY") or ""
        if not api_key:
            raise ConfigMissingError("No OPENAI_API_KEY found. Please set it up via install.")
        local = LocalConfig.model_validate(merged)
        try:
            knobs = Settings.model_validate(settings or {})
        except ValidationError as e:
            raise AIBuddyError(f"Invalid settings: {e}")
        return RunConfig(
            repo_root=self.repo_root,
            api_key=api_key,
            context_files=local.CONTEXT_FILES,
            app_description=local.APP_DESCRIPTION,
            model=_pick(knobs.model, config.AI_MODEL),
            max_completion_tokens=_pick(knobs.max_completion_tokens, config.MAX_COMPLETION_TOKENS),
            timeout_sec=_pick(knobs.timeout_sec, config.REQUEST_TIMEOUT_SEC),
            branch_prefix=_pick(knobs.branch_prefix, config.BRANCH_PREFIX),
            push=_pick(knobs.push, config.PUSH_BRANCH),
            keep_artifacts=config.KEEP_ARTIFACTS,
        )

    # -----------------------------
    # Plan file
    # -----------------------------

    def save_plan(self, plan_obj: Any) -> None:
        """Persist the parsed plan reply verbatim."""
        write_json(self.plan_path, plan_obj)

    def load_plan(self) -> Plan:
        if not self.plan_path.exists():
            raise ConfigMissingError(f"No {config.PLAN_FILE_NAME} found. Run 'aibuddy plan <request>' first.")
        try:
            return Plan.model_validate(self._read_document(self.plan_path))
        except ValidationError as e:
            raise AIBuddyError(f"Invalid plan file {self.plan_path}: {e}")
