# aibuddy: The AIBuddy orchestrator. Mode handlers (install, reload, plan, assist, apply) share one RunConfig, one Vcs and one model client factory; the CLI only picks the mode.

import enum
import pathlib
from typing import Any, Callable, Dict, List, Optional

from .client import ChatCompletionsClient
from .collector import collect_context_files
from .config import LOCAL_CONFIG_NAME, PLAN_FILE_NAME
from .context import ConfigStore, Context
from .errors import AIBuddyError, ConfigMissingError, GitError, ReplyParseError, StepFailedError, UnsafePathError
from .fs import Artifacts, safe_abs, short_id, write_file
from .interpreter import parse_patch, parse_plan
from .models import LocalConfig, Plan, RunConfig
from .prompts import MODE_ASSIST, MODE_PLAN, build_prompt, read_context_files
from .settings import load_settings
from .vcs import GitVcs, Vcs

USAGE = """Usage: aibuddy <command | request>

Commands:
  install            Set or confirm the OpenAI API key in ~/.aibuddy.json
  re, reload         Recompute the tracked context files for this project
  plan <request>     Ask for a step-by-step plan and save it to .aibuddy.plan
  apply              Run the saved plan on a new branch, committing after each step
  <request>          Ask for file changes and write them to the working tree

Environment:
  AI_MODEL, AIBUDDY_MAX_COMPLETION_TOKENS, AIBUDDY_TIMEOUT_SEC, AIBUDDY_BASE_URL,
  AIBUDDY_BRANCH_PREFIX, AIBUDDY_PUSH, AIBUDDY_KEEP_ARTIFACTS"""

NO_VALID_REPLY = "No valid JSON reply received or the content is empty."


class AssistOutcome(enum.Enum):
    APPLIED = "applied"
    NO_CHANGES = "no_changes"
    INVALID_REPLY = "invalid_reply"


def default_client_factory(cfg: RunConfig) -> ChatCompletionsClient:
    return ChatCompletionsClient(cfg.api_key, cfg.model, cfg.timeout_sec, cfg.max_completion_tokens)


class AIBuddy:
    """
    High-level orchestrator for one aibuddy invocation.

    Responsibilities include:
      - First-run installation of the global and local config documents
      - Building prompts from the configured context files
      - Calling the model once per action and interpreting the reply
      - Writing patches, persisting plans, and running the apply-plan flow
    """

    def __init__(
        self,
        repo_root: pathlib.Path,
        store: Optional[ConfigStore] = None,
        vcs: Optional[Vcs] = None,
        client_factory: Optional[Callable[[RunConfig], Any]] = None,
    ) -> None:
        self.repo_root = repo_root.resolve()
        self.store = store or ConfigStore(self.repo_root)
        self.vcs: Vcs = vcs or GitVcs(self.repo_root)
        self.client_factory = client_factory or default_client_factory

    def load_config(self) -> RunConfig:
        return self.store.load_run_config(load_settings(self.repo_root))

    # -----------------------------
    # Installation
    # -----------------------------

    def cmd_install_global(self, ctx: Context) -> None:
        """Ensure ~/.aibuddy.json holds an API key, prompting for one when absent."""
        ctx.send_to_user("Running global installation...")
        doc = self.store.load_global()
        if doc.OPENAI_API_KEY:
            ctx.send_to_user("Global installation detected. Using existing API key.")
        else:
            key = ctx.prompt_user("Enter your OpenAI API Key: ")
            if not key:
                raise ConfigMissingError("No API key entered; global config left unchanged.")
            doc.OPENAI_API_KEY = key
            self.store.save_global(doc)
            ctx.send_to_user(f"Created/updated global config: {self.store.global_path}")
        ctx.send_to_user("Global installation complete.")

    def cmd_install_local(self, ctx: Context) -> None:
        """
        Gather context files and the app description into ./.aibuddy.json.

        The file list is collected before anything is written, so a discovery
        failure leaves no local config behind. An existing description is kept.
        """
        ctx.send_to_user("Running local installation...")
        if not self.store.load_global().OPENAI_API_KEY:
            raise ConfigMissingError(
                "No valid OpenAI API Key found in global ~/.aibuddy.json. Please run install first."
            )
        old = self.store.load_local() if self.store.has_local() else LocalConfig()

        ctx.log("Using 'git ls-files' to gather files with supported extensions...")
        files = collect_context_files(self.vcs, self.repo_root)
        ctx.log(f"Found {len(files)} context file(s).")

        description = old.APP_DESCRIPTION or ctx.prompt_user("Describe your app: ")
        doc = old.model_copy(update={"CONTEXT_FILES": files, "APP_DESCRIPTION": description})
        self.store.save_local(doc)
        ctx.send_to_user("Local installation complete.")

    def refresh_context(self, ctx: Context, cfg: RunConfig) -> RunConfig:
        """Recompute the tracked file list and return an updated RunConfig (nothing is written)."""
        files = collect_context_files(self.vcs, self.repo_root)
        ctx.log(f"Refreshed context: {len(files)} file(s).")
        return cfg.model_copy(update={"context_files": files})

    def save_context_files(self, files: List[str]) -> None:
        doc = self.store.load_local()
        self.store.save_local(doc.model_copy(update={"CONTEXT_FILES": files}))

    # -----------------------------
    # Model round trip
    # -----------------------------

    def ask_model(self, ctx: Context, cfg: RunConfig, request: str, mode: str) -> str:
        """Build the prompt for mode, make the single model call, and return the raw reply."""
        files = read_context_files(self.repo_root, cfg.context_files)
        prompt = build_prompt(cfg.app_description, files, request, mode)
        client = self.client_factory(cfg)
        payload = client.build_payload(prompt)
        with Artifacts(keep=cfg.keep_artifacts) as artifacts:
            artifacts.write_prompt(prompt)
            artifacts.write_request(payload)
            reply = client.complete(ctx, payload)
            artifacts.write_reply(reply)
            if cfg.keep_artifacts:
                ctx.log(f"Kept prompt/request/reply in {artifacts.root}")
        return reply

    # -----------------------------
    # Plan mode
    # -----------------------------

    def cmd_plan(self, ctx: Context, cfg: RunConfig, request: str) -> Optional[Dict[str, Any]]:
        """Ask for a plan, persist it verbatim to .aibuddy.plan, and print its steps."""
        ctx.send_to_user("Running planning mode...")
        reply = self.ask_model(ctx, cfg, request, MODE_PLAN)
        try:
            plan_obj = parse_plan(reply)
        except ReplyParseError as e:
            ctx.send_to_user(NO_VALID_REPLY)
            ctx.log(str(e))
            return None

        self.store.save_plan(plan_obj)
        for step in Plan.model_validate(plan_obj).steps():
            ctx.send_to_user(f"# {step.desc}")
            ctx.send_to_user(f"  {step.prompt}")
            ctx.send_to_user("")
        ctx.send_to_user(f"Plan saved to {PLAN_FILE_NAME}. Run 'aibuddy apply' to execute it.")
        ctx.send_to_user("Planning mode complete.")
        return plan_obj

    # -----------------------------
    # Assistant mode
    # -----------------------------

    def apply_patch(self, ctx: Context, patch: Dict[str, str]) -> List[str]:
        """
        Overwrite every file in patch (creating directories) and return the written paths.

        Every path is checked before the first write, so a patch naming a file
        outside the repository writes nothing.

        Raises:
            UnsafePathError: If any key resolves outside the repository root.
        """
        for path in patch:
            try:
                safe_abs(self.repo_root, path)
            except ValueError as e:
                raise UnsafePathError(f"Refusing to apply patch: {e}")

        written: List[str] = []
        for path, content in patch.items():
            write_file(self.repo_root, path, content)
            ctx.send_to_user(f"Written file: {path}")
            written.append(path)
        return written

    def cmd_assist(self, ctx: Context, cfg: RunConfig, request: str) -> AssistOutcome:
        """Ask for full-file replacements for request and write them to the working tree."""
        ctx.send_to_user("Running assistant mode...")
        reply = self.ask_model(ctx, cfg, request, MODE_ASSIST)
        try:
            patch = parse_patch(reply)
        except ReplyParseError as e:
            ctx.send_to_user(NO_VALID_REPLY)
            ctx.log(str(e))
            return AssistOutcome.INVALID_REPLY

        if not patch:
            ctx.send_to_user("No changes detected or an empty JSON object returned.")
            return AssistOutcome.NO_CHANGES

        self.apply_patch(ctx, patch)
        ctx.send_to_user("Patch applied successfully.")
        ctx.send_to_user("Assistant mode complete.")
        return AssistOutcome.APPLIED

    # -----------------------------
    # Apply-plan flow
    # -----------------------------

    def cmd_apply(self, ctx: Context, cfg: RunConfig) -> str:
        """
        Execute the saved plan step by step on a fresh branch.

        Each step runs the assistant with the step prompt, then commits all
        working-tree changes (skipped when nothing changed) and refreshes the
        context file list in memory; the final list is saved to the local config
        after the last step. The first failing step aborts the flow; commits
        already made stay on the branch.

        Returns:
            The name of the branch the steps were committed to.
        """
        steps = self.store.load_plan().steps()
        if not steps:
            raise AIBuddyError(f"{PLAN_FILE_NAME} contains no steps.")
        if not self.vcs.is_repository():
            raise GitError(f"Not a git work tree: {self.repo_root}")

        branch = short_id(cfg.branch_prefix)
        self.vcs.create_branch(branch)
        ctx.log(f"Created branch {branch}")

        total = len(steps)
        for i, step in enumerate(steps, start=1):
            ctx.send_to_user(f"# Step {i}/{total}: {step.desc}")
            try:
                outcome = self.cmd_assist(ctx, cfg, step.prompt)
            except AIBuddyError as e:
                raise StepFailedError(f"Step {i}/{total} ({step.desc}) failed: {e}") from e
            if outcome is AssistOutcome.INVALID_REPLY:
                raise StepFailedError(f"Step {i}/{total} ({step.desc}) failed: {NO_VALID_REPLY}")

            message = step.desc or f"aibuddy step {i}"
            if self.vcs.commit_all(message):
                ctx.log(f"Committed step {i}/{total}: {message}")
            else:
                ctx.log(f"Step {i}/{total} left the tree unchanged; nothing to commit.")
            cfg = self.refresh_context(ctx, cfg)

        # Saved after the last step commit; never part of a step commit.
        self.save_context_files(cfg.context_files)
        if cfg.push and self.vcs.has_remote():
            self.vcs.push(branch)
            ctx.log(f"Pushed {branch}")
        ctx.send_to_user(f"Plan applied on branch {branch}.")
        return branch

    # -----------------------------
    # CLI dispatch
    # -----------------------------

    def run(self, ctx: Context, args: List[str]) -> None:
        """Select and run the mode for the given CLI arguments (first argument is the mode)."""
        mode = args[0] if args else ""
        if mode == "install":
            self.cmd_install_global(ctx)
            return
        if not self.store.has_global():
            self.cmd_install_global(ctx)
            return
        if not self.store.has_local():
            self.cmd_install_local(ctx)
            return
        if mode in ("re", "reload"):
            self.cmd_install_local(ctx)
            return
        if not mode:
            ctx.send_to_user(USAGE)
            return

        cfg = self.load_config()
        if mode == "apply":
            self.cmd_apply(ctx, cfg)
            return
        ctx.send_to_user(f"Reminder: If you add new files, run 'aibuddy re' to regenerate {LOCAL_CONFIG_NAME}.")
        if mode == "plan":
            request = " ".join(args[1:]).strip()
            if not request:
                raise AIBuddyError("Usage: aibuddy plan <request>")
            self.cmd_plan(ctx, cfg, request)
        else:
            self.cmd_assist(ctx, cfg, " ".join(args))
