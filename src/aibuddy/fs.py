# aibuddy: Filesystem helpers shared by the config store, collector and patch applier: tolerant JSON IO, repo-safe path resolution, .aibuddyignore matching and per-invocation temp artifacts.

import fnmatch
import json
import pathlib
import shutil
import tempfile
import uuid
from typing import Any, Dict, List, NamedTuple, Optional, Tuple


def short_id(prefix: str) -> str:
    """Return a short unique identifier with the given prefix (e.g., prefix-1a2b3c4d)."""
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


def normalize_path(p: str) -> str:
    """Normalize a filesystem path to POSIX-style string (forward slashes)."""
    return str(pathlib.Path(p).as_posix())


def read_json(path: pathlib.Path, default: Any) -> Any:
    """Read JSON from path; return default if file is missing or invalid."""
    if not path.exists():
        return default
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError):
        return default


def write_json(path: pathlib.Path, obj: Any) -> None:
    """Atomically write a JSON object to path (UTF-8, pretty-printed)."""
    tmp = path.with_name(path.name + ".tmp")
    path.parent.mkdir(parents=True, exist_ok=True)
    with tmp.open("w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, ensure_ascii=False)
    tmp.replace(path)


# -----------------------------
# .aibuddyignore
# -----------------------------

IGNORE_FILE = ".aibuddyignore"


class IgnoreRule(NamedTuple):
    negated: bool
    pattern: str
    rooted: bool
    dir_only: bool


_IGNORE_CACHE: Dict[pathlib.Path, Tuple[Optional[float], List[IgnoreRule]]] = {}


def parse_ignore_patterns(text: str) -> List[IgnoreRule]:
    """
    Parse .aibuddyignore contents into rules.

    Rules:
      - Empty lines and comments (#) are ignored.
      - Lines starting with '!' negate the ignore (unignore).
      - A leading '/' (or any inner '/') anchors the pattern to the repo root;
        otherwise it matches a single path component anywhere in the tree.
      - Trailing '/' targets directories, i.e. everything below them.
      - A leading '**/' matches at any depth, including the repo root.
    """
    rules: List[IgnoreRule] = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        negated = False
        if line.startswith("!"):
            negated = True
            line = line[1:].strip()
        dir_only = line.endswith("/")
        line = line.rstrip("/")
        rooted = "/" in line
        line = line.lstrip("/")
        if not line:
            continue
        rules.append(IgnoreRule(negated, line, rooted, dir_only))
    return rules


def _get_ignore_rules(repo_root: pathlib.Path) -> List[IgnoreRule]:
    """Return cached ignore rules for repo_root, refreshing when the file changes."""
    ig_path = repo_root / IGNORE_FILE
    try:
        mtime: Optional[float] = ig_path.stat().st_mtime
    except FileNotFoundError:
        mtime = None
    cached = _IGNORE_CACHE.get(repo_root)
    if cached and cached[0] == mtime:
        return cached[1]
    rules = parse_ignore_patterns(ig_path.read_text(encoding="utf-8")) if mtime is not None else []
    _IGNORE_CACHE[repo_root] = (mtime, rules)
    return rules


def _match_rooted(prefix: str, pattern: str) -> bool:
    if fnmatch.fnmatchcase(prefix, pattern):
        return True
    # fnmatch needs the literal slash, so "**/x" would otherwise miss a top-level x.
    return pattern.startswith("**/") and fnmatch.fnmatchcase(prefix, pattern[3:])


def _rule_matches(rule: IgnoreRule, rel_posix: str) -> bool:
    parts = rel_posix.split("/")
    # A rule matching a parent directory covers everything below it.
    upper = len(parts) - 1 if rule.dir_only else len(parts)
    for i in range(1, upper + 1):
        if rule.rooted:
            if _match_rooted("/".join(parts[:i]), rule.pattern):
                return True
        elif fnmatch.fnmatchcase(parts[i - 1], rule.pattern):
            return True
    return False


def is_ignored(repo_root: pathlib.Path, rel_posix: str) -> bool:
    """Return True if rel_posix should be ignored per .aibuddyignore (last matching rule wins)."""
    ignored = False
    for rule in _get_ignore_rules(repo_root):
        if _rule_matches(rule, rel_posix):
            ignored = not rule.negated
    return ignored


# -----------------------------
# Repo-relative file IO
# -----------------------------

def safe_abs(repo_root: pathlib.Path, rel: str) -> pathlib.Path:
    """Resolve a repo-relative path and reject escapes outside repo_root."""
    root = repo_root.resolve()
    abs_path = (root / rel).resolve()
    try:
        abs_path.relative_to(root)
    except ValueError:
        raise ValueError(f"Path escapes repo root: {rel}")
    return abs_path


def read_text(repo_root: pathlib.Path, path: str) -> str:
    """Read a UTF-8 text file relative to repo_root."""
    abs_path = safe_abs(repo_root, path)
    with abs_path.open("r", encoding="utf-8", errors="replace") as f:
        return f.read()


def write_file(repo_root: pathlib.Path, path: str, content: str) -> pathlib.Path:
    """Write text content to a repo-relative file, creating parent directories."""
    abs_path = safe_abs(repo_root, path)
    abs_path.parent.mkdir(parents=True, exist_ok=True)
    with abs_path.open("w", encoding="utf-8") as f:
        f.write(content)
    return abs_path


# -----------------------------
# Temporary artifacts
# -----------------------------

class Artifacts:
    """
    Scratch files recorded for one model invocation (prompt, request payload, raw reply).

    Used as a context manager; the directory is removed on exit unless keep is set.
    """

    def __init__(self, keep: bool = False) -> None:
        self.keep = keep
        self.root = pathlib.Path(tempfile.mkdtemp(prefix="aibuddy-"))
        self.prompt_file = self.root / "prompt.txt"
        self.request_file = self.root / "request.json"
        self.reply_file = self.root / "reply.txt"

    def __enter__(self) -> "Artifacts":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.cleanup()

    def write_prompt(self, text: str) -> None:
        self.prompt_file.write_text(text, encoding="utf-8")

    def write_request(self, payload: Dict[str, Any]) -> None:
        with self.request_file.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)

    def write_reply(self, text: str) -> None:
        self.reply_file.write_text(text, encoding="utf-8")

    def cleanup(self) -> None:
        if self.keep:
            return
        shutil.rmtree(self.root, ignore_errors=True)
