# aibuddy: Context Collector. Lists git-tracked files whose extension is on the allow-list, minus anything matched by .aibuddyignore.

import pathlib
import re
from typing import List

from .errors import ContextDiscoveryError
from .fs import is_ignored, normalize_path
from .vcs import Vcs

SUPPORTED_FILE_EXTENSIONS = (
    "sh", "ts", "js", "mjs", "ejs", "css", "less", "html", "jsx", "py", "cpp", "c", "go", "rs", "php",
    "r", "rd", "rsx", "sql", "rb", "vue", "swift", "java", "kotlin", "dart", "scala", "rust", "clj",
    "cljc", "edn", "lua", "mlx", "groovy", "asm", "pl", "erl", "o", "ex", "exs", "pas", "d", "nim",
    "ml", "pike", "yaml", "yml", "json", "xml", "txt", "md", "markdown", "csv", "bat", "ps1",
)

_EXTENSION_RE = re.compile(r"\.(" + "|".join(re.escape(e) for e in SUPPORTED_FILE_EXTENSIONS) + r")$")


def is_supported(path: str) -> bool:
    """True if the final suffix of path is on the allow-list (case-sensitive)."""
    return bool(_EXTENSION_RE.search(path))


def collect_context_files(vcs: Vcs, repo_root: pathlib.Path) -> List[str]:
    """
    Return the ordered list of context files for repo_root.

    Raises:
        ContextDiscoveryError: If repo_root is not a git work tree or nothing matches.
    """
    if not vcs.is_repository():
        raise ContextDiscoveryError(
            "Could not gather context files. Make sure this is a git repo with matching files."
        )
    files = [
        normalize_path(p)
        for p in vcs.list_tracked()
        if is_supported(p) and not is_ignored(repo_root, normalize_path(p))
    ]
    if not files:
        raise ContextDiscoveryError("No matching files found for context. Check your repository contents.")
    return files
