# aibuddy: Lightweight YAML settings loader for per-project overrides of model and apply-flow knobs.

from __future__ import annotations

import pathlib
from typing import Any, Dict

import yaml

from .errors import AIBuddyError

SETTINGS_NAMES = (".aibuddy.yaml", ".aibuddy.yml")

KNOWN_KEYS = ("model", "max_completion_tokens", "timeout_sec", "branch_prefix", "push")


def load_settings(repo_root: pathlib.Path) -> Dict[str, Any]:
    """
    Load aibuddy settings from <repo>/.aibuddy.yaml or .aibuddy.yml.

    Returns an empty dict {} when the settings file is missing or does not
    contain a mapping. Unknown keys are dropped.

    Raises:
        AIBuddyError: If the settings file exists but is not valid YAML.
    """
    for name in SETTINGS_NAMES:
        p = pathlib.Path(repo_root) / name
        if not p.is_file():
            continue
        try:
            data = yaml.safe_load(p.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise AIBuddyError(f"Invalid settings file {p}: {e}") from e
        if not isinstance(data, dict):
            # aibuddy: Non-mapping YAML (including an empty file) is treated as empty settings.
            return {}
        return {k: v for k, v in data.items() if k in KNOWN_KEYS}
    return {}
