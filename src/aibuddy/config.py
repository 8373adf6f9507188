# aibuddy: Centralize environment-driven configuration constants so every module reads the same defaults; per-project overrides live in .aibuddy.yaml (see settings.py).

import os
import pathlib

# Persisted state locations
GLOBAL_CONFIG_NAME = ".aibuddy.json"
LOCAL_CONFIG_NAME = ".aibuddy.json"
PLAN_FILE_NAME = ".aibuddy.plan"

# OpenAI Chat Completions
AI_MODEL = os.environ.get("AI_MODEL", "o1-mini-2024-09-12")  # OpenAI model id
OPENAI_BASE_URL = os.environ.get("AIBUDDY_BASE_URL", "https://api.openai.com/v1").rstrip("/")

# Output token budget
MAX_COMPLETION_TOKENS = int(os.environ.get("AIBUDDY_MAX_COMPLETION_TOKENS", "16000"))

# One request, no retries; the call is abandoned after this many seconds.
REQUEST_TIMEOUT_SEC = float(os.environ.get("AIBUDDY_TIMEOUT_SEC", "300"))

# Apply flow: branch name prefix and whether to push the branch at the end
BRANCH_PREFIX = os.environ.get("AIBUDDY_BRANCH_PREFIX", "aibuddy")
PUSH_BRANCH = os.environ.get("AIBUDDY_PUSH", "1").strip().lower() not in ("0", "false", "no", "off", "")

# Keep prompt/request/reply scratch files for debugging
KEEP_ARTIFACTS = os.environ.get("AIBUDDY_KEEP_ARTIFACTS", "0").strip().lower() in ("1", "true", "yes", "on")


def global_config_path() -> pathlib.Path:
    """Return the user-level config path (~/.aibuddy.json), resolved at call time."""
    return pathlib.Path.home() / GLOBAL_CONFIG_NAME
