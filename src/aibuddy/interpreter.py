# aibuddy: Response Interpreter. Parse the model reply as JSON, stripping a markdown code fence once if the first attempt fails, then narrow it to a patch or a plan.

import json
import re
from typing import Any, Dict

from pydantic import ValidationError

from .errors import ReplyParseError
from .models import PatchAdapter, Plan, normalize_patch

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


def strip_fences(text: str) -> str:
    """Replace every ```json ... ``` / ``` ... ``` block by its inner text."""
    return _FENCE_RE.sub(r"\1", text)


def parse_reply(text: str) -> Any:
    """
    Parse raw reply text as JSON.

    Raises:
        ReplyParseError: If neither the reply nor its fence-stripped form is valid JSON.
    """
    raw = (text or "").strip()
    try:
        return json.loads(raw)
    except ValueError:
        pass
    try:
        return json.loads(strip_fences(raw))
    except ValueError as e:
        raise ReplyParseError(f"Reply is not valid JSON: {e}")


def parse_patch(text: str) -> Dict[str, str]:
    """Parse a reply into a path -> full content mapping."""
    obj = parse_reply(text)
    try:
        patch = PatchAdapter.validate_python(obj)
    except ValidationError as e:
        raise ReplyParseError(f"Reply is not a flat filename -> content object: {e}")
    return normalize_patch(patch)


def parse_plan(text: str) -> Dict[str, Any]:
    """
    Parse a reply into a plan object.

    The parsed object is returned as-is (so it can be persisted verbatim) once
    its `plan` value is confirmed to be a list. Steps themselves are not checked.
    """
    obj = parse_reply(text)
    try:
        Plan.model_validate(obj)
    except ValidationError as e:
        raise ReplyParseError(f"Reply is not a plan object: {e}")
    return obj
