# aibuddy: Prompt Builder. Output-format instructions are text resources loaded via importlib.resources; the prompt itself is a pure function of description, files and request.

import pathlib
from importlib import resources
from typing import List, Sequence, Tuple

from .fs import read_text

MODE_ASSIST = "assist"
MODE_PLAN = "plan"

_FILES_INTRO = {
    MODE_ASSIST: "You will use the following files (with contents below) as the current state to generate your final diff.",
    MODE_PLAN: "You will use the following files (with contents below) as the current state to generate your answer.",
}

_INSTRUCTIONS = {
    MODE_ASSIST: "prompt_assist_instructions.txt",
    MODE_PLAN: "prompt_plan_instructions.txt",
}


def get_prompt(name: str, **kwargs) -> str:
    """
    Load a text prompt from the aibuddy resources directory.

    If kwargs are provided, apply str.format(**kwargs) to the content. Without
    kwargs the raw text is returned so JSON examples keep their braces.
    """
    data = resources.files("aibuddy").joinpath("resources").joinpath(name).read_text(encoding="utf-8")
    if kwargs:
        return data.format(**kwargs)
    return data


def read_context_files(repo_root: pathlib.Path, paths: Sequence[str]) -> List[Tuple[str, str]]:
    """Read each context file that still exists, in order; NUL bytes are stripped."""
    files: List[Tuple[str, str]] = []
    for p in paths:
        if not (repo_root / p).is_file():
            continue
        files.append((p, read_text(repo_root, p).replace("\0", "")))
    return files


def build_prompt(description: str, files: Sequence[Tuple[str, str]], request: str, mode: str = MODE_ASSIST) -> str:
    """
    Concatenate description, file dump and request into one prompt.

    Nothing is truncated; size limits are left to the remote API.
    """
    if mode not in _INSTRUCTIONS:
        raise ValueError(f"Unknown prompt mode: {mode}")
    parts = [f"{description}\n", f"\n### {_FILES_INTRO[mode]}\n"]
    for path, content in files:
        parts.append(f"\n### File: {path}\n{content.replace(chr(0), '')}")
    parts.append(f"\n### Request: {request}\n")
    parts.append("\n" + get_prompt(_INSTRUCTIONS[mode]))
    return "".join(parts)
