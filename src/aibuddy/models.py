# aibuddy: Centralized Pydantic v2 models for the persisted config documents, the merged run configuration, and the two reply shapes (plan, patch).

from __future__ import annotations

import pathlib
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, PositiveInt, TypeAdapter, field_validator

from .fs import normalize_path


class ConfigDocument(BaseModel):
    """Flat JSON config object; keys we do not model are kept so a rewrite never drops them."""
    model_config = ConfigDict(extra="allow")


class GlobalConfig(ConfigDocument):
    OPENAI_API_KEY: str = Field(default="", description="OpenAI API credential")


class LocalConfig(ConfigDocument):
    CONTEXT_FILES: List[str] = Field(default_factory=list, description="Tracked files sent with every prompt")
    APP_DESCRIPTION: str = Field(default="", description="Free-text description of the project")

    # aibuddy: Older configs stored CONTEXT_FILES as one newline-separated string.
    @field_validator("CONTEXT_FILES", mode="before")
    @classmethod
    def _split_legacy_string(cls, v):
        if isinstance(v, str):
            return [line for line in v.splitlines() if line.strip()]
        return v


class RunConfig(BaseModel):
    """
    Merged configuration for one invocation.

    Built once from the global and local documents (local wins on collisions)
    plus runtime knobs, then handed to every mode handler.
    """
    model_config = ConfigDict(frozen=True)

    repo_root: pathlib.Path
    api_key: str
    context_files: List[str] = Field(default_factory=list)
    app_description: str = ""
    model: str
    max_completion_tokens: int
    timeout_sec: float
    branch_prefix: str
    push: bool
    keep_artifacts: bool = False


class Settings(BaseModel):
    """
    Per-project overrides read from .aibuddy.yaml.

    Unset keys stay None and fall back to the environment defaults. Booleans
    accept the usual string spellings (push: "no" is False); numbers must be
    positive.
    """
    model_config = ConfigDict(extra="ignore")

    model: Optional[str] = Field(default=None, min_length=1)
    max_completion_tokens: Optional[PositiveInt] = None
    timeout_sec: Optional[PositiveFloat] = None
    branch_prefix: Optional[str] = Field(default=None, min_length=1)
    push: Optional[bool] = None


class PlanStep(BaseModel):
    desc: str = ""
    prompt: str = ""

    @classmethod
    def from_raw(cls, raw: Any) -> "PlanStep":
        """Read one persisted step leniently; a bare value is treated as the step prompt."""
        if isinstance(raw, dict):
            desc, prompt = raw.get("desc"), raw.get("prompt")
            return cls(desc="" if desc is None else str(desc), prompt="" if prompt is None else str(prompt))
        return cls(prompt="" if raw is None else str(raw))


class Plan(BaseModel):
    """A plan document; only the `plan` value being a list is enforced, steps are kept as given."""
    model_config = ConfigDict(extra="allow")

    plan: List[Any] = Field(..., description="Ordered steps")

    def steps(self) -> List[PlanStep]:
        return [PlanStep.from_raw(raw) for raw in self.plan]


PatchAdapter = TypeAdapter(Dict[str, str])


def normalize_patch(patch: Dict[str, str]) -> Dict[str, str]:
    """Return the patch with POSIX-normalized keys, preserving order."""
    return {normalize_path(path): content for path, content in patch.items()}
