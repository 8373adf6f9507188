# aibuddy: Model Client. One Chat Completions POST per invocation with a hard timeout; every failure becomes a ModelError and nothing is retried.

from typing import Any, Dict, List, Optional

import requests

from .config import OPENAI_BASE_URL
from .context import Context
from .errors import ModelError

SYSTEM_PREAMBLE = "You are a helpful assistant."


class ChatCompletionsClient:
    def __init__(
        self,
        api_key: str,
        model: str,
        timeout_sec: float,
        max_completion_tokens: int,
        base_url: Optional[str] = None,
    ) -> None:
        """
        Initialize a minimal HTTP client for OpenAI's Chat Completions API.

        Raises:
            ModelError: If api_key or model are not provided.
        """
        if not (api_key and model):
            raise ModelError("OpenAI settings missing. Configure OPENAI_API_KEY and a model.")
        self.base_url = (base_url or OPENAI_BASE_URL).rstrip("/")
        self.model = model
        self.timeout_sec = timeout_sec
        self.max_completion_tokens = max_completion_tokens
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            }
        )

    def chat_url(self) -> str:
        return f"{self.base_url}/chat/completions"

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        # o1-family models reject the system role, so the preamble is sent as a user turn.
        messages: List[Dict[str, str]] = [
            {"role": "user", "content": SYSTEM_PREAMBLE},
            {"role": "user", "content": prompt},
        ]
        return {
            "model": self.model,
            "messages": messages,
            "max_completion_tokens": self.max_completion_tokens,
        }

    def complete(self, ctx: Context, payload: Dict[str, Any]) -> str:
        """
        POST the payload and return the first choice's message content.

        Returns:
            The raw reply text ('' when the response carries no content).

        Raises:
            ModelError: On timeout, transport failure, a non-JSON body, an
                `error` object in the body, or a non-2xx status.
        """
        ctx.log(f"Calling POST {self.chat_url()} (model={payload.get('model')}, timeout={self.timeout_sec:g}s)")
        try:
            r = self.session.post(self.chat_url(), json=payload, timeout=self.timeout_sec)
        except requests.Timeout:
            raise ModelError(f"Request timed out after {self.timeout_sec:g}s")
        except requests.RequestException as e:
            raise ModelError(f"Network or request error: {e}")

        try:
            resp = r.json()
        except ValueError:
            raise ModelError(f"Chat Completions API returned non-JSON response ({r.status_code}): {r.text[:2000]}")

        if isinstance(resp, dict) and resp.get("error"):
            err = resp["error"]
            message = err.get("message") if isinstance(err, dict) else str(err)
            raise ModelError(f"Error from OpenAI API: {message}")
        if r.status_code >= 300:
            raise ModelError(f"Chat Completions API error {r.status_code}: {r.text[:2000]}")

        choices = resp.get("choices") if isinstance(resp, dict) else None
        choice = (choices or [{}])[0] or {}
        msg_obj = choice.get("message", {}) or {}
        return msg_obj.get("content") or ""
