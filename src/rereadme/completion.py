"""Completion client for the OpenAI Responses API, reached through LiteLLM.

One ``exchange()`` is one request. Conversation memory between steps is the
provider's: each response id is handed back as ``previous_response_id`` on
the next call, so later steps see earlier reasoning without resending it.
"""

from __future__ import annotations

import logging
import random
import string
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from .config import DEFAULT_MODEL
from .exceptions import CompletionError, DependencyMissing

logger = logging.getLogger("rereadme.completion")

_BASE36 = string.digits + string.ascii_lowercase


@dataclass(frozen=True)
class CompletionResult:
    """Text returned by one exchange plus the token for the next one."""

    content: str
    next_token: Optional[str]


def _to_base36(n: int) -> str:
    if n == 0:
        return "0"
    digits = []
    while n:
        n, rem = divmod(n, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_session_id() -> str:
    """Readable per-run id: base-36 millisecond timestamp plus 8 random chars."""
    stamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(random.choices(_BASE36, k=8))
    return f"{stamp}-{suffix}"


def _field(obj: Any, name: str, default: Any = None) -> Any:
    """Read *name* from an SDK object or a plain dict."""
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def extract_output_text(response: Any) -> str:
    """Concatenate the output_text parts of a Responses API result.

    Prefers the SDK's ``output_text`` convenience attribute and falls back
    to walking ``output[*].content[*]`` for message items.
    """
    text = _field(response, "output_text")
    if isinstance(text, str):
        return text

    parts: list[str] = []
    for item in _field(response, "output") or []:
        if _field(item, "type") != "message":
            continue
        for chunk in _field(item, "content") or []:
            if _field(chunk, "type") == "output_text":
                parts.append(_field(chunk, "text") or "")
    return "".join(parts)


class CompletionClient:
    """Explicitly constructed handle on the completion service.

    Args:
        api_key: Provider credential. Empty raises ``DependencyMissing``.
        model: LiteLLM model string.
        session_id: Sent as ``user`` on every request for the provider's
            abuse tracking. Generated once per client when omitted.
        debug: Print response diagnostics after every call.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        session_id: Optional[str] = None,
        debug: bool = False,
        timeout: float = 600.0,
    ) -> None:
        if not api_key:
            raise DependencyMissing("OPENAI_API_KEY environment variable is required")
        self._api_key = api_key
        self.model = model
        self.session_id = session_id or generate_session_id()
        self.debug = debug
        self.timeout = timeout

    def exchange(
        self,
        system_instruction: str,
        user_payload: str,
        continuation_token: Optional[str] = None,
    ) -> CompletionResult:
        """Send one request and return its text and continuation token.

        Raises:
            CompletionError: on any transport, auth or provider failure.
        """
        kwargs: dict[str, Any] = {
            "model": self.model,
            "user": self.session_id,
            "instructions": system_instruction,
            "input": user_payload,
            "api_key": self._api_key,
            "timeout": self.timeout,
        }
        if continuation_token:
            kwargs["previous_response_id"] = continuation_token

        try:
            import litellm

            response = litellm.responses(**kwargs)
        except Exception as e:
            raise CompletionError(f"OpenAI API call failed: {e}") from e

        if self.debug:
            self._print_debug_info(response, continuation_token)

        return CompletionResult(
            content=extract_output_text(response) or "",
            next_token=_field(response, "id"),
        )

    def _print_debug_info(self, response: Any, previous_id: Optional[str]) -> None:
        print("[Completion] Response debug info:")
        print(f"   ID: {_field(response, 'id')}")
        if previous_id:
            print(f"   Prev ID: {previous_id}")
        print(f"   Session ID: {self.session_id}")
        print(f"   Model: {_field(response, 'model')}")
        print(f"   Status: {_field(response, 'status') or 'completed'}")

        created = _field(response, "created_at")
        if isinstance(created, (int, float)):
            print(f"   Created: {datetime.fromtimestamp(created, tz=timezone.utc).isoformat()}")

        usage = _field(response, "usage")
        if usage is not None:
            dump = usage.model_dump() if hasattr(usage, "model_dump") else usage
            print(f"   Usage: {dump}")

        temperature = _field(response, "temperature")
        if temperature is not None:
            print(f"   Temperature: {temperature}")

        error = _field(response, "error")
        if error:
            logger.error("   Error: %s", _field(error, "message") or "Unknown error")

        incomplete = _field(response, "incomplete_details")
        if incomplete:
            logger.warning("   Incomplete: %s", _field(incomplete, "reason"))
