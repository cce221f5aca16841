"""Transports to the external oracle.

Every backend implements ``complete(prompt, timeout) -> str`` and raises
OracleUnavailable for any failure. Backends do not retry.
"""

import os
import subprocess
from typing import Protocol, runtime_checkable

import httpx

from smart_approve.exceptions import OracleUnavailable
from smart_approve.logging import Loggers

logger = Loggers.oracle()

ANTHROPIC_API_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"

# Set in the child environment so a nested hook run can tell it is inside an oracle call
NESTED_ENV_VAR = "SMART_APPROVE_ORACLE_CALL"


@runtime_checkable
class OracleBackend(Protocol):
    """Anything that can turn a prompt into a short text answer."""

    def complete(self, prompt: str, timeout: float) -> str: ...


class ClaudeCliBackend:
    """Asks the ``claude`` CLI in one-shot print mode.

    The prompt is passed as a single argument; no shell is involved.
    """

    def __init__(self, model: str = "haiku", executable: str = "claude"):
        self.model = model
        self.executable = executable

    def command(self, prompt: str) -> list[str]:
        return [
            self.executable,
            "-p",
            "--model",
            self.model,
            "--max-turns",
            "1",
            "--no-session-persistence",
            prompt,
        ]

    def complete(self, prompt: str, timeout: float) -> str:
        try:
            result = subprocess.run(
                self.command(prompt),
                capture_output=True,
                text=True,
                timeout=timeout,
                stdin=subprocess.DEVNULL,
                env={**os.environ, NESTED_ENV_VAR: "1"},
            )
        except subprocess.TimeoutExpired as e:
            raise OracleUnavailable(f"claude CLI timed out after {timeout}s") from e
        except OSError as e:
            raise OracleUnavailable(f"claude CLI could not be started: {e}") from e

        if result.returncode != 0:
            raise OracleUnavailable(
                f"claude CLI exited with {result.returncode}: {result.stderr.strip()[:200]}"
            )
        return result.stdout


class AnthropicApiBackend:
    """Asks the Anthropic Messages API directly over HTTP."""

    def __init__(
        self,
        api_key: str | None,
        model: str = "claude-3-5-haiku-latest",
        url: str = ANTHROPIC_API_URL,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.url = url
        self._transport = transport

    def complete(self, prompt: str, timeout: float) -> str:
        if not self.api_key:
            raise OracleUnavailable("ANTHROPIC_API_KEY is not set")

        payload = {
            "model": self.model,
            "max_tokens": 10,
            "messages": [{"role": "user", "content": prompt}],
        }
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }

        try:
            with httpx.Client(transport=self._transport, timeout=timeout) as client:
                response = client.post(self.url, json=payload, headers=headers)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            raise OracleUnavailable(f"Request timeout after {timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise OracleUnavailable(f"API returned {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise OracleUnavailable(f"Request failed: {e}") from e

        blocks = data.get("content") if isinstance(data, dict) else None
        texts = [
            block.get("text", "")
            for block in blocks or []
            if isinstance(block, dict) and block.get("type") == "text"
        ]
        if not texts:
            raise OracleUnavailable("API response contained no text")
        return "".join(texts)


class DisabledBackend:
    """Backend used when the oracle is turned off."""

    def complete(self, prompt: str, timeout: float) -> str:
        raise OracleUnavailable("oracle disabled")


def create_backend(settings) -> OracleBackend:
    """Build the backend selected by ``settings.oracle_backend``."""
    if settings.oracle_backend == "api":
        return AnthropicApiBackend(
            api_key=settings.anthropic_api_key,
            model=settings.oracle_api_model,
        )
    if settings.oracle_backend == "none":
        return DisabledBackend()
    return ClaudeCliBackend(model=settings.oracle_model)
