"""
Claude text generation for the autonomous worker.

Talks to the Anthropic Messages API with the project's own API key.
AgentPool owns one client per credential so connections are reused across
ticks and released together at shutdown.
"""

import logging
import threading
from dataclasses import dataclass

import anthropic

from agentboard.lib.config import WorkerConfig

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 120.0


class AgentError(Exception):
    """The text-generation service failed (non-success response or network error).

    Always treated as transient by the worker: the item is retried next tick.
    """


@dataclass
class Message:
    role: str       # "user" or "assistant"
    content: str


def _to_messages(conversation) -> list[dict]:
    if isinstance(conversation, str):
        return [{"role": "user", "content": conversation}]
    messages = []
    for m in conversation:
        if isinstance(m, Message):
            messages.append({"role": m.role, "content": m.content})
        else:
            messages.append({"role": m["role"], "content": m["content"]})
    return messages


class AnthropicClient:
    def __init__(self, api_key: str, model: str, max_tokens: int = 2048,
                 timeout: float = DEFAULT_TIMEOUT_SECONDS, client=None):
        self.model = model
        self.max_tokens = max_tokens
        # Retries are the worker's job (next tick), not the SDK's
        self._client = client or anthropic.Anthropic(api_key=api_key, timeout=timeout, max_retries=0)

    def complete(self, system_prompt: str, conversation) -> str:
        """Return the text of Claude's reply.

        Args:
            system_prompt: System instructions
            conversation: A user message string, or a list of Message / role-content dicts

        Raises:
            AgentError: on API error, network failure, or a reply with no text
        """
        try:
            response = self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system_prompt,
                messages=_to_messages(conversation),
            )
        except anthropic.APIStatusError as e:
            raise AgentError(f"Claude API {e.status_code}: {e.message}") from e
        except anthropic.APIError as e:
            raise AgentError(f"Claude API request failed: {e}") from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        if not text.strip():
            raise AgentError("Claude returned an empty response")
        return text

    def close(self) -> None:
        self._client.close()


class AgentPool:
    """Clients keyed by API key, created on first use."""

    def __init__(self, config: WorkerConfig, factory=None):
        self.config = config
        self._factory = factory or self._default_factory
        self._clients: dict[str, object] = {}
        self._lock = threading.Lock()

    def _default_factory(self, api_key: str):
        return AnthropicClient(api_key, self.config.model, self.config.max_tokens)

    def get(self, api_key: str):
        with self._lock:
            client = self._clients.get(api_key)
            if client is None:
                client = self._factory(api_key)
                self._clients[api_key] = client
            return client

    def __len__(self) -> int:
        return len(self._clients)

    def close(self) -> None:
        with self._lock:
            clients = list(self._clients.values())
            self._clients.clear()
        for client in clients:
            close = getattr(client, "close", None)
            if close is None:
                continue
            try:
                close()
            except Exception as e:
                logger.warning(f"[AGENT] Error closing client: {e}")
