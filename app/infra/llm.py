"""
Help Responder (Claude)

Optional free-text travel help used when a message cannot be parsed
deterministically. The responder is advisory only: ask() returns None on
any failure so callers can fall back to a canned clarification.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Optional

from anthropic import AsyncAnthropic, APIError, RateLimitError, APIConnectionError

from app.config import settings

logger = logging.getLogger(__name__)


class HelpClientError(Exception):
    """Raised internally when a help request fails."""
    pass


class HelpResponder(ABC):
    """Contract for the optional free-text help collaborator."""

    @abstractmethod
    async def ask(
        self,
        system_prompt: str,
        user_text: str,
        context: Optional[dict] = None,
    ) -> Optional[str]:
        """Return a help reply, or None if no reply could be produced."""
        pass


class AnthropicHelpClient(HelpResponder):
    """
    Async Claude wrapper for help replies.

    Features:
    - Automatic retries with exponential backoff
    - Per-call timeout
    - Recent conversation turns passed as context
    """

    def __init__(self, api_key: Optional[str] = None, client: Optional[Any] = None):
        """Initialize help client.

        Args:
            api_key: Anthropic API key (defaults to settings)
            client: Pre-built SDK client (for testing)
        """
        self.api_key = api_key or settings.anthropic_api_key
        if client is None and not self.api_key:
            raise ValueError("Anthropic API key is required")

        self._client = client or AsyncAnthropic(api_key=self.api_key)
        self._model = settings.help_model
        self._max_tokens = settings.help_max_tokens
        self._timeout = settings.help_timeout_seconds

        logger.info(f"AnthropicHelpClient initialized with model={self._model}")

    async def ask(
        self,
        system_prompt: str,
        user_text: str,
        context: Optional[dict] = None,
    ) -> Optional[str]:
        """
        Ask for a help reply.

        Args:
            system_prompt: Assistant persona and rules
            user_text: The message that could not be parsed
            context: Optional {"history": [...], "search": {...}}

        Returns:
            Reply text, or None on any failure
        """
        start_time = time.time()
        messages = self._build_messages(user_text, context)

        try:
            response = await asyncio.wait_for(
                self._call_with_retry(messages=messages, system=system_prompt),
                timeout=self._timeout,
            )
            text = "".join(
                getattr(block, "text", "") for block in response.content
            ).strip()
        except asyncio.TimeoutError:
            logger.warning(f"Help request timed out after {self._timeout}s")
            return None
        except (HelpClientError, APIError) as e:
            logger.warning(f"Help request failed: {e}")
            return None
        except Exception as e:
            logger.error(f"Unexpected help client error: {e}")
            return None

        logger.debug(f"Help reply in {(time.time() - start_time) * 1000:.0f}ms")
        return text or None

    def _build_messages(self, user_text: str, context: Optional[dict]) -> list[dict]:
        """Recent history (alternating roles) followed by the user's message."""
        messages: list[dict] = []
        for turn in (context or {}).get("history", []):
            role = turn.get("role")
            content = turn.get("content")
            if role not in ("user", "assistant") or not content:
                continue
            if messages and messages[-1]["role"] == role:
                messages[-1]["content"] += f"\n{content}"
            else:
                messages.append({"role": role, "content": content})

        # The conversation must start with a user turn
        while messages and messages[0]["role"] != "user":
            messages.pop(0)

        search = (context or {}).get("search")
        prompt = user_text
        if search:
            prompt = f"{user_text}\n\n(Known trip details: {search})"

        if messages and messages[-1]["role"] == "user":
            messages[-1]["content"] += f"\n{prompt}"
        else:
            messages.append({"role": "user", "content": prompt})
        return messages

    async def _call_with_retry(
        self,
        messages: list[dict],
        system: Optional[str],
        max_retries: int = 3,
    ) -> Any:
        """Call API with exponential backoff retry."""
        last_error = None

        for attempt in range(max_retries):
            try:
                kwargs: dict[str, Any] = {
                    "model": self._model,
                    "max_tokens": self._max_tokens,
                    "temperature": 0.3,
                    "messages": messages,
                }
                if system:
                    kwargs["system"] = system

                return await self._client.messages.create(**kwargs)

            except RateLimitError as e:
                last_error = e
                wait_time = 2 ** attempt
                logger.warning(f"Rate limited, waiting {wait_time}s (attempt {attempt + 1})")
                await asyncio.sleep(wait_time)

            except APIConnectionError as e:
                last_error = e
                wait_time = 2 ** attempt
                logger.warning(f"Connection error, retrying in {wait_time}s (attempt {attempt + 1})")
                await asyncio.sleep(wait_time)

            except APIError as e:
                logger.error(f"API error: {e}")
                raise HelpClientError(f"Help API call failed: {e}") from e

        raise HelpClientError(f"Max retries exceeded: {last_error}")

    async def close(self) -> None:
        """Close the client."""
        await self._client.close()


# Singleton
_help_client: Optional[HelpResponder] = None


def get_help_client() -> Optional[HelpResponder]:
    """Get the help responder, or None when disabled or unconfigured."""
    global _help_client
    if not settings.help_available:
        return None
    if _help_client is None:
        _help_client = AnthropicHelpClient()
    return _help_client


async def close_help_client() -> None:
    """Close the help responder if it was created."""
    global _help_client
    if isinstance(_help_client, AnthropicHelpClient):
        await _help_client.close()
    _help_client = None
