"""Completion collaborators: the only I/O boundary of the mapping pipeline.

Two implementations are provided. ``ChatModelCompletionClient`` talks to a
LangChain chat model directly; ``RelayCompletionClient`` posts the prompt pair
to an HTTP relay that holds the provider credential server-side.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

import httpx
import structlog
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_openai import ChatOpenAI

from .config import Settings
from .exceptions import CompletionError

logger = structlog.get_logger(__name__)

RELAY_COMPLETION_PATH = "/api/claude"
RELAY_HEALTH_PATH = "/api/health"


class CompletionClient(ABC):
    @abstractmethod
    async def complete(self, system: str, user: str) -> str:
        """Return raw model text, or raise ``CompletionError``."""
        raise NotImplementedError


def build_chat_model(settings: Settings) -> ChatOpenAI:
    if not settings.openai_api_key:
        raise RuntimeError("OPENAI_API_KEY is not set in environment/.env")
    return ChatOpenAI(
        model=settings.model_name,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
    )


class ChatModelCompletionClient(CompletionClient):
    def __init__(self, model: BaseChatModel) -> None:
        self._model = model

    async def complete(self, system: str, user: str) -> str:
        logger.debug("completion request", system_length=len(system), user_length=len(user))
        try:
            response = await self._model.ainvoke([("system", system), ("user", user)])
        except Exception as error:
            logger.error("chat model call failed", error=str(error))
            raise CompletionError(f"Chat model call failed: {error}") from error
        return self._to_text(response.content)

    @staticmethod
    def _to_text(content: Any) -> str:
        if isinstance(content, str):
            return content
        if not isinstance(content, list):
            return str(content)
        # Multimodal replies are lists of blocks; only text blocks carry a "text" key.
        return "\n".join(
            str(block["text"]) if isinstance(block, dict) and "text" in block else str(block)
            for block in content
        )


class RelayCompletionClient(CompletionClient):
    """Client for a relay accepting ``{system, message}`` and returning ``{response}``.

    Failed requests are not retried; the error propagates to the pipeline.
    """

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 120.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def complete(self, system: str, user: str) -> str:
        url = f"{self._base_url}{RELAY_COMPLETION_PATH}"
        logger.debug("relay request", url=url, system_length=len(system), user_length=len(user))
        try:
            response = await self._client.post(url, json={"system": system, "message": user})
        except httpx.HTTPError as error:
            logger.error("relay unreachable", url=url, error=str(error))
            raise CompletionError(f"Relay request failed: {error}") from error

        if not response.is_success:
            message = self._error_message(response)
            logger.error("relay returned failure", status_code=response.status_code, error=message)
            raise CompletionError(message, status_code=response.status_code)

        body = self._decode(response)
        text = body.get("response")
        if not isinstance(text, str):
            raise CompletionError(
                "Relay response is missing the 'response' field",
                status_code=response.status_code,
                details={"keys": sorted(body)},
            )
        return text

    async def health(self) -> Dict[str, Any]:
        url = f"{self._base_url}{RELAY_HEALTH_PATH}"
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as error:
            raise CompletionError(f"Relay health check failed: {error}") from error
        if not response.is_success:
            raise CompletionError(self._error_message(response), status_code=response.status_code)
        return self._decode(response)

    @staticmethod
    def _decode(response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError as error:
            raise CompletionError(
                f"Relay returned a non-JSON body: {response.text[:200]}",
                status_code=response.status_code,
            ) from error
        if not isinstance(body, dict):
            raise CompletionError("Relay returned an unexpected body", status_code=response.status_code)
        return body

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return f"API Error ({response.status_code}): {response.text}"
        if isinstance(body, dict) and body.get("error"):
            return f"API Error: {body['error']}"
        return f"API Error: Unknown error (status {response.status_code})"
