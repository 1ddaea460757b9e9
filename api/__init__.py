"""
Ollama API clients used for model discovery.

Two sources are queried: Ollama Cloud (needs an API key) and a locally
running Ollama server. Both return raw model dicts; normalization into
catalog entries happens in model_catalog.
"""
import asyncio
import logging
from typing import Optional

import aiohttp

import constants as C

logger = logging.getLogger(__name__)


class OllamaError(Exception):
    """Base exception for Ollama discovery errors."""
    pass


class OllamaConnectionError(OllamaError):
    """Raised when the Ollama endpoint cannot be reached or times out."""
    pass


def extract_model_list(data: object) -> list[dict]:
    """Pull the model list out of the response shapes Ollama endpoints use.

    Accepts {"data": [...]} (OpenAI-compatible), {"models": [...]} (native)
    or a bare list.
    """
    models: object = []
    if isinstance(data, dict):
        if data.get("data") is not None:
            models = data.get("data")
        elif data.get("models") is not None:
            models = data.get("models")
    elif isinstance(data, list):
        models = data
    if not isinstance(models, list):
        return []
    return [m for m in models if isinstance(m, dict)]


class OllamaCloudClient:
    """Client for the Ollama Cloud model listing endpoints."""

    def __init__(self, base_url: str = C.OLLAMA_CLOUD_BASE_URL, timeout_sec: float = C.OLLAMA_CLOUD_TIMEOUT):
        """Initialize the cloud client.

        Args:
            base_url: Base URL of Ollama Cloud (e.g., https://ollama.com)
            timeout_sec: Total timeout for each listing request.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_sec = timeout_sec

    async def list_models(self, api_key: str) -> list[dict]:
        """Fetch the raw model list.

        Tries /v1/models first and falls back to /api/tags on a non-200 status.

        Raises:
            OllamaError: If both endpoints answer with an error status.
            OllamaConnectionError: If the service cannot be reached.
        """
        headers = {"Authorization": f"Bearer {api_key}"}
        timeout = aiohttp.ClientTimeout(total=self.timeout_sec)
        try:
            async with aiohttp.ClientSession(timeout=timeout, headers=headers) as session:
                async with session.get(f"{self.base_url}{C.OLLAMA_CLOUD_MODELS}") as resp:
                    if resp.status == 200:
                        return extract_model_list(await resp.json(content_type=None))
                    logger.info("%s returned %d, trying %s", C.OLLAMA_CLOUD_MODELS, resp.status, C.OLLAMA_CLOUD_TAGS)

                async with session.get(f"{self.base_url}{C.OLLAMA_CLOUD_TAGS}") as resp:
                    if resp.status != 200:
                        raise OllamaError(f"Ollama Cloud error {resp.status}: {resp.reason}")
                    return extract_model_list(await resp.json(content_type=None))
        except asyncio.TimeoutError as e:
            raise OllamaConnectionError(f"Ollama Cloud request timed out (exceeded {self.timeout_sec}s)") from e
        except aiohttp.ClientConnectorError as e:
            raise OllamaConnectionError(f"Failed to connect to Ollama Cloud: {e}") from e
        except aiohttp.ClientError as e:
            raise OllamaError(f"Client error: {e}") from e


class OllamaLocalClient:
    """Client for a locally hosted Ollama server."""

    def __init__(self, timeout_sec: float = C.OLLAMA_LOCAL_TIMEOUT):
        self.timeout_sec = timeout_sec

    async def list_models(self, endpoint: str) -> list[dict]:
        """Fetch {endpoint}/api/tags.

        The request is aborted once the timeout elapses.

        Raises:
            OllamaError: On a non-200 status or client error.
            OllamaConnectionError: If the server is down or the timeout hits.
        """
        url = f"{endpoint.rstrip('/')}{C.OLLAMA_LOCAL_TAGS}"
        timeout = aiohttp.ClientTimeout(total=self.timeout_sec)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url) as resp:
                    if resp.status != 200:
                        raise OllamaError(f"Local Ollama error {resp.status}: {resp.reason}")
                    data = await resp.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise OllamaConnectionError(f"Local Ollama timed out after {self.timeout_sec}s") from e
        except aiohttp.ClientConnectorError as e:
            raise OllamaConnectionError(f"Cannot reach local Ollama at {endpoint}: {e}") from e
        except aiohttp.ClientError as e:
            raise OllamaError(f"Client error: {e}") from e

        models = data.get("models") if isinstance(data, dict) else None
        if not isinstance(models, list):
            return []
        return [m for m in models if isinstance(m, dict)]

    async def check_connection(self, endpoint: str) -> bool:
        """Check if a local Ollama server answers on its listing endpoint.

        Returns:
            True if connected, False otherwise.
        """
        url = f"{endpoint.rstrip('/')}{C.OLLAMA_LOCAL_TAGS}"
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout_sec)) as session:
                async with session.get(url) as resp:
                    return resp.status == 200
        except (asyncio.TimeoutError, aiohttp.ClientError, ValueError) as e:
            logger.info("Local Ollama connection check failed for %s: %s", endpoint, e)
            return False


__all__ = [
    "OllamaError",
    "OllamaConnectionError",
    "OllamaCloudClient",
    "OllamaLocalClient",
    "extract_model_list",
]
