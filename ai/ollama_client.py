# ai/ollama_client.py
import logging
from typing import Optional

import httpx

from ai.errors import classify_error

logger = logging.getLogger(__name__)


class OllamaClient:
    """
    Async client for an Ollama-compatible chat API

    Returns the raw model text; parsing and retries live in GenerativeClient.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llama3.1:8b",
        timeout: float = 60.0,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize Ollama client

        Args:
            base_url: Ollama API endpoint
            model: Model to use (llama3.1:8b, mistral, etc.)
            timeout: Request timeout in seconds
            http_client: Shared httpx client (one is created if None)
        """
        self.base_url = base_url.rstrip('/')
        self.model = model
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def is_available(self) -> bool:
        """Check if Ollama is running"""
        try:
            response = await self.client.get(f"{self.base_url}/api/tags", timeout=5.0)
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning(f"Ollama not available: {e}")
            return False

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 500,
        json_mode: bool = True
    ) -> str:
        """
        Generate text

        Args:
            prompt: User prompt
            system_prompt: System instruction
            temperature: Creativity (0.0-1.0)
            max_tokens: Max response length
            json_mode: Ask the server to constrain output to JSON

        Returns:
            Raw generated text

        Raises:
            GenerationError subclass (RateLimitedError for 429/503)
        """
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        payload = {
            "model": self.model,
            "messages": messages,
            "stream": False,
            "options": {
                "temperature": temperature,
                "num_predict": max_tokens
            }
        }
        if json_mode:
            payload["format"] = "json"

        try:
            response = await self.client.post(f"{self.base_url}/api/chat", json=payload)
            response.raise_for_status()
            result = response.json()
        except httpx.TimeoutException as e:
            logger.error(f"Ollama request timed out after {self.timeout}s")
            raise classify_error(e)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Ollama generation failed: {e}")
            raise classify_error(e)

        return (result.get("message") or {}).get("content", "").strip()

    async def close(self):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
