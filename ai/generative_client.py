# ai/generative_client.py
import logging
from typing import Any, Callable, Optional

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
)

from ai.config import AIConfig
from ai.errors import GenerationError, MalformedResponseError, RateLimitedError, classify_error
from ai.json_repair import clean_json_response, parse_json_response
from ai.ollama_client import OllamaClient

logger = logging.getLogger(__name__)


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, GenerationError) and exc.retryable


class GenerativeClient:
    """
    JSON-returning wrapper around a text generation transport

    Adds response repair, typed errors and exponential backoff that waits
    longer after rate limiting.
    """

    def __init__(
        self,
        transport: Any,
        max_retries: int = 3,
        base_delay: float = 1.0,
        rate_limit_base_delay: float = 3.0,
        backoff_multiplier: float = 3.0
    ):
        """
        Args:
            transport: object with `async generate(prompt, system_prompt=, temperature=,
                       max_tokens=, json_mode=) -> str`
            max_retries: total attempts per call
            base_delay: first backoff (seconds) after an ordinary failure
            rate_limit_base_delay: first backoff (seconds) after a rate limit
            backoff_multiplier: growth factor per attempt
        """
        self.transport = transport
        self.max_retries = max(1, max_retries)
        self.base_delay = base_delay
        self.rate_limit_base_delay = rate_limit_base_delay
        self.backoff_multiplier = backoff_multiplier

    @classmethod
    def from_config(cls, config: AIConfig, transport: Any = None) -> 'GenerativeClient':
        transport = transport or OllamaClient(
            base_url=config.base_url,
            model=config.model,
            timeout=config.timeout
        )
        return cls(
            transport,
            max_retries=config.max_retries,
            base_delay=config.base_delay,
            rate_limit_base_delay=config.rate_limit_base_delay,
            backoff_multiplier=config.backoff_multiplier
        )

    def backoff_delay(self, error: Optional[BaseException], attempt_number: int) -> float:
        """Seconds to wait after the given failed attempt (1-based)"""
        base = self.rate_limit_base_delay if isinstance(error, RateLimitedError) else self.base_delay
        return base * (self.backoff_multiplier ** (attempt_number - 1))

    def _wait(self, retry_state: RetryCallState) -> float:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        return self.backoff_delay(error, retry_state.attempt_number)

    async def generate_json(
        self,
        prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 512,
        system_prompt: Optional[str] = None,
        parse: Optional[Callable[[Any], Any]] = None
    ) -> Any:
        """
        Generate and parse a JSON response

        Args:
            prompt: User prompt
            temperature: Sampling temperature
            max_tokens: Max output tokens
            system_prompt: Optional system instruction
            parse: Converts the decoded JSON into a typed result; raising
                   MalformedResponseError makes the attempt count as failed

        Raises:
            RateLimitedError: rate limited on the final attempt (status_code 429)
            GenerationError: any other failure once retries are exhausted
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=self._wait,
            retry=retry_if_exception(_is_retryable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True
        )

        result = None
        async for attempt in retrying:
            with attempt:
                result = await self._attempt(prompt, temperature, max_tokens, system_prompt, parse)
        return result

    async def _attempt(
        self,
        prompt: str,
        temperature: float,
        max_tokens: int,
        system_prompt: Optional[str],
        parse: Optional[Callable[[Any], Any]]
    ) -> Any:
        try:
            raw = await self.transport.generate(
                prompt,
                system_prompt=system_prompt,
                temperature=temperature,
                max_tokens=max_tokens,
                json_mode=True
            )
        except Exception as e:
            error = classify_error(e)
            logger.warning(f"Generation failed ({error.__class__.__name__}): {e}")
            raise error

        logger.debug(f"Raw model response ({len(raw or '')} chars): {raw!r}")
        logger.debug(f"Cleaned model response: {clean_json_response(raw or '')!r}")

        data = parse_json_response(raw or '')
        if parse is None:
            return data

        try:
            return parse(data)
        except GenerationError:
            raise
        except (TypeError, ValueError, KeyError) as e:
            raise MalformedResponseError(f"Unexpected response shape: {e}", raw_text=raw) from e
