# ai/assistants.py
import hashlib
import logging
from typing import Any, Optional

from ai.config import AIConfig
from ai.errors import MalformedResponseError
from ai.generative_client import GenerativeClient
from ai.models import ConnectMessage, IntentType, MatchResult, ProfileData
from ai.prompts import build_connect_prompt, build_match_prompt, strip_pii
from salary.cache import TieredCache

logger = logging.getLogger(__name__)

MAX_SKILLS = 5
MAX_MESSAGE_LENGTH = 280


def match_status(percent: int) -> str:
    if percent >= 75:
        return 'strong'
    if percent >= 50:
        return 'moderate'
    return 'weak'


class ResumeMatcher:
    """
    Score a resume against a job description

    Results are cached by content hash so reopening the same job is free.
    """

    def __init__(
        self,
        client: GenerativeClient,
        cache: Optional[TieredCache] = None,
        config: Optional[AIConfig] = None
    ):
        self.client = client
        self.cache = cache
        self.config = config or AIConfig()

    @staticmethod
    def cache_key(resume_text: str, jd_text: str) -> str:
        content = f"{resume_text.strip()}\n---\n{jd_text.strip()}"
        return hashlib.sha256(content.encode()).hexdigest()[:16]

    async def match(self, resume_text: str, jd_text: str) -> MatchResult:
        key = self.cache_key(resume_text, jd_text)
        if self.cache is not None:
            cached = await self.cache.get_match(key)
            if cached:
                logger.debug(f"Match cache hit: {key}")
                return MatchResult.from_dict(cached)

        prompt = build_match_prompt(strip_pii(resume_text), strip_pii(jd_text))
        result = await self.client.generate_json(
            prompt,
            temperature=self.config.match_temperature,
            max_tokens=self.config.match_max_tokens,
            parse=self._parse
        )
        logger.info(f"Resume match: {result.match_percent}% ({result.status})")

        if self.cache is not None:
            await self.cache.set_match(key, result.to_dict())
        return result

    def _parse(self, data: Any) -> MatchResult:
        if not isinstance(data, dict):
            raise MalformedResponseError(f"Expected JSON object, got {type(data).__name__}")

        try:
            percent = int(round(float(data['matchPercent'])))
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponseError(f"Missing or invalid matchPercent: {e}") from e
        percent = max(0, min(100, percent))

        # Status is derived from the percentage, not trusted from the model
        return MatchResult(
            match_percent=percent,
            status=match_status(percent),
            summary=str(data.get('summary') or '').strip(),
            matched_skills=[str(s) for s in (data.get('matchedSkills') or [])][:MAX_SKILLS],
            missing_skills=[str(s) for s in (data.get('missingSkills') or [])][:MAX_SKILLS],
        )


class IcebreakerGenerator:
    """Personalized LinkedIn connection notes"""

    def __init__(self, client: GenerativeClient, config: Optional[AIConfig] = None):
        self.client = client
        self.config = config or AIConfig()

    async def generate(
        self,
        profile: ProfileData,
        intent: IntentType,
        resume_context: Optional[str] = None
    ) -> ConnectMessage:
        prompt = build_connect_prompt(
            profile,
            intent,
            strip_pii(resume_context) if resume_context else None
        )

        def parse(data: Any) -> ConnectMessage:
            if not isinstance(data, dict) or not str(data.get('message') or '').strip():
                raise MalformedResponseError("Response has no message")
            return ConnectMessage(
                message=self._truncate(str(data['message']).strip()),
                hashtags=[str(h).lstrip('#') for h in (data.get('hashtags') or [])],
                intent=intent,
            )

        message = await self.client.generate_json(
            prompt,
            temperature=self.config.connect_temperature,
            max_tokens=self.config.connect_max_tokens,
            parse=parse
        )
        logger.info(f"Generated {intent.value} message for {profile.name or 'unknown profile'}")
        return message

    @staticmethod
    def _truncate(message: str) -> str:
        if len(message) <= MAX_MESSAGE_LENGTH:
            return message
        cut = message[:MAX_MESSAGE_LENGTH - 3].rstrip()
        if ' ' in cut:
            cut = cut.rsplit(' ', 1)[0]
        return cut + '...'
