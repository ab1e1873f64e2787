# ai/salary_estimator.py
import logging
from typing import Any, Dict, Optional

from ai.config import AIConfig
from ai.errors import MalformedResponseError
from ai.generative_client import GenerativeClient
from ai.prompts import SALARY_SYSTEM_PROMPT, build_salary_estimate_prompt
from salary.formatting import format_label, round_half_up
from salary.models import MatchType, SalaryResult
from salary.reference_data import LocationTables, load_location_tables

logger = logging.getLogger(__name__)

CONFIDENCE_LEVELS = ('high', 'medium', 'low')


class SalaryEstimator:
    """
    Generative salary estimate for jobs the database cannot answer
    """

    def __init__(
        self,
        client: GenerativeClient,
        config: Optional[AIConfig] = None,
        tables: Optional[LocationTables] = None
    ):
        self.client = client
        self.config = config or AIConfig()
        self.tables = tables or load_location_tables()

    async def estimate(self, title: str, company: str, location: str) -> SalaryResult:
        """
        Ask the model for an annual salary range

        Raises:
            GenerationError subclass when the model fails after retries
        """
        prompt = build_salary_estimate_prompt(title, company, location)
        result = await self.client.generate_json(
            prompt,
            temperature=self.config.salary_temperature,
            max_tokens=self.config.salary_max_tokens,
            system_prompt=SALARY_SYSTEM_PROMPT,
            parse=self._parse
        )
        logger.info(f"AI estimate for '{title}' @ '{company}' [{location}]: {result.label}")
        return result

    def _parse(self, data: Any) -> SalaryResult:
        if not isinstance(data, dict):
            raise MalformedResponseError(f"Expected JSON object, got {type(data).__name__}")

        salary_min = self._positive_int(data, 'salaryMin')
        salary_max = self._positive_int(data, 'salaryMax')
        salary_median = self._positive_int(data, 'salaryMedian')
        # Models sometimes swap the bounds
        salary_min, salary_median, salary_max = sorted((salary_min, salary_median, salary_max))

        currency = str(data.get('currency') or '').upper().strip()
        if currency not in self.tables.known_currencies:
            raise MalformedResponseError(f"Unknown currency in estimate: {currency!r}")

        confidence = str(data.get('confidence') or '').lower().strip()
        if confidence not in CONFIDENCE_LEVELS:
            confidence = 'low'

        return SalaryResult(
            found=True,
            match_type=MatchType.AI_ESTIMATE,
            label=format_label(salary_min, salary_max, currency, self.tables),
            salary_min=salary_min,
            salary_max=salary_max,
            salary_median=salary_median,
            currency=currency,
            is_ai_estimate=True,
            confidence=confidence,
            source='ai',
        )

    @staticmethod
    def _positive_int(data: Dict[str, Any], key: str) -> int:
        value = data.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise MalformedResponseError(f"{key} is not a number: {value!r}")
        if value <= 0:
            raise MalformedResponseError(f"{key} must be positive: {value!r}")
        return round_half_up(value)
