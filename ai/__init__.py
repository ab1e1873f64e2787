# ai/__init__.py
"""
Generative model access: salary estimates, resume matching, outreach notes
"""

from ai.errors import GenerationError, MalformedResponseError, RateLimitedError, UnavailableError
from ai.ollama_client import OllamaClient
from ai.generative_client import GenerativeClient
from ai.salary_estimator import SalaryEstimator
from ai.assistants import IcebreakerGenerator, ResumeMatcher
from ai.models import ConnectMessage, IntentType, MatchResult, ProfileData

__all__ = [
    'GenerationError',
    'MalformedResponseError',
    'RateLimitedError',
    'UnavailableError',
    'OllamaClient',
    'GenerativeClient',
    'SalaryEstimator',
    'IcebreakerGenerator',
    'ResumeMatcher',
    'ConnectMessage',
    'IntentType',
    'MatchResult',
    'ProfileData',
]
