# ai/errors.py
from typing import Optional

RATE_LIMIT_STATUS_CODES = (429, 503)


class GenerationError(Exception):
    """Base error for generative model calls"""

    def __init__(self, message: str, *, status_code: Optional[int] = None, retryable: bool = True):
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class MalformedResponseError(GenerationError):
    """Model output could not be repaired into the expected JSON"""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class RateLimitedError(GenerationError):
    """Provider rate limit or quota hit; retry later"""

    def __init__(self, message: str = "Rate limited"):
        super().__init__(message, status_code=429)


class UnavailableError(GenerationError):
    """Provider unreachable or failed for a non rate-limit reason"""
    pass


def _status_code_of(exc: BaseException) -> Optional[int]:
    status = getattr(exc, 'status_code', None)
    if status is None:
        response = getattr(exc, 'response', None)
        status = getattr(response, 'status_code', None)
    return status if isinstance(status, int) else None


def is_rate_limit(exc: BaseException) -> bool:
    """HTTP 429/503, or a message mentioning 429/quota"""
    if isinstance(exc, RateLimitedError):
        return True
    if _status_code_of(exc) in RATE_LIMIT_STATUS_CODES:
        return True
    message = str(exc).lower()
    return '429' in message or 'quota' in message


def classify_error(exc: BaseException) -> GenerationError:
    """Map any transport/parse failure onto the typed error hierarchy"""
    if isinstance(exc, (MalformedResponseError, RateLimitedError)):
        return exc
    if is_rate_limit(exc):
        error: GenerationError = RateLimitedError(str(exc) or "Rate limited")
    elif isinstance(exc, GenerationError):
        return exc
    else:
        error = UnavailableError(str(exc) or exc.__class__.__name__, status_code=_status_code_of(exc))
    error.__cause__ = exc
    return error
