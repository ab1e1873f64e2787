# middleware/api/assist.py

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
import logging

from ai.errors import GenerationError, RateLimitedError
from ai.models import IntentType, ProfileData

logger = logging.getLogger(__name__)

router = APIRouter()


class MatchRequest(BaseModel):
    resume_text: str = Field("", alias="resumeText")
    jd_text: str = Field("", alias="jdText")


class ConnectRequest(BaseModel):
    profile: Dict[str, Any] = {}
    intent: IntentType = IntentType.CONNECT
    resume_context: Optional[str] = Field(None, alias="resumeContext")


def _generation_failed(e: GenerationError, what: str) -> HTTPException:
    if isinstance(e, RateLimitedError):
        logger.warning(f"{what} rate limited: {e}")
        return HTTPException(status_code=429, detail="Rate limited, try again shortly")
    logger.error(f"{what} error: {e}")
    return HTTPException(status_code=500, detail="LLM processing failed")


@router.post("/gemini-match")
async def resume_match(body: MatchRequest, request: Request):
    """Score the stored resume against a job description"""
    if not body.resume_text.strip() or not body.jd_text.strip():
        raise HTTPException(status_code=400, detail="Missing resumeText or jdText")

    try:
        result = await request.app.state.resume_matcher.match(body.resume_text, body.jd_text)
    except GenerationError as e:
        raise _generation_failed(e, "Resume match") from e
    return result.to_dict()


@router.post("/gemini-connect")
async def connect_message(body: ConnectRequest, request: Request):
    """Personalized connection note for a profile page"""
    profile = ProfileData.from_dict(body.profile)
    if not profile.name and not profile.headline:
        raise HTTPException(status_code=400, detail="Missing profile")

    try:
        message = await request.app.state.icebreaker.generate(profile, body.intent, body.resume_context)
    except GenerationError as e:
        raise _generation_failed(e, "Connect message") from e
    return message.to_dict()
