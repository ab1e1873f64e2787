# ai/models.py
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Dict, Any


class IntentType(str, Enum):
    """Why the sender wants to connect"""
    REFERRAL = "referral"
    CONNECT = "connect"
    BUSINESS = "business"

    @property
    def description(self) -> str:
        return {
            IntentType.REFERRAL: "asking for a job referral",
            IntentType.CONNECT: "general professional networking",
            IntentType.BUSINESS: "exploring a business opportunity",
        }[self]


@dataclass
class ProfileData:
    """Scraped LinkedIn profile of the person being contacted"""
    name: str = ""
    headline: str = ""
    about: str = ""
    current_company: str = ""
    recent_activity: List[str] = field(default_factory=list)
    profile_url: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProfileData':
        return cls(
            name=data.get('name') or '',
            headline=data.get('headline') or '',
            about=data.get('about') or '',
            current_company=data.get('currentCompany') or '',
            recent_activity=[str(a) for a in (data.get('recentActivity') or [])],
            profile_url=data.get('profileUrl') or '',
        )


@dataclass
class MatchResult:
    """Resume vs job description comparison"""
    match_percent: int
    status: str                    # strong, moderate, weak
    summary: str
    matched_skills: List[str] = field(default_factory=list)
    missing_skills: List[str] = field(default_factory=list)
    cached_at: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'matchPercent': self.match_percent,
            'status': self.status,
            'summary': self.summary,
            'matchedSkills': list(self.matched_skills),
            'missingSkills': list(self.missing_skills),
        }
        if self.cached_at is not None:
            data['cachedAt'] = self.cached_at
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MatchResult':
        return cls(
            match_percent=int(data['matchPercent']),
            status=data['status'],
            summary=data.get('summary', ''),
            matched_skills=list(data.get('matchedSkills') or []),
            missing_skills=list(data.get('missingSkills') or []),
            cached_at=data.get('cachedAt'),
        )


@dataclass
class ConnectMessage:
    """Generated connection note"""
    message: str
    hashtags: List[str]
    intent: IntentType

    def to_dict(self) -> Dict[str, Any]:
        return {
            'message': self.message,
            'hashtags': list(self.hashtags),
            'intent': self.intent.value,
        }
