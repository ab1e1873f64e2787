# ai/prompts.py
"""
Prompt templates for the generative model

All templates ask for a bare JSON object; responses are still run
through ai.json_repair before parsing.
"""
import re
from typing import Optional

from ai.models import IntentType, ProfileData

_EMAIL = re.compile(r'[\w.+-]+@[\w-]+\.[\w.-]+')
_PHONE = re.compile(r'(\+?\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}')
_SSN = re.compile(r'\b\d{3}-\d{2}-\d{4}\b')

SALARY_SYSTEM_PROMPT = "You are a salary data analyst. Respond with a single JSON object only."


def strip_pii(text: str) -> str:
    """Mask emails, phone numbers and SSNs before text leaves the machine"""
    # SSN first so the phone pattern does not swallow it
    text = _SSN.sub('[SSN]', text)
    text = _EMAIL.sub('[EMAIL]', text)
    return _PHONE.sub('[PHONE]', text)


def build_salary_estimate_prompt(title: str, company: str, location: str) -> str:
    return f"""Estimate the annual compensation for the following role.

Role: {title}
Company: {company or 'Unknown'}
Location: {location or 'Unknown'}

Instructions:
- Use the LOCAL CURRENCY for the location (e.g., INR for India, USD for US, GBP for UK)
- Be conservative: use median market rates, not top-of-band
- If the company is well-known, adjust based on their typical pay bands
- For Indian locations, express salary in annual INR
- For US locations, express salary in annual USD

Return ONLY a JSON object with these exact fields:
{{
  "salaryMin": <number, annual minimum in local currency>,
  "salaryMax": <number, annual maximum in local currency>,
  "salaryMedian": <number, annual median in local currency>,
  "currency": "<3-letter currency code e.g. INR, USD, GBP>",
  "confidence": "<high|medium|low>"
}}"""


def build_match_prompt(resume_text: str, jd_text: str) -> str:
    return f"""You are an expert recruiter analyzing a candidate's resume against a job description.

## Resume
{resume_text}

## Job Description
{jd_text}

## Instructions
Compare the resume against the job description. Focus on:
1. Years of experience match
2. Hard skills match (programming languages, tools, frameworks)
3. Soft skills and domain knowledge

Return a JSON object with exactly this structure:
{{
  "matchPercent": <number 0-100>,
  "status": "<strong|moderate|weak>",
  "summary": "<1-2 sentence summary of the match quality>",
  "matchedSkills": ["<skill1>", "<skill2>"],
  "missingSkills": ["<skill1>", "<skill2>"]
}}

Rules:
- matchPercent >= 75 means status "strong"
- matchPercent 50-74 means status "moderate"
- matchPercent < 50 means status "weak"
- Maximum 5 items each for matchedSkills and missingSkills
- Keep summary concise and actionable
- Return ONLY valid JSON, no markdown"""


def build_connect_prompt(
    profile: ProfileData,
    intent: IntentType,
    resume_context: Optional[str] = None
) -> str:
    return f"""You are a professional networking assistant. Generate a personalized LinkedIn connection message.

## Target Profile
- Name: {profile.name}
- Headline: {profile.headline}
- About: {profile.about}
- Company: {profile.current_company}
- Recent Activity: {'; '.join(profile.recent_activity)}

## Sender Context
{resume_context or 'Not provided'}

## Intent
The sender wants to connect for: {intent.description}

## Instructions
Generate a JSON object with this structure:
{{
  "message": "<personalized connection message under 280 characters>",
  "hashtags": ["<relevant>", "<hashtag>", "<topics>"]
}}

Rules:
- Message MUST be under 280 characters
- Be genuine and specific, reference something from their profile
- Avoid generic phrases like "I'd love to connect"
- Include a clear value proposition or shared interest
- 2-4 hashtags related to the conversation topic
- Return ONLY valid JSON, no markdown"""
