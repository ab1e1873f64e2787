# middleware/api/salary.py

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field
from typing import List, Optional
import logging

from salary.lookup_service import SalaryLookupService
from salary.models import JobQuery

logger = logging.getLogger(__name__)

router = APIRouter()


class JobItem(BaseModel):
    title: str = ""
    company: str = ""
    location: str = ""

    def to_query(self) -> JobQuery:
        return JobQuery(title=self.title, company=self.company, location=self.location)


class SalaryLookupRequest(BaseModel):
    jobs: Optional[List[JobItem]] = None
    force_ai: bool = Field(False, alias="forceAi")


def get_service(request: Request) -> SalaryLookupService:
    return request.app.state.lookup_service


@router.post("/salary-lookup")
async def salary_lookup(body: SalaryLookupRequest, request: Request):
    """Batch salary lookup for the job cards on a search page"""
    if body.jobs is None:
        raise HTTPException(status_code=400, detail="Missing jobs array")

    service = get_service(request)
    results = await service.lookup_batch([job.to_query() for job in body.jobs], force_ai=body.force_ai)
    return {"results": [result.to_dict() for result in results]}


@router.post("/salary-estimate")
async def salary_estimate(job: JobItem, request: Request):
    """Forced AI estimate for one job (the "estimate anyway" button)"""
    if not job.title.strip():
        raise HTTPException(status_code=400, detail="Missing title")

    service = get_service(request)
    result = await service.lookup_single(job.to_query(), force_ai=True)
    return result.to_dict()
