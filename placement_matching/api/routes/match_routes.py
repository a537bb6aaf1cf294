"""
Match Routes

POST /jobs/{job_id}/match   - Recompute matches for a job
GET  /jobs/{job_id}/matches - Stored matches (no recompute)
POST /jobs/match/refresh    - Recompute matches for every active job
POST /jobs/skills/extract   - Job description -> required / preferred skills

Authentication and job ownership checks live in the platform API in front
of this service.
"""

from fastapi import APIRouter, HTTPException, Depends, Query

from placement_matching.core.exceptions import JobNotFoundError, MatchRunInProgressError
from placement_matching.services.matching_service import MatchingService, get_matching_service
from placement_matching.services.skill_extraction_service import (
    SkillExtractionService,
    get_skill_extractor,
)
from placement_matching.schemas.schemas import (
    ErrorResponse, ExtractedSkills, MatchRunSummary, RefreshSummary,
    SkillExtractionRequest, StoredMatchesResponse
)

router = APIRouter(prefix="/jobs", tags=["Matching"])


@router.post(
    "/{job_id}/match",
    response_model=MatchRunSummary,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}}
)
def match_students(job_id: str, service: MatchingService = Depends(get_matching_service)):
    """
    Match every student to this job.

    Process:
    1. Check whether the combined student pool covers all required skills
    2. Score each student (skills, projects, readiness, growth, CGPA, certs, streaks)
    3. Keep students allowed by the team or individual policy
    4. Rank, write justifications for the top 50, store on the job
    """
    try:
        return service.run_match(job_id)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")
    except MatchRunInProgressError:
        raise HTTPException(status_code=409, detail="Matching is already running for this job")


@router.get(
    "/{job_id}/matches",
    response_model=StoredMatchesResponse,
    responses={404: {"model": ErrorResponse}}
)
def get_matched_students(
    job_id: str,
    limit: int = Query(50, ge=1, le=500),
    min_score: int = Query(0, ge=0, le=100),
    service: MatchingService = Depends(get_matching_service)
):
    """Stored matches of a job, best first."""
    try:
        return service.get_stored_matches(job_id, limit=limit, min_score=min_score)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")


@router.post("/match/refresh", response_model=RefreshSummary)
def refresh_matches(service: MatchingService = Depends(get_matching_service)):
    """Re-run matching for all active jobs. Per-job failures are only counted."""
    return service.refresh_all_active_jobs()


@router.post("/skills/extract", response_model=ExtractedSkills)
def extract_skills(
    body: SkillExtractionRequest,
    extractor: SkillExtractionService = Depends(get_skill_extractor)
):
    """Suggest required / preferred skills from a job description."""
    return extractor.extract(body.description)
