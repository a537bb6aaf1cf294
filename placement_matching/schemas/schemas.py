"""
Pydantic Schemas - Matching engine data model and API responses

All schemas in one file for simplicity.

Candidate / Job are read-only snapshots built from MongoDB documents.
MatchResult is the value object persisted on the job (camelCase in MongoDB).
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Dict
from datetime import datetime
from enum import Enum

from placement_matching.services.skill_set import dedupe, normalize


# ============================================================
# ENUMS
# ============================================================

class JobStatus(str, Enum):
    draft = "draft"
    active = "active"
    closed = "closed"
    expired = "expired"


class InclusionPolicy(str, Enum):
    team = "team"
    individual = "individual"


class MatchRunState(str, Enum):
    loaded = "loaded"
    analyzed = "analyzed"
    scored = "scored"
    filtered = "filtered"
    ranked = "ranked"
    enriched = "enriched"
    persisted = "persisted"
    failed = "failed"
    discarded = "discarded"


# Statuses that mean the job was taken down while a run was in flight
INACTIVE_JOB_STATUSES = (JobStatus.closed.value, JobStatus.expired.value)


def _clean_skills(value) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        value = [value]
    return [str(s).strip() for s in value if s is not None and normalize(str(s))]


# ============================================================
# CANDIDATE SCHEMAS
# ============================================================

class Project(BaseModel):
    title: str = ""
    tags: List[str] = []
    verified: bool = False

    @field_validator("tags", mode="before")
    @classmethod
    def clean_tags(cls, v):
        return _clean_skills(v)


class Certification(BaseModel):
    name: str = ""
    verified: bool = False


class ReadinessEntry(BaseModel):
    score: float = 0
    calculated_at: Optional[datetime] = None


class CodingStreaks(BaseModel):
    leetcode: int = Field(0, ge=0)
    github: int = Field(0, ge=0)


class Candidate(BaseModel):
    """A student profile as seen by one match run."""

    id: str
    name: str = ""
    email: Optional[str] = None
    skills: List[str] = []
    projects: List[Project] = []
    certifications: List[Certification] = []
    cgpa: Optional[float] = None
    readiness_score: int = 0
    readiness_history: List[ReadinessEntry] = []
    coding_streaks: CodingStreaks = Field(default_factory=CodingStreaks)

    @field_validator("skills", mode="before")
    @classmethod
    def clean_skills(cls, v):
        return _clean_skills(v)

    @field_validator("cgpa", mode="before")
    @classmethod
    def cgpa_in_range(cls, v):
        # Out-of-range CGPA counts as not provided
        if v is None or v == "":
            return None
        v = float(v)
        if v < 0 or v > 10:
            return None
        return v

    @field_validator("readiness_score", mode="before")
    @classmethod
    def clamp_readiness(cls, v):
        if v is None or v == "":
            return 0
        return int(min(max(round(float(v)), 0), 100))

    def skill_tokens(self) -> set:
        """Normalized profile skills plus tags from every project."""
        tokens = {normalize(s) for s in self.skills}
        for project in self.projects:
            tokens.update(normalize(t) for t in project.tags)
        tokens.discard("")
        return tokens

    def pool_tokens(self) -> set:
        """Everything this candidate contributes to the population skill pool."""
        tokens = self.skill_tokens()
        tokens.update(normalize(c.name) for c in self.certifications)
        tokens.discard("")
        return tokens


# ============================================================
# JOB SCHEMAS
# ============================================================

class Job(BaseModel):
    id: str
    title: str = ""
    status: JobStatus = JobStatus.draft
    required_skills: List[str] = []
    preferred_skills: List[str] = []
    min_readiness_score: int = 0

    @field_validator("required_skills", "preferred_skills", mode="before")
    @classmethod
    def dedupe_skills(cls, v):
        return dedupe(_clean_skills(v))


# ============================================================
# MATCH SCHEMAS
# ============================================================

class MatchData(BaseModel):
    """Score calculator output for one (candidate, job) pair."""

    total_score: int = Field(..., ge=0, le=100)
    breakdown: Dict[str, float]
    skills_matched: List[str] = []
    skills_missing: List[str] = []
    relevant_projects_count: int = 0
    # Set when the minimum-score floor raised the total above the breakdown sum
    floor_applied: bool = False


class MatchResult(BaseModel):
    """One surviving candidate, persisted on the job."""

    model_config = ConfigDict(populate_by_name=True)

    student_id: str = Field(..., alias="studentId")
    match_score: int = Field(..., ge=0, le=100, alias="matchScore")
    match_reason: str = Field(..., min_length=1, alias="matchReason")
    skills_matched: List[str] = Field([], alias="skillsMatched")
    skills_missing: List[str] = Field([], alias="skillsMissing")
    last_updated: datetime = Field(..., alias="lastUpdated")


class MatchRunSummary(BaseModel):
    job_id: str
    job_title: str
    total_candidates: int
    match_count: int
    top_matches: List[MatchResult] = []
    policy: InclusionPolicy
    all_covered: bool
    coverage_percent: float
    included: int
    excluded: int
    skipped_candidates: int = 0
    enriched: int = 0
    degraded_enrichments: int = 0
    persisted: bool = True
    state: MatchRunState
    matched_at: datetime


class RefreshSummary(BaseModel):
    jobs: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    degraded_enrichments: int = 0


class ExtractedSkills(BaseModel):
    required_skills: List[str] = []
    preferred_skills: List[str] = []
    source: str = "llm"  # 'llm', 'keywords' or 'frequency'


# ============================================================
# API SCHEMAS
# ============================================================

class SkillExtractionRequest(BaseModel):
    description: str = Field(..., min_length=1)


class StoredMatchesResponse(BaseModel):
    job_id: str
    match_count: int
    last_matched_at: Optional[datetime] = None
    matches: List[MatchResult] = []


class ErrorResponse(BaseModel):
    detail: str
