"""
MongoDB Service - Data access for the matching engine.

Collections used:
1. students - Student profiles. Read as a snapshot at the start of a run.
2. jobs     - Job postings. A run replaces matchedStudents, matchCount and
              lastMatchedAt in a single update.

Documents use the platform's camelCase field names; they are converted to
snake_case pydantic models here so the engine never sees raw documents.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from pymongo.collection import Collection

from placement_matching.db.mongodb import COLLECTIONS, get_collection
from placement_matching.schemas.schemas import (
    INACTIVE_JOB_STATUSES,
    Candidate,
    Job,
    JobStatus,
    MatchResult,
)


# ============================================================
# HELPERS: ids and document conversion
# ============================================================

def to_object_id(value: Any) -> Any:
    """ObjectId when the value looks like one, otherwise the value itself."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


def _is_verified(item: dict) -> bool:
    return bool(item.get("verified")) or item.get("status") == "verified"


def _streak(doc: dict, key: str) -> int:
    stats = doc.get(key) or {}
    if not isinstance(stats, dict):
        return 0
    return stats.get("streak") or 0


def candidate_from_document(doc: dict) -> Candidate:
    """
    Build a Candidate from a student document.

    Missing fields default to empty / zero. Raises pydantic.ValidationError
    when a present field cannot be coerced.
    """
    projects = [
        {
            "title": p.get("title") or "",
            "tags": p.get("tags") or [],
            "verified": _is_verified(p),
        }
        for p in (doc.get("projects") or []) if isinstance(p, dict)
    ]
    certifications = [
        {"name": c.get("name") or "", "verified": _is_verified(c)}
        for c in (doc.get("certifications") or []) if isinstance(c, dict)
    ]
    history = [
        {"score": h.get("score") or 0, "calculated_at": h.get("calculatedAt")}
        for h in (doc.get("readinessHistory") or []) if isinstance(h, dict)
    ]

    return Candidate.model_validate({
        "id": str(doc["_id"]),
        "name": doc.get("name") or "",
        "email": doc.get("email"),
        "skills": doc.get("skills") or [],
        "projects": projects,
        "certifications": certifications,
        "cgpa": doc.get("cgpa"),
        "readiness_score": doc.get("readinessScore"),
        "readiness_history": history,
        "coding_streaks": {
            "leetcode": _streak(doc, "leetcodeStats"),
            "github": _streak(doc, "githubStats"),
        },
    })


def job_from_document(doc: dict) -> Job:
    """Build a Job from a job document."""
    return Job.model_validate({
        "id": str(doc["_id"]),
        "title": doc.get("title") or "",
        "status": doc.get("status") or JobStatus.draft.value,
        "required_skills": doc.get("requiredSkills") or [],
        "preferred_skills": doc.get("preferredSkills") or [],
        "min_readiness_score": doc.get("minReadinessScore") or 0,
    })


def match_result_to_document(result: MatchResult) -> dict:
    doc = result.model_dump(by_alias=True)
    doc["studentId"] = to_object_id(result.student_id)
    return doc


def match_result_from_document(doc: dict) -> MatchResult:
    data = dict(doc)
    data["studentId"] = str(data.get("studentId"))
    return MatchResult.model_validate(data)


# ============================================================
# STUDENTS COLLECTION
# ============================================================

class StudentRepository:
    """
    Read-only access to student profiles.
    """

    # Only what scoring and justification need
    PROJECTION = {
        "name": 1, "email": 1, "skills": 1, "projects": 1, "certifications": 1,
        "cgpa": 1, "readinessScore": 1, "readinessHistory": 1,
        "leetcodeStats.streak": 1, "githubStats.streak": 1,
    }

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["students"])

    def load_documents(self) -> List[dict]:
        """Snapshot of every student document."""
        return list(self.collection.find({}, self.PROJECTION))


# ============================================================
# JOBS COLLECTION
# ============================================================

class JobRepository:
    """
    Handles job lookups and match list persistence.
    """

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["jobs"])

    def get_job(self, job_id: str) -> Optional[Job]:
        doc = self.collection.find_one(
            {"_id": to_object_id(job_id)},
            {"title": 1, "status": 1, "requiredSkills": 1,
             "preferredSkills": 1, "minReadinessScore": 1}
        )
        if doc is None:
            return None
        return job_from_document(doc)

    def list_active_job_ids(self) -> List[str]:
        cursor = self.collection.find({"status": JobStatus.active.value}, {"_id": 1})
        return [str(doc["_id"]) for doc in cursor]

    def replace_matches(
        self,
        job_id: str,
        results: Iterable[MatchResult],
        matched_at: datetime
    ) -> bool:
        """
        Replace the job's match list in one atomic update.

        Returns False when the job was deleted or taken down while the run
        was in flight; nothing is written in that case.
        """
        documents = [match_result_to_document(r) for r in results]
        result = self.collection.update_one(
            {"_id": to_object_id(job_id), "status": {"$nin": list(INACTIVE_JOB_STATUSES)}},
            {"$set": {
                "matchedStudents": documents,
                "matchCount": len(documents),
                "lastMatchedAt": matched_at,
            }}
        )
        return result.matched_count > 0

    def get_match_list(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Stored match list of a job, or None if the job does not exist."""
        doc = self.collection.find_one(
            {"_id": to_object_id(job_id)},
            {"matchedStudents": 1, "matchCount": 1, "lastMatchedAt": 1}
        )
        if doc is None:
            return None
        return {
            "matches": [match_result_from_document(m) for m in doc.get("matchedStudents") or []],
            "match_count": doc.get("matchCount") or 0,
            "last_matched_at": doc.get("lastMatchedAt"),
        }


def get_student_repository() -> StudentRepository:
    return StudentRepository()


def get_job_repository() -> JobRepository:
    return JobRepository()
