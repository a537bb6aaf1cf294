"""
In-memory stand-ins for MongoDB and the LLM used by the test scripts.

Student and job documents use the same camelCase shape as the real
collections so that document conversion is exercised too.
"""
import json
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional

from placement_matching.schemas.schemas import INACTIVE_JOB_STATUSES
from placement_matching.services.mongo_service import (
    job_from_document,
    match_result_from_document,
    match_result_to_document,
)

FIXED_NOW = datetime(2026, 1, 15, 10, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


def student_doc(
    student_id: str,
    skills=None,
    projects=None,
    certifications=None,
    cgpa=None,
    readiness=0,
    history=None,
    leetcode=0,
    github=0,
    name=None
) -> dict:
    """Student document in the platform's shape."""
    return {
        "_id": student_id,
        "name": name or f"Student {student_id}",
        "email": f"{student_id}@college.edu",
        "skills": skills or [],
        "projects": projects or [],
        "certifications": certifications or [],
        "cgpa": cgpa,
        "readinessScore": readiness,
        "readinessHistory": [{"score": s} for s in (history or [])],
        "leetcodeStats": {"streak": leetcode},
        "githubStats": {"streak": github},
    }


def job_doc(job_id: str, required=None, preferred=None, status="active", title="Backend Developer") -> dict:
    return {
        "_id": job_id,
        "title": title,
        "status": status,
        "requiredSkills": required or [],
        "preferredSkills": preferred or [],
        "minReadinessScore": 0,
    }


class FakeStudentRepository:

    def __init__(self, documents: List[dict]):
        self.documents = documents

    def load_documents(self) -> List[dict]:
        return [dict(d) for d in self.documents]


class FakeJobRepository:
    """Mimics JobRepository on a dict of job documents."""

    def __init__(self, *documents: dict):
        self.jobs: Dict[str, dict] = {d["_id"]: dict(d) for d in documents}
        self.writes = 0
        # Called right before a write, lets tests close or delete the job mid-run
        self.before_write = None

    def get_job(self, job_id: str):
        doc = self.jobs.get(job_id)
        return job_from_document(doc) if doc else None

    def list_active_job_ids(self) -> List[str]:
        return [job_id for job_id, d in self.jobs.items() if d.get("status") == "active"]

    def replace_matches(self, job_id, results, matched_at) -> bool:
        if self.before_write:
            self.before_write(self, job_id)
        doc = self.jobs.get(job_id)
        if doc is None or doc.get("status") in INACTIVE_JOB_STATUSES:
            return False
        documents = [match_result_to_document(r) for r in results]
        doc["matchedStudents"] = documents
        doc["matchCount"] = len(documents)
        doc["lastMatchedAt"] = matched_at
        self.writes += 1
        return True

    def get_match_list(self, job_id: str) -> Optional[dict]:
        doc = self.jobs.get(job_id)
        if doc is None:
            return None
        return {
            "matches": [match_result_from_document(m) for m in doc.get("matchedStudents") or []],
            "match_count": doc.get("matchCount") or 0,
            "last_matched_at": doc.get("lastMatchedAt"),
        }


class FakeLLMClient:
    """
    Scripted LLM. `fail_times` failures per prompt before answering,
    or always fail when `always_fail` is set.
    """

    def __init__(self, reply: str = "Strong fit for the role.", always_fail: bool = False,
                 fail_times: int = 0, delay: float = 0.0):
        self.reply = reply
        self.always_fail = always_fail
        self.fail_times = fail_times
        self.delay = delay
        self.calls = 0
        self._failures: Dict[str, int] = {}
        self._lock = threading.Lock()

    def complete(self, system_prompt, user_content, max_tokens=256, temperature=0.6, json_mode=False):
        with self._lock:
            self.calls += 1
            failures = self._failures.get(user_content, 0)
            if self.always_fail or failures < self.fail_times:
                self._failures[user_content] = failures + 1
                raise RuntimeError("LLM unavailable")
        if self.delay:
            threading.Event().wait(self.delay)
        return self.reply

    def extract_json(self, text: str) -> dict:
        return json.loads(text)
