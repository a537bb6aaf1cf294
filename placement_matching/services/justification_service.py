"""
Justification Service

PURPOSE:
Write a short "why this candidate" explanation for the top-ranked matches.

CONTRACT:
- generate() never raises. Any LLM failure, empty answer or timeout turns
  into a deterministic template built only from local match data.
- enrich() runs the calls on a bounded thread pool. Each call has a
  request timeout and is retried with exponential backoff; whatever is
  still running at the enrichment deadline gets the template instead.

FALLBACK TIERS (by match score):
- >= 80: matched vs required count, relevant projects, readiness, gaps
- >= 60: top 3 matched skills, relevant projects, readiness, gaps
- else : matched count and up to 2 gaps as growth areas
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Sequence, Tuple

from placement_matching.core.config import MatchingConfig
from placement_matching.schemas.schemas import Candidate, Job, MatchData
from placement_matching.services.llm_client import LLMClient, get_llm_client
from placement_matching.services.ranking_service import ScoredCandidate

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = (
    "You are a recruitment expert who writes concise, data-driven candidate "
    "assessments. Be specific and professional."
)


def match_strength(score: int) -> str:
    if score >= 80:
        return "strong"
    if score >= 60:
        return "good"
    return "potential"


def build_prompt(candidate: Candidate, job: Job, match_data: MatchData) -> str:
    """User prompt for one candidate."""
    return f"""Explain why this student is a {match_strength(match_data.total_score)} match for this job in 2-3 concise sentences.

Student Profile:
- Name: {candidate.name or 'Not specified'}
- Skills: {', '.join(candidate.skills) or 'Not specified'}
- Relevant Projects: {match_data.relevant_projects_count} (Total: {len(candidate.projects)})
- Readiness Score: {candidate.readiness_score}%
- CGPA: {candidate.cgpa if candidate.cgpa is not None else 'N/A'}
- LeetCode Streak: {candidate.coding_streaks.leetcode} days
- GitHub Streak: {candidate.coding_streaks.github} days
- Certifications: {len(candidate.certifications)}

Job Requirements:
- Title: {job.title}
- Required Skills: {', '.join(job.required_skills) or 'None'}
- Preferred Skills: {', '.join(job.preferred_skills) or 'None'}
- Min Readiness: {job.min_readiness_score}%

Match Details:
- Match Score: {match_data.total_score}%
- Skills Matched: {', '.join(match_data.skills_matched) or 'None'}
- Skills Missing: {', '.join(match_data.skills_missing) or 'None'}

Write a professional justification focusing on:
1. Why this student fits the role (highlight matched skills and relevant projects)
2. Key strengths that make them stand out
3. Any gaps they may need to address (if score < 90)

Keep it positive, specific, and actionable. Maximum 3 sentences."""


def fallback_reason(candidate: Candidate, job: Job, match_data: MatchData) -> str:
    """Deterministic explanation built purely from local data."""
    score = match_data.total_score
    matched = match_data.skills_matched
    gaps = match_data.skills_missing[:2]
    projects = match_data.relevant_projects_count
    readiness = candidate.readiness_score

    if score >= 80:
        gap_text = (
            f"May benefit from developing: {', '.join(gaps)}."
            if gaps else "Excellent skill coverage."
        )
        return (
            f"Strong match with {len(matched)}/{len(job.required_skills)} required skills "
            f"and {projects} relevant projects. Demonstrates consistent growth with "
            f"{readiness}% readiness score. {gap_text}"
        )

    if score >= 60:
        strengths = ", ".join(matched[:3]) or "the core requirements"
        gap_text = (
            f" Could strengthen: {', '.join(gaps)}." if gaps else ""
        )
        return (
            f"Good match with solid foundation in {strengths}. Has {projects} relevant "
            f"projects and {readiness}% readiness.{gap_text}"
        )

    if gaps:
        growth_text = (
            f"Would benefit from gaining experience in {', '.join(gaps)} "
            f"to better align with role requirements."
        )
    else:
        growth_text = "Would benefit from stronger projects and readiness to stand out."
    return f"Potential match with {len(matched)} matching skills and growth potential. {growth_text}"


@dataclass
class EnrichmentResult:
    reasons: Dict[str, str] = field(default_factory=dict)
    degraded: int = 0

    @property
    def enriched(self) -> int:
        return len(self.reasons) - self.degraded


class JustificationService:
    """
    Generates match reasons with an LLM, falling back to templates.
    """

    def __init__(
        self,
        llm_client: Optional[LLMClient] = None,
        config: Optional[MatchingConfig] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.llm_client = llm_client
        self.config = config or MatchingConfig()
        self._sleep = sleep

    def generate(self, candidate: Candidate, job: Job, match_data: MatchData) -> str:
        """Explanation for one candidate. Never raises."""
        reason, _ = self._generate(candidate, job, match_data)
        return reason

    def _generate(self, candidate: Candidate, job: Job, match_data: MatchData) -> Tuple[str, bool]:
        """Returns (reason, degraded)."""
        if self.llm_client is None:
            return fallback_reason(candidate, job, match_data), True

        attempts = self.config.justification_max_retries + 1
        prompt = build_prompt(candidate, job, match_data)
        for attempt in range(attempts):
            try:
                text = self.llm_client.complete(SYSTEM_PROMPT, prompt, max_tokens=256, temperature=0.6)
                if text:
                    return text, False
                logger.warning("Empty justification from LLM", extra={
                    "job_id": job.id, "student_id": candidate.id, "attempt": attempt + 1
                })
            except Exception as e:
                logger.warning("Justification call failed: %s", e, extra={
                    "job_id": job.id, "student_id": candidate.id, "attempt": attempt + 1
                })
            if attempt < attempts - 1:
                self._sleep(self.config.justification_backoff * (2 ** attempt))

        return fallback_reason(candidate, job, match_data), True

    def enrich(self, job: Job, top: Sequence[ScoredCandidate]) -> EnrichmentResult:
        """
        Generate reasons for the given candidates concurrently.

        Returns reasons keyed by student id plus the number that fell back
        to the template.
        """
        result = EnrichmentResult()
        if not top:
            return result

        if self.llm_client is None:
            for scored in top:
                result.reasons[scored.student_id] = fallback_reason(
                    scored.candidate, job, scored.match_data
                )
            result.degraded = len(top)
            logger.info("LLM not configured, using template reasons", extra={
                "job_id": job.id, "degraded_enrichments": result.degraded
            })
            return result

        executor = ThreadPoolExecutor(
            max_workers=max(self.config.enrichment_workers, 1),
            thread_name_prefix="justify"
        )
        try:
            futures = {
                executor.submit(self._generate, s.candidate, job, s.match_data): s
                for s in top
            }
            done, not_done = wait(futures, timeout=self.config.enrichment_deadline)

            for future in done:
                scored = futures[future]
                reason, degraded = future.result()
                result.reasons[scored.student_id] = reason
                result.degraded += int(degraded)

            for future in not_done:
                scored = futures[future]
                logger.warning("Justification timed out, using template", extra={
                    "job_id": job.id, "student_id": scored.student_id
                })
                result.reasons[scored.student_id] = fallback_reason(
                    scored.candidate, job, scored.match_data
                )
                result.degraded += 1
        finally:
            # Do not wait for stragglers past the deadline
            executor.shutdown(wait=False, cancel_futures=True)

        return result


def get_justification_service(config: Optional[MatchingConfig] = None) -> JustificationService:
    """Get justification service instance."""
    return JustificationService(llm_client=get_llm_client(), config=config)
