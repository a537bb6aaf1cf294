"""
Coverage Service

Decides, once per match run, whether the candidate population as a whole
can cover every required skill of a job.

WHY population-wide?
When a job's needs can only be met by complementary specialists, judging
each candidate alone would drop every one of them. If the combined pool
covers every required skill the run switches to the team policy (anyone
holding at least one required skill is kept); otherwise it falls back to
the individual percentage threshold.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from placement_matching.schemas.schemas import Candidate, InclusionPolicy, Job
from placement_matching.services.skill_set import any_match

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CoverageResult:
    all_covered: bool
    policy: InclusionPolicy
    covered_skills: List[str] = field(default_factory=list)
    missing_skills: List[str] = field(default_factory=list)
    coverage_percent: float = 0.0
    pool_size: int = 0


class CoverageAnalyzer:
    """Population-level required-skill coverage for one job."""

    def build_pool(self, candidates: Iterable[Candidate]) -> set:
        """Union of profile skills, project tags and certification names."""
        pool = set()
        for candidate in candidates:
            pool.update(candidate.pool_tokens())
        return pool

    def analyze(self, job: Job, candidates: Iterable[Candidate]) -> CoverageResult:
        pool = self.build_pool(candidates)
        required = job.required_skills

        covered, missing = [], []
        for skill in required:
            (covered if any_match(skill, pool) else missing).append(skill)

        # A job without required skills counts as covered: team policy, and
        # with nothing to match nobody is included
        all_covered = not missing
        coverage_percent = round(len(covered) / len(required) * 100, 1) if required else 0.0
        policy = InclusionPolicy.team if all_covered else InclusionPolicy.individual

        logger.info(
            "Combined skills coverage: %d/%d required skills (%.1f%%), using %s policy",
            len(covered), len(required), coverage_percent, policy.value,
            extra={
                "job_id": job.id,
                "all_covered": all_covered,
                "coverage_percent": coverage_percent,
                "policy": policy.value,
                "pool_size": len(pool),
            }
        )
        if missing:
            logger.debug("Skills missing from the whole pool: %s", ", ".join(missing),
                         extra={"job_id": job.id})

        return CoverageResult(
            all_covered=all_covered,
            policy=policy,
            covered_skills=covered,
            missing_skills=missing,
            coverage_percent=coverage_percent,
            pool_size=len(pool)
        )
