"""
Scoring Service

PURPOSE:
Compute a bounded 0-100 match score for one (candidate, job) pair,
together with a per-factor breakdown and the matched/missing skills.

FACTORS (default weights, see ScoringWeights):
1. Required skills     30  (15 when the job lists none)
2. Preferred skills    10  (5 when the job lists none)
3. Project relevance   25  (relevant count, verified bonus, tag diversity)
4. Readiness score     20
5. Growth trajectory   10  (last 3 readiness snapshots)
6. CGPA                 3  (1.5 when not provided)
7. Certifications       2  (verified only)
8. Coding consistency   5  (best of LeetCode / GitHub streak)

MINIMUM-SCORE FLOOR:
A candidate holding at least half of the required skills never scores
below 25 + required_score/30 * 25 (25-50 points). The floor is applied
after the factors are summed, so when it binds the breakdown does not add
up to total_score. MatchData.floor_applied marks those cases.
"""

import math
from typing import List, Optional, Tuple

from placement_matching.core.config import ScoringWeights
from placement_matching.schemas.schemas import Candidate, Job, MatchData, Project
from placement_matching.services.skill_set import any_match, normalize


# ============================================================
# HELPERS
# ============================================================

def clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def round_half_up(value: float) -> int:
    """Round .5 upwards (Python's round() rounds half to even)."""
    return int(math.floor(value + 0.5))


def split_skills(skills: List[str], tokens: set) -> Tuple[List[str], List[str]]:
    """Partition job skills into (matched, missing) against a candidate's tokens."""
    matched, missing = [], []
    for skill in skills:
        if any_match(skill, tokens):
            matched.append(skill)
        else:
            missing.append(skill)
    return matched, missing


def relevant_projects(projects: List[Project], required_skills: List[str]) -> List[Project]:
    """Projects with at least one tag matching a required skill."""
    return [
        p for p in projects
        if any(any_match(tag, required_skills) for tag in p.tags)
    ]


# ============================================================
# SCORE CALCULATOR
# ============================================================

class ScoreCalculator:
    """
    Pure scoring for a single candidate.

    Holds no mutable state, so one instance can be shared by every
    worker thread of a match run.
    """

    def __init__(self, weights: Optional[ScoringWeights] = None):
        self.weights = weights or ScoringWeights()

    def calculate(self, candidate: Candidate, job: Job) -> MatchData:
        w = self.weights
        tokens = candidate.skill_tokens()
        required = job.required_skills
        preferred = job.preferred_skills

        # 1. Required skills
        skills_matched, skills_missing = split_skills(required, tokens)
        if required:
            required_score = len(skills_matched) / len(required) * w.required_skills
        else:
            required_score = w.required_skills_default

        # 2. Preferred skills
        if preferred:
            preferred_matched, _ = split_skills(preferred, tokens)
            preferred_score = min(
                len(preferred_matched) / len(preferred) * w.preferred_skills,
                w.preferred_skills
            )
        else:
            preferred_score = w.preferred_skills_default

        # 3. Project relevance
        relevant = relevant_projects(candidate.projects, required)
        project_score = self._project_score(relevant)

        # 4. Readiness
        readiness_score = candidate.readiness_score * w.readiness / 100

        # 5. Growth
        growth_score = self._growth_score(candidate)

        # 6. CGPA
        if candidate.cgpa is None:
            cgpa_score = w.cgpa_default
        else:
            cgpa_score = candidate.cgpa * w.cgpa / 10

        # 7. Certifications
        verified_certs = sum(1 for c in candidate.certifications if c.verified)
        cert_score = min(verified_certs * w.certification_each, w.certification_cap)

        # 8. Coding consistency
        best_streak = max(candidate.coding_streaks.leetcode, candidate.coding_streaks.github)
        consistency_score = min(best_streak / w.streak_divisor, w.streak_cap)

        breakdown = {
            "required_skills": required_score,
            "preferred_skills": preferred_score,
            "projects": project_score,
            "readiness": readiness_score,
            "growth": growth_score,
            "cgpa": cgpa_score,
            "certifications": cert_score,
            "consistency": consistency_score,
        }
        total = sum(breakdown.values())

        floor_applied = False
        if self._floor_eligible(len(skills_matched), len(required)):
            minimum = w.floor_base + required_score / w.required_skills * w.floor_span
            if minimum > total:
                total = minimum
                floor_applied = True

        return MatchData(
            total_score=round_half_up(clamp(total, 0, 100)),
            breakdown=breakdown,
            skills_matched=skills_matched,
            skills_missing=skills_missing,
            relevant_projects_count=len(relevant),
            floor_applied=floor_applied
        )

    def _project_score(self, relevant: List[Project]) -> float:
        w = self.weights
        verified = sum(1 for p in relevant if p.verified)
        distinct_tags = {normalize(t) for p in relevant for t in p.tags}
        distinct_tags.discard("")

        score = min(len(relevant) * w.project_each, w.project_cap)
        score += min(verified * w.verified_project_each, w.verified_project_cap)
        score += min(len(distinct_tags) * w.project_tag_each, w.project_tag_cap)
        return score

    def _growth_score(self, candidate: Candidate) -> float:
        w = self.weights
        history = candidate.readiness_history
        if len(history) >= w.growth_window:
            recent = history[-w.growth_window:]
            growth = recent[-1].score - recent[0].score
            return clamp(growth / w.growth_divisor, 0, w.growth_cap)
        if candidate.readiness_score >= w.growth_high_performer_readiness:
            # Credit high performers who have no history yet
            return w.growth_high_performer_credit
        return 0.0

    def _floor_eligible(self, matched_count: int, required_count: int) -> bool:
        if matched_count == 0:
            return False
        return matched_count >= required_count * self.weights.floor_required_ratio
