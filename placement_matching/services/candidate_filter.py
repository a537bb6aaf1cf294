"""
Candidate inclusion policies.

- Team policy (pool covers every required skill): keep anyone with at
  least one matched required skill.
- Individual policy: keep candidates whose matched share of the required
  skills reaches MatchingConfig.min_skill_match_percent.
"""

from dataclasses import dataclass

from placement_matching.schemas.schemas import InclusionPolicy, MatchData
from placement_matching.services.coverage_service import CoverageResult


@dataclass(frozen=True)
class FilterDecision:
    include: bool
    policy: InclusionPolicy
    match_percent: float
    reason: str


def skill_match_percent(matched_count: int, required_count: int) -> float:
    """Share of required skills matched. A job with no requirements is a 100% match."""
    if required_count == 0:
        return 100.0
    return matched_count / required_count * 100


class CandidateFilter:

    def __init__(self, coverage: CoverageResult, min_skill_match_percent: float = 10.0):
        self.coverage = coverage
        self.min_skill_match_percent = min_skill_match_percent

    @property
    def policy(self) -> InclusionPolicy:
        return self.coverage.policy

    def decide(self, match_data: MatchData, required_count: int) -> FilterDecision:
        matched_count = len(match_data.skills_matched)
        percent = skill_match_percent(matched_count, required_count)

        if self.policy == InclusionPolicy.team:
            if matched_count >= 1:
                return FilterDecision(True, self.policy, percent, "team match")
            return FilterDecision(False, self.policy, percent, "no matching skills")

        if percent >= self.min_skill_match_percent:
            return FilterDecision(True, self.policy, percent, "individual match")
        if matched_count == 0:
            return FilterDecision(False, self.policy, percent, "no matching skills")
        return FilterDecision(
            False, self.policy, percent,
            f"skills {percent:.1f}% < {self.min_skill_match_percent:g}%"
        )
