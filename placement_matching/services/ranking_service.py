"""
Ranking of included candidates.

Order is match score descending, then student id ascending so that two runs
over the same data always produce the same list.
"""

from dataclasses import dataclass
from typing import List, Sequence

from placement_matching.schemas.schemas import Candidate, MatchData


@dataclass(frozen=True)
class ScoredCandidate:
    candidate: Candidate
    match_data: MatchData

    @property
    def student_id(self) -> str:
        return self.candidate.id

    @property
    def score(self) -> int:
        return self.match_data.total_score


class Ranker:

    def rank(self, scored: Sequence[ScoredCandidate]) -> List[ScoredCandidate]:
        return sorted(scored, key=lambda s: (-s.score, s.student_id))

    def top(self, ranked: Sequence[ScoredCandidate], limit: int) -> List[ScoredCandidate]:
        return list(ranked[:max(limit, 0)])
