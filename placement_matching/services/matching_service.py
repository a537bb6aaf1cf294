"""
Matching Service

PURPOSE:
Match the whole student population against one job and store the ranked
result on the job document.

HOW A RUN WORKS (MatchRun):
1. loaded    - Load the job and a snapshot of every student
2. analyzed  - Check once whether the combined pool covers all required skills
3. scored    - Score every candidate (bounded thread pool, pure function)
4. filtered  - Apply the team or individual inclusion policy
5. ranked    - Sort by score, ties by student id
6. enriched  - AI justifications for the top 50, templates for the rest
7. persisted - Replace matchedStudents / matchCount / lastMatchedAt atomically

Terminal states: persisted, failed (job not found) and discarded (job
deleted or closed while the run was in flight).

CONCURRENCY:
- At most one run per job in this process; a second request is rejected
  with MatchRunInProgressError.
- Runs for different jobs are independent; the active-jobs sweep runs them
  in parallel.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, List, Optional

from pydantic import ValidationError

from placement_matching.core.config import MatchingConfig, get_settings
from placement_matching.core.exceptions import JobNotFoundError, MatchRunInProgressError
from placement_matching.schemas.schemas import (
    Candidate,
    MatchResult,
    MatchRunState,
    MatchRunSummary,
    RefreshSummary,
    StoredMatchesResponse,
)
from placement_matching.services.candidate_filter import CandidateFilter
from placement_matching.services.coverage_service import CoverageAnalyzer, CoverageResult
from placement_matching.services.justification_service import (
    EnrichmentResult,
    JustificationService,
    fallback_reason,
    get_justification_service,
)
from placement_matching.services.mongo_service import (
    JobRepository,
    StudentRepository,
    candidate_from_document,
    get_job_repository,
    get_student_repository,
)
from placement_matching.services.ranking_service import Ranker, ScoredCandidate
from placement_matching.services.scoring_service import ScoreCalculator

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================
# IN-FLIGHT REGISTRY
# ============================================================

class RunRegistry:
    """Tracks which jobs have a match run in flight."""

    def __init__(self):
        self._lock = threading.Lock()
        self._active = set()

    @contextmanager
    def claim(self, job_id: str):
        with self._lock:
            if job_id in self._active:
                raise MatchRunInProgressError(job_id)
            self._active.add(job_id)
        try:
            yield
        finally:
            with self._lock:
                self._active.discard(job_id)

    def is_running(self, job_id: str) -> bool:
        with self._lock:
            return job_id in self._active


# Shared by every MatchingService in the process
_run_registry = RunRegistry()


# ============================================================
# MATCH RUN
# ============================================================

class MatchRun:
    """
    One full recompute-and-persist cycle for a single job.

    Holds the per-run state; nothing carries over between runs.
    """

    def __init__(
        self,
        job_id: str,
        job_repository: JobRepository,
        student_repository: StudentRepository,
        justification_service: JustificationService,
        config: MatchingConfig,
        clock: Callable[[], datetime] = utcnow
    ):
        self.job_id = job_id
        self.job_repository = job_repository
        self.student_repository = student_repository
        self.justification_service = justification_service
        self.config = config
        self.clock = clock

        self.calculator = ScoreCalculator(config.weights)
        self.analyzer = CoverageAnalyzer()
        self.ranker = Ranker()

        self.state: Optional[MatchRunState] = None
        self.job = None
        self.total_candidates = 0
        self.candidates: List[Candidate] = []
        self.skipped = 0
        self.coverage: Optional[CoverageResult] = None
        self.scored: List[ScoredCandidate] = []
        self.included: List[ScoredCandidate] = []
        self.excluded = 0
        self.ranked: List[ScoredCandidate] = []
        self.enrichment = EnrichmentResult()
        self.results: List[MatchResult] = []
        self.matched_at: Optional[datetime] = None

    def _advance(self, state: MatchRunState):
        self.state = state
        logger.debug("Match run is %s", state.value, extra={"job_id": self.job_id, "state": state.value})

    def execute(self) -> MatchRunSummary:
        started = time.monotonic()

        self._load()
        self._analyze()
        self._score()
        self._filter()
        self._rank()
        self._enrich()
        persisted = self._persist()

        summary = self._summary(persisted)
        logger.info(
            "Match run %s for job %s: %d of %d candidates matched",
            self.state.value, self.job.title, summary.match_count, summary.total_candidates,
            extra={
                "job_id": self.job_id,
                "state": self.state.value,
                "policy": summary.policy.value,
                "total_candidates": summary.total_candidates,
                "included": summary.included,
                "excluded": summary.excluded,
                "skipped_candidates": summary.skipped_candidates,
                "enriched": summary.enriched,
                "degraded_enrichments": summary.degraded_enrichments,
                "match_count": summary.match_count,
                "duration_ms": round((time.monotonic() - started) * 1000, 1),
            }
        )
        return summary

    # -- 1. loaded ------------------------------------------------------

    def _load(self):
        self.job = self.job_repository.get_job(self.job_id)
        if self.job is None:
            self._advance(MatchRunState.failed)
            logger.warning("Job not found", extra={"job_id": self.job_id, "state": "failed"})
            raise JobNotFoundError(self.job_id)

        for doc in self.student_repository.load_documents():
            self.total_candidates += 1
            try:
                self.candidates.append(candidate_from_document(doc))
            except (KeyError, TypeError, ValueError, ValidationError) as e:
                self.skipped += 1
                logger.warning("Skipping malformed student document: %s", e, extra={
                    "job_id": self.job_id, "student_id": str(doc.get("_id"))
                })

        logger.info("Matching %d students to job: %s", len(self.candidates), self.job.title,
                    extra={"job_id": self.job_id, "total_candidates": len(self.candidates)})
        self._advance(MatchRunState.loaded)

    # -- 2. analyzed ----------------------------------------------------

    def _analyze(self):
        self.coverage = self.analyzer.analyze(self.job, self.candidates)
        self._advance(MatchRunState.analyzed)

    # -- 3. scored ------------------------------------------------------

    def _score_one(self, candidate: Candidate) -> Optional[ScoredCandidate]:
        try:
            return ScoredCandidate(candidate, self.calculator.calculate(candidate, self.job))
        except Exception:
            logger.exception("Scoring failed, skipping candidate", extra={
                "job_id": self.job_id, "student_id": candidate.id
            })
            return None

    def _score(self):
        workers = max(self.config.scoring_workers, 1)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="score") as executor:
            outcomes = list(executor.map(self._score_one, self.candidates))

        self.scored = [s for s in outcomes if s is not None]
        self.skipped += len(outcomes) - len(self.scored)
        self._advance(MatchRunState.scored)

    # -- 4. filtered ----------------------------------------------------

    def _filter(self):
        candidate_filter = CandidateFilter(self.coverage, self.config.min_skill_match_percent)
        required_count = len(self.job.required_skills)

        for scored in self.scored:
            decision = candidate_filter.decide(scored.match_data, required_count)
            if decision.include:
                self.included.append(scored)
            else:
                self.excluded += 1
            logger.debug(
                "%s %s: %s (%d/%d required skills)",
                "Included" if decision.include else "Filtered",
                scored.candidate.name or scored.student_id,
                decision.reason,
                len(scored.match_data.skills_matched),
                required_count,
                extra={"job_id": self.job_id, "student_id": scored.student_id}
            )

        logger.info("Filtering summary: %d included, %d excluded, %d skipped",
                    len(self.included), self.excluded, self.skipped,
                    extra={
                        "job_id": self.job_id,
                        "policy": candidate_filter.policy.value,
                        "included": len(self.included),
                        "excluded": self.excluded,
                        "skipped_candidates": self.skipped,
                    })
        self._advance(MatchRunState.filtered)

    # -- 5. ranked ------------------------------------------------------

    def _rank(self):
        self.ranked = self.ranker.rank(self.included)
        self._advance(MatchRunState.ranked)

    # -- 6. enriched ----------------------------------------------------

    def _enrich(self):
        top = self.ranker.top(self.ranked, self.config.enrichment_limit)
        logger.info("Generating justifications for top %d matches", len(top),
                    extra={"job_id": self.job_id})
        self.enrichment = self.justification_service.enrich(self.job, top)
        self._advance(MatchRunState.enriched)

    # -- 7. persisted ---------------------------------------------------

    def _build_results(self) -> List[MatchResult]:
        results = []
        for scored in self.ranked:
            reason = self.enrichment.reasons.get(scored.student_id) or fallback_reason(
                scored.candidate, self.job, scored.match_data
            )
            results.append(MatchResult(
                student_id=scored.student_id,
                match_score=scored.score,
                match_reason=reason,
                skills_matched=scored.match_data.skills_matched,
                skills_missing=scored.match_data.skills_missing,
                last_updated=self.matched_at
            ))
        return results

    def _persist(self) -> bool:
        self.matched_at = self.clock()
        self.results = self._build_results()

        if self.job_repository.replace_matches(self.job_id, self.results, self.matched_at):
            self._advance(MatchRunState.persisted)
            return True

        self._advance(MatchRunState.discarded)
        logger.warning("Job was removed or deactivated during the run, results discarded",
                       extra={"job_id": self.job_id, "state": self.state.value})
        return False

    def _summary(self, persisted: bool) -> MatchRunSummary:
        return MatchRunSummary(
            job_id=self.job_id,
            job_title=self.job.title,
            total_candidates=self.total_candidates,
            match_count=len(self.results),
            top_matches=self.results[:self.config.summary_limit],
            policy=self.coverage.policy,
            all_covered=self.coverage.all_covered,
            coverage_percent=self.coverage.coverage_percent,
            included=len(self.included),
            excluded=self.excluded,
            skipped_candidates=self.skipped,
            enriched=self.enrichment.enriched,
            degraded_enrichments=self.enrichment.degraded,
            persisted=persisted,
            state=self.state,
            matched_at=self.matched_at
        )


# ============================================================
# MATCHING SERVICE (entry points)
# ============================================================

class MatchingService:
    """
    Entry points used by the API and the scheduled sweep.
    """

    def __init__(
        self,
        job_repository: Optional[JobRepository] = None,
        student_repository: Optional[StudentRepository] = None,
        justification_service: Optional[JustificationService] = None,
        config: Optional[MatchingConfig] = None,
        registry: Optional[RunRegistry] = None,
        clock: Callable[[], datetime] = utcnow
    ):
        self.config = config or get_settings().matching
        self.job_repository = job_repository or get_job_repository()
        self.student_repository = student_repository or get_student_repository()
        self.justification_service = justification_service or get_justification_service(self.config)
        self.registry = registry or _run_registry
        self.clock = clock

    def run_match(self, job_id: str) -> MatchRunSummary:
        """
        Full recompute for one job.

        Raises:
            JobNotFoundError: the job does not exist
            MatchRunInProgressError: a run for this job is already in flight
        """
        with self.registry.claim(job_id):
            run = MatchRun(
                job_id,
                self.job_repository,
                self.student_repository,
                self.justification_service,
                self.config,
                self.clock
            )
            return run.execute()

    def refresh_all_active_jobs(self) -> RefreshSummary:
        """
        Re-run matching for every active job.

        A failure for one job is logged and counted, never propagated.
        """
        job_ids = self.job_repository.list_active_job_ids()
        summary = RefreshSummary(jobs=len(job_ids))
        logger.info("Refreshing matches for %d active jobs", len(job_ids))
        if not job_ids:
            return summary

        workers = max(self.config.refresh_workers, 1)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="refresh") as executor:
            futures = {executor.submit(self.run_match, job_id): job_id for job_id in job_ids}
            for future in as_completed(futures):
                job_id = futures[future]
                try:
                    run_summary = future.result()
                except MatchRunInProgressError:
                    summary.skipped += 1
                    logger.info("Match run already in flight, skipping", extra={"job_id": job_id})
                except Exception:
                    summary.failed += 1
                    logger.exception("Match run failed", extra={"job_id": job_id})
                else:
                    if run_summary.persisted:
                        summary.succeeded += 1
                    else:
                        summary.skipped += 1
                    summary.degraded_enrichments += run_summary.degraded_enrichments

        logger.info("Job matches refreshed: %d succeeded, %d failed, %d skipped",
                    summary.succeeded, summary.failed, summary.skipped)
        return summary

    def get_stored_matches(self, job_id: str, limit: int = 50, min_score: int = 0) -> StoredMatchesResponse:
        """Best stored matches of a job, without recomputing."""
        stored = self.job_repository.get_match_list(job_id)
        if stored is None:
            raise JobNotFoundError(job_id)

        matches = [m for m in stored["matches"] if m.match_score >= min_score]
        matches.sort(key=lambda m: (-m.match_score, m.student_id))
        return StoredMatchesResponse(
            job_id=job_id,
            match_count=stored["match_count"],
            last_matched_at=stored["last_matched_at"],
            matches=matches[:limit]
        )


def get_matching_service() -> MatchingService:
    """Get matching service instance."""
    return MatchingService()
