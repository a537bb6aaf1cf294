"""
Matching engine errors.

Only these propagate out of a match run. Everything below "fatal"
(bad candidate documents, failed justifications) is absorbed by the run
and shows up as counts in the run summary instead.
"""


class MatchingError(Exception):
    """Base class for matching engine errors."""


class JobNotFoundError(MatchingError):
    """The job to match does not exist. Aborts the run."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")


class MatchRunInProgressError(MatchingError):
    """A match run for this job is already in flight."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Match run already in progress for job {job_id}")
