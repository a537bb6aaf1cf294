#!/usr/bin/env python3
"""
Recompute stored matches.

Meant for a scheduler (cron, k8s CronJob) or a manual re-run after bulk
student profile updates.

Usage:
    python scripts/refresh_matches.py              # every active job
    python scripts/refresh_matches.py --job-id ID  # one job
"""
import argparse
import json
import logging
import sys
sys.path.insert(0, '.')

from placement_matching.core.exceptions import MatchingError
from placement_matching.core.logging_config import setup_logging
from placement_matching.services.matching_service import get_matching_service

logger = logging.getLogger("refresh_matches")


def main() -> int:
    parser = argparse.ArgumentParser(description="Recompute candidate matches for jobs")
    parser.add_argument("--job-id", help="Only re-run this job (default: every active job)")
    parser.add_argument("--log-level", help="Override LOG_LEVEL")
    args = parser.parse_args()

    setup_logging(args.log_level)
    service = get_matching_service()

    if args.job_id:
        try:
            summary = service.run_match(args.job_id)
        except MatchingError as e:
            logger.error("Match run failed: %s", e, extra={"job_id": args.job_id})
            return 1
        print(json.dumps(summary.model_dump(mode="json", exclude={"top_matches"}), indent=2))
        return 0 if summary.persisted else 2

    summary = service.refresh_all_active_jobs()
    print(json.dumps(summary.model_dump(mode="json"), indent=2))
    return 1 if summary.failed else 0


if __name__ == "__main__":
    sys.exit(main())
