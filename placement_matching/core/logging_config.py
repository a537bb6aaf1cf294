"""Structured JSON logging configuration."""

import json
import logging
import sys
from datetime import datetime, timezone

from placement_matching.core.config import get_settings

# Keys passed through ``extra=`` that end up in the JSON record
STRUCTURED_FIELDS = (
    "job_id",
    "student_id",
    "state",
    "policy",
    "all_covered",
    "coverage_percent",
    "pool_size",
    "total_candidates",
    "included",
    "excluded",
    "skipped_candidates",
    "enriched",
    "degraded_enrichments",
    "match_count",
    "attempt",
    "duration_ms",
)


class JSONFormatter(logging.Formatter):
    """Outputs log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        for key in STRUCTURED_FIELDS:
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)
        return json.dumps(log_entry, default=str)


def setup_logging(level: str = None) -> None:
    """Configure root logger. JSON by default, plain text when LOG_JSON=false."""
    settings = get_settings()
    level = (level or settings.log_level).upper()

    handler = logging.StreamHandler(sys.stdout)
    if settings.log_json:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    logging.basicConfig(level=level, handlers=[handler], force=True)

    # The OpenAI SDK logs every HTTP request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
