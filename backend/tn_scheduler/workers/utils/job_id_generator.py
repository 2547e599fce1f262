# backend/tn_scheduler/workers/utils/job_id_generator.py
"""
Job ID Generator

Every APScheduler job created by the engine gets its id from here, so a
job id always tells which definition (and which cron expression) it serves.

NAMING CONVENTIONS:
• {prefix}_{definition_id}[_{expression_index}]
• Engine-internal jobs (HOUSEKEEPING_JOB_ID) use the ``system_`` prefix
"""

from ...constants import CRON_JOB_PREFIX, ONE_SHOT_JOB_PREFIX


class JobIdGenerator:
    """Generates consistent job IDs for different job types."""

    @staticmethod
    def one_shot(definition_id: str) -> str:
        """Generate job ID for a one-shot reminder timer."""
        return f"{ONE_SHOT_JOB_PREFIX}_{definition_id}"

    @staticmethod
    def cron(definition_id: str, index: int) -> str:
        """Generate job ID for the ``index``-th cron expression of a definition."""
        return f"{CRON_JOB_PREFIX}_{definition_id}_{index}"
