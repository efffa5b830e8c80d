"""DynamoDB persistence for scheduler job records."""

from dynamo_jobs.core.engine.errors import JobDecodeError, JobNotFoundError
from dynamo_jobs.core.engine.job_store import DynamoJobRepository, JOBS_TABLE_NAME
from dynamo_jobs.core.engine.repository import JobRepository
from dynamo_jobs.core.models.job_models import JobMessage, JobRecord, JobStatus, Level

__all__ = [
    "DynamoJobRepository",
    "JOBS_TABLE_NAME",
    "JobDecodeError",
    "JobMessage",
    "JobNotFoundError",
    "JobRecord",
    "JobRepository",
    "JobStatus",
    "Level",
]
