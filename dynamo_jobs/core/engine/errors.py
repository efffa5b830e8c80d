"""Exceptions raised by the job store."""

from typing import Optional


class JobDecodeError(ValueError):
    """A stored item could not be turned back into a JobRecord."""

    def __init__(self, message: str, job_id: Optional[str] = None, attribute: Optional[str] = None):
        self.job_id = job_id
        self.attribute = attribute
        prefix = f"job {job_id}: " if job_id else ""
        super().__init__(f"{prefix}{message}")


class JobNotFoundError(LookupError):
    """A partial update targeted a job id that is not in the table."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"job not found: {job_id}")
