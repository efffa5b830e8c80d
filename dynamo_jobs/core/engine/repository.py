"""Repository contract consumed by the job scheduler."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from dynamo_jobs.core.models.job_models import JobMessage, JobRecord, JobStatus


class JobRepository(ABC):
    """Storage for JobRecords keyed by job id.

    Lookups return None or an empty list when nothing matches; only the
    partial updates (append_message, set_job_status, set_last_update) treat
    a missing job as an error.
    """

    @abstractmethod
    def find_one(self, job_id: str) -> Optional[JobRecord]:
        pass

    @abstractmethod
    def find_all(self) -> List[JobRecord]:
        pass

    @abstractmethod
    def find_all_job_info_without_messages(self) -> List[JobRecord]:
        pass

    @abstractmethod
    def find_by_type(self, job_type: str) -> List[JobRecord]:
        pass

    @abstractmethod
    def find_latest(self, max_count: int) -> List[JobRecord]:
        """Most recently started jobs of any type, newest first."""
        pass

    @abstractmethod
    def find_latest_by(self, job_type: str, max_count: int) -> List[JobRecord]:
        """Most recently started jobs of one type, newest first."""
        pass

    @abstractmethod
    def find_latest_jobs_distinct(self) -> List[JobRecord]:
        """The most recently updated job of every type."""
        pass

    @abstractmethod
    def find_running_without_update_since(self, cutoff: datetime) -> List[JobRecord]:
        pass

    @abstractmethod
    def find_status(self, job_id: str) -> Optional[JobStatus]:
        pass

    @abstractmethod
    def create_or_update(self, record: JobRecord) -> JobRecord:
        pass

    @abstractmethod
    def append_message(self, job_id: str, message: JobMessage) -> None:
        pass

    @abstractmethod
    def set_job_status(self, job_id: str, status: JobStatus) -> None:
        pass

    @abstractmethod
    def set_last_update(self, job_id: str, last_update: datetime) -> None:
        pass

    @abstractmethod
    def remove_if_stopped(self, job_id: str) -> bool:
        """Delete the job if it has stopped; True when an item was deleted."""
        pass

    @abstractmethod
    def size(self) -> int:
        pass

    @abstractmethod
    def delete_all(self) -> None:
        pass
