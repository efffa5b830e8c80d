"""DynamoDB-backed JobRepository.

Every write through create_or_update replaces the whole item. The partial
updates (status, last update, messages) touch only their own attributes and
require the job to exist already.
"""

import logging
from datetime import datetime
from typing import List, Optional

from botocore.exceptions import ClientError

from dynamo_jobs.common.aws_errors import is_conditional_check_failed
from dynamo_jobs.core.engine import codec
from dynamo_jobs.core.engine.errors import JobNotFoundError
from dynamo_jobs.core.engine.pagination import ScanPaginator
from dynamo_jobs.core.engine.repository import JobRepository
from dynamo_jobs.core.models.job_models import (
    JobMessage,
    JobRecord,
    JobStatus,
    to_epoch_millis,
)

logger = logging.getLogger(__name__)

JOBS_TABLE_NAME = "jobs"
DEFAULT_PAGE_SIZE = 100


def _names(*attributes):
    return {f"#{attr}": attr for attr in attributes}


def _check_max_count(max_count):
    if isinstance(max_count, bool) or not isinstance(max_count, int) or max_count < 0:
        raise ValueError(f"max_count must be a non-negative integer, got {max_count!r}")


def _newest_started_first(records, max_count):
    ordered = sorted(records, key=lambda r: to_epoch_millis(r.started), reverse=True)
    return ordered[:max_count]


def _recency(record):
    # Records never updated rank below every updated one.
    if record.last_updated is not None:
        return (1, to_epoch_millis(record.last_updated))
    return (0, to_epoch_millis(record.started))


class DynamoJobRepository(JobRepository):
    def __init__(self, client, page_size=DEFAULT_PAGE_SIZE, table_name=JOBS_TABLE_NAME):
        if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size <= 0:
            raise ValueError(f"page_size must be a positive integer, got {page_size!r}")
        self.client = client
        self.page_size = page_size
        self.table_name = table_name

    @classmethod
    def from_config(cls, store_config, client=None):
        if client is None:
            from dynamo_jobs.providers.aws.services.dynamodb import client_from_config

            client = client_from_config(store_config)
        return cls(client, page_size=store_config.page_size, table_name=store_config.table_name)

    def _scan(self, **kwargs) -> ScanPaginator:
        return ScanPaginator(self.client, self.table_name, self.page_size, **kwargs)

    # -- lookups --

    def find_one(self, job_id: str) -> Optional[JobRecord]:
        resp = self.client.get_item(TableName=self.table_name, Key=codec.key_for(job_id))
        item = resp.get("Item")
        if not item:
            return None
        return codec.decode_job(item)

    def find_status(self, job_id: str) -> Optional[JobStatus]:
        resp = self.client.get_item(
            TableName=self.table_name,
            Key=codec.key_for(job_id),
            ProjectionExpression=f"#{codec.STATUS}",
            ExpressionAttributeNames=_names(codec.STATUS),
        )
        item = resp.get("Item")
        if not item:
            return None
        status = item.get(codec.STATUS, {}).get("S")
        return codec.decode_status(status, job_id)

    def find_all(self) -> List[JobRecord]:
        return list(self._scan().items())

    def find_all_job_info_without_messages(self) -> List[JobRecord]:
        paginator = self._scan(
            projection_expression=", ".join(f"#{attr}" for attr in codec.SUMMARY_ATTRIBUTES),
            expression_attribute_names=_names(*codec.SUMMARY_ATTRIBUTES),
        )
        return list(paginator.items())

    def find_by_type(self, job_type: str) -> List[JobRecord]:
        paginator = self._scan(
            filter_expression=f"#{codec.JOB_TYPE} = :jobType",
            expression_attribute_names=_names(codec.JOB_TYPE),
            expression_attribute_values={":jobType": codec.string_value(job_type)},
        )
        return list(paginator.items())

    def find_running_without_update_since(self, cutoff: datetime) -> List[JobRecord]:
        paginator = self._scan(
            filter_expression=(
                f"#{codec.LAST_UPDATED_EPOCH} < :cutoff "
                f"and attribute_not_exists(#{codec.STOPPED})"
            ),
            expression_attribute_names=_names(codec.LAST_UPDATED_EPOCH, codec.STOPPED),
            expression_attribute_values={":cutoff": codec.number_value(to_epoch_millis(cutoff))},
        )
        return list(paginator.items())

    def find_latest(self, max_count: int) -> List[JobRecord]:
        _check_max_count(max_count)
        return _newest_started_first(self.find_all(), max_count)

    def find_latest_by(self, job_type: str, max_count: int) -> List[JobRecord]:
        _check_max_count(max_count)
        return _newest_started_first(self.find_by_type(job_type), max_count)

    def find_latest_jobs_distinct(self) -> List[JobRecord]:
        latest = {}
        for record in self.find_all():
            current = latest.get(record.job_type)
            if current is None or _recency(record) > _recency(current):
                latest[record.job_type] = record
        return list(latest.values())

    def size(self) -> int:
        return self._scan().count()

    # -- writes --

    def create_or_update(self, record: JobRecord) -> JobRecord:
        self.client.put_item(TableName=self.table_name, Item=codec.encode_job(record))
        logger.debug("Stored job %s (%s, %s)", record.job_id, record.job_type, record.status.name)
        return record

    def _update_existing(self, job_id, update_expression, names, values):
        try:
            self.client.update_item(
                TableName=self.table_name,
                Key=codec.key_for(job_id),
                UpdateExpression=update_expression,
                ConditionExpression=f"attribute_exists(#{codec.ID})",
                ExpressionAttributeNames={**_names(codec.ID), **names},
                ExpressionAttributeValues=values,
            )
        except ClientError as exc:
            if is_conditional_check_failed(exc):
                raise JobNotFoundError(job_id) from exc
            raise

    def append_message(self, job_id: str, message: JobMessage) -> None:
        self._update_existing(
            job_id,
            f"SET #{codec.MESSAGES} = list_append(if_not_exists(#{codec.MESSAGES}, :empty), :message)",
            _names(codec.MESSAGES),
            {":empty": {"L": []}, ":message": {"L": [codec.encode_message(message)]}},
        )

    def set_job_status(self, job_id: str, status: JobStatus) -> None:
        self._update_existing(
            job_id,
            f"SET #{codec.STATUS} = :status",
            _names(codec.STATUS),
            {":status": codec.string_value(status.name)},
        )

    def set_last_update(self, job_id: str, last_update: datetime) -> None:
        self._update_existing(
            job_id,
            f"SET #{codec.LAST_UPDATED} = :lastUpdated, #{codec.LAST_UPDATED_EPOCH} = :lastUpdatedEpoch",
            _names(codec.LAST_UPDATED, codec.LAST_UPDATED_EPOCH),
            {
                ":lastUpdated": codec.timestamp_value(last_update),
                ":lastUpdatedEpoch": codec.number_value(to_epoch_millis(last_update)),
            },
        )

    # -- deletes --

    def remove_if_stopped(self, job_id: str) -> bool:
        record = self.find_one(job_id)
        if record is None or not record.is_stopped:
            return False

        try:
            self.client.delete_item(
                TableName=self.table_name,
                Key=codec.key_for(job_id),
                ConditionExpression=f"attribute_exists(#{codec.STOPPED})",
                ExpressionAttributeNames=_names(codec.STOPPED),
            )
        except ClientError as exc:
            if not is_conditional_check_failed(exc):
                raise
            logger.warning("Job %s is running again; not removed", job_id)
            return False
        logger.info("Removed stopped job %s", job_id)
        return True

    def delete_all(self) -> None:
        paginator = self._scan(
            projection_expression=f"#{codec.ID}",
            expression_attribute_names=_names(codec.ID),
        )
        keys = [item[codec.ID] for item in paginator.raw_items()]
        for key in keys:
            self.client.delete_item(TableName=self.table_name, Key={codec.ID: key})
        logger.info("Deleted %d jobs from %s", len(keys), self.table_name)
