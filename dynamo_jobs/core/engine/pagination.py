"""Cursor-following table scans."""

import logging
from typing import Callable, Iterator, Optional

from dynamo_jobs.core.engine.codec import decode_job

logger = logging.getLogger(__name__)


class ScanPaginator:
    """Runs a scan page by page until DynamoDB stops returning a cursor.

    Filter and projection settings are fixed per instance; ``items()`` and
    ``count()`` each start a fresh scan from the beginning of the table.
    """

    def __init__(
        self,
        client,
        table_name: str,
        page_size: int,
        filter_expression: Optional[str] = None,
        expression_attribute_names: Optional[dict] = None,
        expression_attribute_values: Optional[dict] = None,
        projection_expression: Optional[str] = None,
        decoder: Callable = decode_job,
    ):
        self.client = client
        self.table_name = table_name
        self.page_size = page_size
        self.filter_expression = filter_expression
        self.expression_attribute_names = expression_attribute_names
        self.expression_attribute_values = expression_attribute_values
        self.projection_expression = projection_expression
        self.decoder = decoder

    def _request(self, **extra) -> dict:
        kwargs = {"TableName": self.table_name, "Limit": self.page_size}
        if self.filter_expression:
            kwargs["FilterExpression"] = self.filter_expression
        if self.projection_expression and extra.get("Select") != "COUNT":
            kwargs["ProjectionExpression"] = self.projection_expression
        if self.expression_attribute_names:
            kwargs["ExpressionAttributeNames"] = self.expression_attribute_names
        if self.expression_attribute_values:
            kwargs["ExpressionAttributeValues"] = self.expression_attribute_values
        kwargs.update(extra)
        return kwargs

    def pages(self, **extra) -> Iterator[dict]:
        cursor = None
        page_number = 0
        while True:
            kwargs = self._request(**extra)
            if cursor:
                kwargs["ExclusiveStartKey"] = cursor
            resp = self.client.scan(**kwargs)
            page_number += 1
            cursor = resp.get("LastEvaluatedKey")
            logger.debug(
                "scan %s page %d: count=%s more=%s",
                self.table_name,
                page_number,
                resp.get("Count", len(resp.get("Items", []))),
                bool(cursor),
            )
            yield resp
            if not cursor:
                break

    def raw_items(self) -> Iterator[dict]:
        for page in self.pages():
            yield from page.get("Items", [])

    def items(self) -> Iterator:
        for item in self.raw_items():
            yield self.decoder(item)

    def count(self) -> int:
        total = 0
        for page in self.pages(Select="COUNT"):
            total += page.get("Count", 0)
        return total
