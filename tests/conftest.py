import copy
import re
from datetime import datetime, timedelta, timezone

import pytest
from botocore.exceptions import ClientError

from dynamo_jobs.core.engine.job_store import DynamoJobRepository
from dynamo_jobs.core.models.job_models import JobRecord, JobStatus

T0 = datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)

_COMPARE = re.compile(r"^(#\w+)\s*(=|<)\s*(:\w+)$")
_FUNCTION = re.compile(r"^(attribute_exists|attribute_not_exists)\((#\w+)\)$")


def _split_top_level(text, sep=","):
    parts, depth, current = [], 0, ""
    for ch in text:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == sep and depth == 0:
            parts.append(current.strip())
            current = ""
        else:
            current += ch
    if current.strip():
        parts.append(current.strip())
    return parts


def _scalar(value):
    if "N" in value:
        return int(value["N"])
    return value.get("S")


class DynamoStub:
    """In-memory stand-in for the low-level DynamoDB client.

    Understands the expressions the job store issues. Scan applies Limit
    before the filter and returns a cursor whenever Limit was reached, like
    the real service.
    """

    def __init__(self):
        self.items = {}
        self.calls = []

    def _names(self, kwargs):
        return kwargs.get("ExpressionAttributeNames") or {}

    def _values(self, kwargs):
        return kwargs.get("ExpressionAttributeValues") or {}

    def _matches(self, item, expression, names, values):
        if not expression:
            return True
        for clause in re.split(r"\s+and\s+", expression.strip(), flags=re.IGNORECASE):
            func = _FUNCTION.match(clause)
            if func:
                present = names[func.group(2)] in item
                if present != (func.group(1) == "attribute_exists"):
                    return False
                continue
            cmp = _COMPARE.match(clause)
            assert cmp, f"unsupported expression: {clause}"
            attr = names[cmp.group(1)]
            if attr not in item:
                return False
            left, right = _scalar(item[attr]), _scalar(values[cmp.group(3)])
            if cmp.group(2) == "=" and not left == right:
                return False
            if cmp.group(2) == "<" and not left < right:
                return False
        return True

    def _project(self, item, projection, names):
        if not projection:
            return copy.deepcopy(item)
        wanted = [names.get(p.strip(), p.strip()) for p in projection.split(",")]
        return {k: copy.deepcopy(v) for k, v in item.items() if k in wanted}

    def _conditional_failed(self, operation):
        return ClientError(
            {"Error": {"Code": "ConditionalCheckFailedException", "Message": "The conditional request failed"}},
            operation,
        )

    def get_item(self, **kwargs):
        self.calls.append(("get_item", kwargs))
        item = self.items.get(kwargs["Key"]["id"]["S"])
        if item is None:
            return {}
        return {"Item": self._project(item, kwargs.get("ProjectionExpression"), self._names(kwargs))}

    def put_item(self, **kwargs):
        self.calls.append(("put_item", kwargs))
        item = copy.deepcopy(kwargs["Item"])
        self.items[item["id"]["S"]] = item
        return {}

    def delete_item(self, **kwargs):
        self.calls.append(("delete_item", kwargs))
        key = kwargs["Key"]["id"]["S"]
        condition = kwargs.get("ConditionExpression")
        if condition and not self._matches(self.items.get(key, {}), condition, self._names(kwargs), {}):
            raise self._conditional_failed("DeleteItem")
        self.items.pop(key, None)
        return {}

    def update_item(self, **kwargs):
        self.calls.append(("update_item", kwargs))
        key = kwargs["Key"]["id"]["S"]
        names, values = self._names(kwargs), self._values(kwargs)
        item = self.items.get(key, {})
        if not self._matches(item, kwargs.get("ConditionExpression"), names, values):
            raise self._conditional_failed("UpdateItem")

        expression = kwargs["UpdateExpression"]
        assert expression.startswith("SET ")
        for assignment in _split_top_level(expression[4:]):
            target, source = [s.strip() for s in assignment.split("=", 1)]
            attr = names[target]
            appended = re.match(r"^list_append\(if_not_exists\((#\w+), (:\w+)\), (:\w+)\)$", source)
            if appended:
                existing = item.get(names[appended.group(1)], values[appended.group(2)])
                item[attr] = {"L": existing["L"] + copy.deepcopy(values[appended.group(3)]["L"])}
            else:
                item[attr] = copy.deepcopy(values[source])
        self.items[key] = item
        return {}

    def scan(self, **kwargs):
        self.calls.append(("scan", kwargs))
        keys = list(self.items)
        start = 0
        if kwargs.get("ExclusiveStartKey"):
            start = keys.index(kwargs["ExclusiveStartKey"]["id"]["S"]) + 1
        limit = kwargs.get("Limit") or len(keys)
        evaluated = keys[start:start + limit]

        names, values = self._names(kwargs), self._values(kwargs)
        matched = [
            self.items[k]
            for k in evaluated
            if self._matches(self.items[k], kwargs.get("FilterExpression"), names, values)
        ]
        resp = {"Count": len(matched), "ScannedCount": len(evaluated)}
        if kwargs.get("Select") != "COUNT":
            resp["Items"] = [
                self._project(i, kwargs.get("ProjectionExpression"), names) for i in matched
            ]
        if evaluated and len(evaluated) == limit:
            resp["LastEvaluatedKey"] = {"id": {"S": evaluated[-1]}}
        return resp

    def scan_calls(self):
        return [kwargs for op, kwargs in self.calls if op == "scan"]

    def ops(self, name):
        return [kwargs for op, kwargs in self.calls if op == name]


def make_job(job_id, job_type="import", started=None, status=JobStatus.RUNNING, stopped=None,
             last_updated=None, messages=None, hostname="worker-1"):
    started = started or T0
    return JobRecord(
        job_id=job_id,
        hostname=hostname,
        job_type=job_type,
        status=status,
        started=started,
        stopped=stopped,
        last_updated=last_updated,
        messages=list(messages or []),
    )


def minutes(n):
    return T0 + timedelta(minutes=n)


@pytest.fixture
def dynamo():
    return DynamoStub()


@pytest.fixture
def repo(dynamo):
    return DynamoJobRepository(dynamo, page_size=2)
