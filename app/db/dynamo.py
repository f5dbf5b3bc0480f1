import logging
from decimal import Decimal
from functools import reduce
from typing import Any, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from app.db.base import (
    Document,
    DocumentStore,
    IdentityService,
    StoreError,
    new_document,
    sort_and_page,
    utc_now,
)

logger = logging.getLogger(__name__)


def get_resource(region: str):
    return boto3.resource("dynamodb", region_name=region)


class DynamoDocumentStore(DocumentStore):
    """
    One DynamoDB table per resource type.

    Tables use ``id`` as the partition key and carry a global secondary index
    on ``user_id`` for per-user listing. DynamoDB cannot sort on arbitrary
    attributes, so ordering and skip/limit happen after the query.
    """

    def __init__(self, table_name: str, dynamodb=None, user_index: str = "user_id-index") -> None:
        self.name = table_name
        self.user_index = user_index
        self.table = (dynamodb or boto3.resource("dynamodb")).Table(table_name)

    def _fail(self, operation: str, e: ClientError):
        message = e.response.get("Error", {}).get("Message", str(e))
        logger.error(f"{operation} on {self.name} failed: {message}")
        raise StoreError(message) from e

    def _collect(self, method, **kwargs) -> List[Document]:
        items = []
        while True:
            response = method(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key

    def _matching(self, filters: Optional[Document]) -> List[Document]:
        filters = dict(filters or {})
        user_id = filters.pop("user_id", None)
        kwargs = {}
        if filters:
            conditions = [Attr(k).eq(_convert_for_dynamo(v)) for k, v in filters.items()]
            kwargs["FilterExpression"] = reduce(lambda a, b: a & b, conditions)
        if user_id is not None:
            items = self._collect(
                self.table.query,
                IndexName=self.user_index,
                KeyConditionExpression=Key("user_id").eq(user_id),
                **kwargs,
            )
        else:
            items = self._collect(self.table.scan, **kwargs)
        return [_from_dynamo(item) for item in items]

    def find(self, filters=None, sort_by=None, order="desc", skip=0, limit=None) -> List[Document]:
        try:
            docs = self._matching(filters)
        except ClientError as e:
            self._fail("find", e)
        return sort_and_page(docs, sort_by, order, skip, limit)

    def count(self, filters=None) -> int:
        try:
            return len(self._matching(filters))
        except ClientError as e:
            self._fail("count", e)

    def insert_one(self, data: Document) -> Document:
        doc = new_document(data)
        try:
            self.table.put_item(Item=_convert_for_dynamo(doc))
        except ClientError as e:
            self._fail("insert_one", e)
        return doc

    def insert_many(self, items: List[Document]) -> List[Document]:
        docs = [new_document(item) for item in items]
        try:
            with self.table.batch_writer() as batch:
                for doc in docs:
                    batch.put_item(Item=_convert_for_dynamo(doc))
        except ClientError as e:
            self._fail("insert_many", e)
        return docs

    def find_by_id(self, record_id: str) -> Optional[Document]:
        try:
            response = self.table.get_item(Key={"id": record_id})
        except ClientError as e:
            self._fail("find_by_id", e)
        item = response.get("Item")
        return _from_dynamo(item) if item else None

    def find_by_id_and_update(self, record_id: str, changes: Document) -> Optional[Document]:
        changes = dict(changes, updated_at=utc_now())

        update_expression_parts = []
        expression_attribute_values = {}
        expression_attribute_names = {}

        for idx, (key, value) in enumerate(changes.items()):
            placeholder = f"#f{idx}"
            value_placeholder = f":v{idx}"
            update_expression_parts.append(f"{placeholder} = {value_placeholder}")
            expression_attribute_names[placeholder] = key
            expression_attribute_values[value_placeholder] = value

        try:
            response = self.table.update_item(
                Key={"id": record_id},
                UpdateExpression="SET " + ", ".join(update_expression_parts),
                ConditionExpression=Attr("id").exists(),
                ExpressionAttributeNames=expression_attribute_names,
                ExpressionAttributeValues=_convert_for_dynamo(expression_attribute_values),
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                return None
            self._fail("find_by_id_and_update", e)
        attributes = response.get("Attributes")
        return _from_dynamo(attributes) if attributes else None

    def find_by_id_and_delete(self, record_id: str) -> Optional[Document]:
        try:
            response = self.table.delete_item(Key={"id": record_id}, ReturnValues="ALL_OLD")
        except ClientError as e:
            self._fail("find_by_id_and_delete", e)
        attributes = response.get("Attributes")
        return _from_dynamo(attributes) if attributes else None

    def ping(self) -> bool:
        try:
            self.table.scan(Limit=1)
            return True
        except ClientError as e:
            logger.error(f"DynamoDB check for {self.name} failed: {str(e)}")
            return False


class DynamoIdentityService(IdentityService):
    """Reads the ``role`` attribute from the users table."""

    def __init__(self, table_name: str, dynamodb=None) -> None:
        self.table = (dynamodb or boto3.resource("dynamodb")).Table(table_name)

    def is_admin(self, user_id: str) -> bool:
        try:
            response = self.table.get_item(Key={"user_id": user_id})
        except ClientError as e:
            message = e.response.get("Error", {}).get("Message", str(e))
            logger.error(f"Role lookup for {user_id} failed: {message}")
            raise StoreError(message) from e
        item = response.get("Item") or {}
        return item.get("role") == "admin"

    def ping(self) -> bool:
        try:
            self.table.scan(Limit=1)
            return True
        except ClientError as e:
            logger.error(f"Users table check failed: {str(e)}")
            return False


def _convert_for_dynamo(obj: Any):
    """
    Recursively convert floats to Decimal for DynamoDB compatibility.
    """
    if isinstance(obj, float):
        return Decimal(str(obj))
    if isinstance(obj, dict):
        return {k: _convert_for_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_convert_for_dynamo(v) for v in obj]
    return obj


def _from_dynamo(obj: Any):
    """
    Recursively convert Decimal instances back to native Python numeric types.
    """
    if isinstance(obj, list):
        return [_from_dynamo(item) for item in obj]
    if isinstance(obj, dict):
        return {k: _from_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, Decimal):
        if obj % 1 == 0:
            return int(obj)
        return float(obj)
    return obj
