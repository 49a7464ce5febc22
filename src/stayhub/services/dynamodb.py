"""DynamoDB access for the marketplace tables.

Table names are "<prefix>-<table>", where the prefix comes from
DYNAMODB_TABLE_PREFIX or defaults to "stayhub-<environment>". Failed
condition checks are reported as return values; every other ClientError
propagates.
"""

import os
from typing import Any

import boto3
from boto3.dynamodb.conditions import Key
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError

# One instance per Lambda container
_dynamodb_service_instance: "DynamoDBService | None" = None

_serializer = TypeSerializer()

# BatchGetItem accepts at most this many keys per call
BATCH_GET_LIMIT = 100


def get_dynamodb_service(environment: str | None = None) -> "DynamoDBService":
    """Return the shared DynamoDBService, creating it on first use.

    Args:
        environment: Environment name, honoured only by the first call
    """
    global _dynamodb_service_instance
    if _dynamodb_service_instance is None:
        _dynamodb_service_instance = DynamoDBService(environment)
    return _dynamodb_service_instance


def reset_dynamodb_service() -> None:
    """Drop the shared instance so the next call builds a fresh one."""
    global _dynamodb_service_instance
    _dynamodb_service_instance = None


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class DynamoDBService:
    """Thin wrapper over the boto3 resource and client for prefixed tables."""

    def __init__(self, environment: str | None = None) -> None:
        """Initialize DynamoDB service.

        Args:
            environment: Environment name (dev/prod). Defaults to ENVIRONMENT env var.
        """
        self.environment = environment or os.getenv("ENVIRONMENT", "dev")
        self.name_prefix = os.getenv("DYNAMODB_TABLE_PREFIX", f"stayhub-{self.environment}")
        self._dynamodb = boto3.resource("dynamodb")
        self._client = boto3.client("dynamodb")

    def table_name(self, table: str) -> str:
        return f"{self.name_prefix}-{table}"

    def _table(self, table: str) -> Any:
        return self._dynamodb.Table(self.table_name(table))

    # === Single items ===

    def get_item(self, table: str, key: dict[str, Any]) -> dict[str, Any] | None:
        item: dict[str, Any] | None = self._table(table).get_item(Key=key).get("Item")
        return item

    def put_item(
        self,
        table: str,
        item: dict[str, Any],
        condition_expression: str | None = None,
    ) -> bool:
        """Write an item, optionally guarded by a condition.

        Returns:
            False if the condition did not hold
        """
        params: dict[str, Any] = {"Item": item}
        if condition_expression:
            params["ConditionExpression"] = condition_expression
        try:
            self._table(table).put_item(**params)
        except ClientError as e:
            if _error_code(e) == "ConditionalCheckFailedException":
                return False
            raise
        return True

    def update_item(
        self,
        table: str,
        key: dict[str, Any],
        update_expression: str,
        expression_attribute_values: dict[str, Any],
        condition_expression: str | None = None,
    ) -> dict[str, Any] | None:
        """Apply an update expression and return the item's new attributes.

        Returns None when the condition did not hold.
        """
        params: dict[str, Any] = {
            "Key": key,
            "UpdateExpression": update_expression,
            "ExpressionAttributeValues": expression_attribute_values,
            "ReturnValues": "ALL_NEW",
        }
        if condition_expression:
            params["ConditionExpression"] = condition_expression
        try:
            response = self._table(table).update_item(**params)
        except ClientError as e:
            if _error_code(e) == "ConditionalCheckFailedException":
                return None
            raise
        attributes: dict[str, Any] | None = response.get("Attributes")
        return attributes

    def delete_item(
        self,
        table: str,
        key: dict[str, Any],
        condition_expression: str | None = None,
        expression_attribute_values: dict[str, Any] | None = None,
    ) -> bool:
        """Delete an item. Deleting a missing item without a condition succeeds.

        Returns:
            False if the condition did not hold
        """
        params: dict[str, Any] = {"Key": key}
        if condition_expression:
            params["ConditionExpression"] = condition_expression
        if expression_attribute_values:
            params["ExpressionAttributeValues"] = expression_attribute_values
        try:
            self._table(table).delete_item(**params)
        except ClientError as e:
            if _error_code(e) == "ConditionalCheckFailedException":
                return False
            raise
        return True

    # === Multiple items ===

    def query_by_gsi(
        self,
        table: str,
        index_name: str,
        partition_key_name: str,
        partition_key_value: str,
    ) -> list[dict[str, Any]]:
        """All items of a GSI partition, following pagination."""
        params: dict[str, Any] = {
            "IndexName": index_name,
            "KeyConditionExpression": Key(partition_key_name).eq(partition_key_value),
        }
        items: list[dict[str, Any]] = []
        while True:
            response = self._table(table).query(**params)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            params["ExclusiveStartKey"] = last_key

    def batch_get(self, table: str, keys: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Fetch items by key. Missing keys are absent from the result.

        Results come back in the order of keys, not in DynamoDB's order.
        """
        if not keys:
            return []

        table_name = self.table_name(table)
        found: list[dict[str, Any]] = []
        for start in range(0, len(keys), BATCH_GET_LIMIT):
            request: dict[str, Any] = {table_name: {"Keys": keys[start : start + BATCH_GET_LIMIT]}}
            while request:
                response = self._dynamodb.batch_get_item(RequestItems=request)
                found.extend(response.get("Responses", {}).get(table_name, []))
                request = response.get("UnprocessedKeys") or {}

        key_names = list(keys[0])

        def _position(item: dict[str, Any]) -> int:
            wanted = {name: item.get(name) for name in key_names}
            return keys.index(wanted) if wanted in keys else len(keys)

        return sorted(found, key=_position)

    # === Transactions ===

    def transact_write(self, items: list[dict[str, Any]]) -> bool:
        """Run a TransactWriteItems call.

        Args:
            items: TransactWriteItem dicts in low-level attribute format

        Returns:
            False if the transaction was cancelled, e.g. by a failed condition
        """
        try:
            self._client.transact_write_items(TransactItems=items)  # type: ignore[arg-type]
        except ClientError as e:
            if _error_code(e) == "TransactionCanceledException":
                return False
            raise
        return True

    def put_request(
        self,
        table: str,
        item: dict[str, Any],
        condition_expression: str | None = None,
    ) -> dict[str, Any]:
        """Transactional Put for a resource-format item."""
        put: dict[str, Any] = {
            "TableName": self.table_name(table),
            "Item": serialize_item(item),
        }
        if condition_expression:
            put["ConditionExpression"] = condition_expression
        return {"Put": put}


def serialize_item(item: dict[str, Any]) -> dict[str, Any]:
    """Convert a resource-format item to low-level attribute values, dropping Nones."""
    return {name: _serializer.serialize(value) for name, value in item.items() if value is not None}
