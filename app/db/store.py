import logging
from datetime import datetime
from decimal import Decimal
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from app.core.config import settings
from app.models.transaction import Transaction
from app.utils.ordering import append_transaction

logger = logging.getLogger(__name__)

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"


class StoreUnavailable(Exception):
    """The transactions table could not be read or written."""


class StoreConflict(StoreUnavailable):
    """Concurrent writers kept winning the race for the same owner key."""


def key_for_user(user_id: str) -> str:
    return f"transactions:{user_id}"


class TransactionStore:
    """
    Keeps each owner's transactions as one ordered list in a single DynamoDB
    item. Every item carries a ``version`` counter; writes are conditional on
    the version that was read, so two appends racing on the same owner cannot
    silently overwrite each other.
    """

    def __init__(self, table: Any, max_retries: int = 5) -> None:
        self.table = table
        self.max_retries = max_retries

    def _read(self, user_id: str) -> Tuple[List[Transaction], Optional[int]]:
        try:
            response = self.table.get_item(Key={"owner_key": key_for_user(user_id)}, ConsistentRead=True)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Reading transactions for user {user_id} failed: {e}")
            raise StoreUnavailable("Failed to read transactions store") from e

        item = response.get("Item")
        if not item:
            return [], None

        item = _from_dynamo(item)
        raw = item.get("transactions")
        if not isinstance(raw, list):
            raw = []
        try:
            transactions = [Transaction.model_validate(entry) for entry in raw]
        except ValidationError as e:
            logger.error(f"Stored transactions for user {user_id} are unreadable: {e}")
            raise StoreUnavailable("Stored transactions are unreadable") from e
        return transactions, int(item.get("version", 0))

    def get(self, user_id: str) -> List[Transaction]:
        """All transactions of one owner in canonical order (empty if none)."""
        transactions, _ = self._read(user_id)
        return transactions

    def append(self, user_id: str, transaction: Transaction) -> Transaction:
        """
        Insert ``transaction`` and persist the re-sorted list. Either the whole
        updated list is written or nothing is.
        """
        for attempt in range(1, self.max_retries + 1):
            current, version = self._read(user_id)
            updated = append_transaction(current, transaction)

            item = {
                "owner_key": key_for_user(user_id),
                "transactions": [tx.model_dump(mode="json") for tx in updated],
                "version": (version or 0) + 1,
                "updated_at": datetime.utcnow().isoformat(),
            }
            condition: Dict[str, Any]
            if version is None:
                condition = {"ConditionExpression": "attribute_not_exists(owner_key)"}
            else:
                condition = {
                    "ConditionExpression": "#version = :expected",
                    "ExpressionAttributeNames": {"#version": "version"},
                    "ExpressionAttributeValues": {":expected": version},
                }

            try:
                self.table.put_item(Item=_convert_for_dynamo(item), **condition)
            except ClientError as e:
                if e.response.get("Error", {}).get("Code") == CONDITIONAL_CHECK_FAILED:
                    logger.warning(
                        f"Concurrent write for user {user_id} (attempt {attempt}/{self.max_retries}), retrying"
                    )
                    continue
                logger.error(f"Writing transactions for user {user_id} failed: {e.response['Error'].get('Message')}")
                raise StoreUnavailable("Failed to write transactions store") from e
            except BotoCoreError as e:
                logger.error(f"Writing transactions for user {user_id} failed: {e}")
                raise StoreUnavailable("Failed to write transactions store") from e

            logger.info(f"Stored transaction {transaction.id} for user {user_id} ({len(updated)} total)")
            return transaction

        logger.error(f"Giving up on user {user_id} after {self.max_retries} conflicting writes")
        raise StoreConflict("Too many concurrent writes, please retry")

    def ping(self) -> None:
        try:
            self.table.scan(Limit=1)
        except (ClientError, BotoCoreError) as e:
            raise StoreUnavailable(str(e)) from e


@lru_cache()
def get_transaction_store() -> TransactionStore:
    dynamodb = boto3.resource(
        "dynamodb",
        region_name=settings.DYNAMO_REGION,
        endpoint_url=settings.DYNAMO_ENDPOINT_URL,
    )
    table = dynamodb.Table(settings.DYNAMO_TRANSACTIONS_TABLE)
    return TransactionStore(table, max_retries=settings.STORE_MAX_RETRIES)


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
        if obj == obj.to_integral_value():
            return int(obj)
        return float(obj)
    return obj
