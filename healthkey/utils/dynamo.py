"""
DynamoDB utility functions for snapshot persistence.
"""
import os
from typing import Any, Dict, Optional

import boto3

# Singleton instance
_dynamo_instance = None

def get_dynamo() -> 'DynamoDBClient':
    """
    Get or create singleton DynamoDB client instance.

    Example:
        dynamo = get_dynamo()
        item = dynamo.get_item({"PK": "USER#local", "SK": "STORE#healthkey_events_v3"})

    Returns:
        DynamoDBClient: Singleton instance of DynamoDB client

    Raises:
        EnvironmentError: If HEALTHKEY_TABLE_NAME environment variable is not set
    """
    global _dynamo_instance
    if _dynamo_instance is None:
        try:
            table_name = os.environ['HEALTHKEY_TABLE_NAME']
        except KeyError:
            raise EnvironmentError(
                "HEALTHKEY_TABLE_NAME environment variable not set. "
                "This variable must be set to the DynamoDB table name."
            )
        _dynamo_instance = DynamoDBClient(table_name)
    return _dynamo_instance

class DynamoDBClient:
    """Client for interacting with DynamoDB table."""

    def __init__(self, table_name: str):
        self.dynamodb = boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)

    def put_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        """
        Put a single item into the table.

        Args:
            item: Dictionary containing item attributes

        Returns:
            Response from DynamoDB
        """
        return self.table.put_item(Item=item)

    def get_item(self, key: Dict[str, str]) -> Optional[Dict[str, Any]]:
        """
        Get a single item from the table.

        Args:
            key: Dictionary containing partition key and sort key

        Returns:
            Item if found, None otherwise
        """
        response = self.table.get_item(Key=key, ConsistentRead=True)
        return response.get('Item')

class DynamoKeyValueStore:
    """
    Key-value store keeping one DynamoDB item per snapshot key.

    Snapshots are written as UTF-8 text in the ``payload`` attribute of the
    item ``{PK: USER#<owner>, SK: STORE#<key>}``.
    """

    def __init__(self, client: DynamoDBClient, owner_id: str = "local"):
        self.client = client
        self.owner_id = owner_id

    def _key(self, key: str) -> Dict[str, str]:
        return {"PK": create_pk(self.owner_id), "SK": create_store_sk(key)}

    def load(self, key: str) -> Optional[bytes]:
        item = self.client.get_item(self._key(key))
        if not item or "payload" not in item:
            return None
        return str(item["payload"]).encode("utf-8")

    def save(self, key: str, data: bytes) -> None:
        self.client.put_item({
            **self._key(key),
            "payload": data.decode("utf-8")
        })

def create_pk(owner_id: str) -> str:
    """Create partition key from owner ID."""
    return f"USER#{owner_id}"

def create_store_sk(key: str) -> str:
    """
    Create sort key for a persisted snapshot.

    Args:
        key: Storage key such as ``healthkey_events_v3``

    Returns:
        Sort key in format "STORE#{key}"
    """
    return f"STORE#{key}"
