import logging
from typing import Optional, Tuple

import boto3
from botocore.client import Config
from botocore.exceptions import ClientError

from .exceptions import CorruptSeedError
from .scope_store import SEED_VALUE, ScopeStore, VersionToken

logger = logging.getLogger(__name__)

_CONDITION_FAILED = "ConditionalCheckFailedException"


class DynamoDbScopeStore(ScopeStore):
	"""
	Scope seeds stored in Amazon DynamoDB, one item per scope.

	- Item: {"scope_name": <scope>, "value": <seed text>, "version": <number>}.
	- Conditional writes compare the `version` attribute and bump it on success.
	- Reads are strongly consistent so a conflict is only reported for a real race.
	"""

	def __init__(
		self,
		table_name: str,
		region_name: str = "ap-south-1",
		endpoint_url: Optional[str] = None,
		boto3_resource: Optional[object] = None,
		create_table_if_not_exists: bool = False,
	):
		self._table_name = table_name
		if boto3_resource is not None:
			self._dynamodb = boto3_resource
		else:
			self._dynamodb = boto3.resource(
				"dynamodb",
				region_name=region_name,
				endpoint_url=endpoint_url,
				config=Config(retries={"max_attempts": 10, "mode": "standard"}),
			)

		if create_table_if_not_exists:
			self._ensure_table()

		self._table = self._dynamodb.Table(self._table_name)

	def _ensure_table(self) -> None:
		existing_tables = [t.name for t in self._dynamodb.tables.all()]
		if self._table_name in existing_tables:
			return
		logger.info("Creating DynamoDB table %s", self._table_name)
		self._dynamodb.create_table(
			TableName=self._table_name,
			AttributeDefinitions=[{"AttributeName": "scope_name", "AttributeType": "S"}],
			KeySchema=[{"AttributeName": "scope_name", "KeyType": "HASH"}],
			BillingMode="PAY_PER_REQUEST",
		)
		self._dynamodb.Table(self._table_name).wait_until_exists()

	def read(self, scope: str) -> Tuple[str, VersionToken]:
		item = self._get_item(scope)
		if item is None:
			if self.conditional_write(scope, SEED_VALUE, None):
				logger.info("Created scope %r in table %s", scope, self._table_name)
			# Lost the creation race otherwise; either way the item exists now.
			item = self._get_item(scope)
			if item is None:
				raise RuntimeError(f"Scope {scope!r} vanished from table {self._table_name} right after creation")
		if "value" not in item or "version" not in item:
			raise CorruptSeedError(scope, str(item))
		# DynamoDB returns Decimal; convert to int
		return item["value"], int(item["version"])

	def conditional_write(self, scope: str, value: str, expected_version: Optional[VersionToken]) -> bool:
		try:
			if expected_version is None:
				self._table.put_item(
					Item={"scope_name": scope, "value": value, "version": 1},
					ConditionExpression="attribute_not_exists(scope_name)",
				)
			else:
				self._table.update_item(
					Key={"scope_name": scope},
					UpdateExpression="SET #v = :value, #ver = #ver + :one",
					ConditionExpression="#ver = :expected",
					ExpressionAttributeNames={"#v": "value", "#ver": "version"},
					ExpressionAttributeValues={":value": value, ":one": 1, ":expected": expected_version},
				)
		except ClientError as e:
			if e.response.get("Error", {}).get("Code") == _CONDITION_FAILED:
				return False
			raise
		return True

	def _get_item(self, scope: str) -> Optional[dict]:
		response = self._table.get_item(Key={"scope_name": scope}, ConsistentRead=True)
		return response.get("Item")
