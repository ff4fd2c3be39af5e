import logging
from typing import Optional, Tuple

import boto3
from botocore.client import Config
from botocore.exceptions import ClientError

from .scope_store import SEED_VALUE, ScopeStore, VersionToken

logger = logging.getLogger(__name__)

# IfMatch / IfNoneMatch lost against the current object, or against a concurrent write.
_CONFLICT_CODES = {"PreconditionFailed", "ConditionalRequestConflict", "412", "409"}
_MISSING_CODES = {"NoSuchKey", "404"}


def _error_code(e: ClientError) -> str:
	return str(e.response.get("Error", {}).get("Code", ""))


class S3ScopeStore(ScopeStore):
	"""
	Scope seeds stored as small text objects in an S3 bucket, one object per scope.

	The object's ETag is the version token: writes are `PutObject` with `IfMatch`,
	creation is `PutObject` with `IfNoneMatch="*"`.
	"""

	def __init__(
		self,
		bucket_name: str,
		key_prefix: str = "",
		region_name: str = "ap-south-1",
		endpoint_url: Optional[str] = None,
		boto3_client: Optional[object] = None,
		create_bucket_if_not_exists: bool = False,
	):
		self._bucket_name = bucket_name
		self._key_prefix = key_prefix
		self._region_name = region_name
		if boto3_client is not None:
			self._s3 = boto3_client
		else:
			self._s3 = boto3.client(
				"s3",
				region_name=region_name,
				endpoint_url=endpoint_url,
				config=Config(retries={"max_attempts": 10, "mode": "standard"}),
			)

		if create_bucket_if_not_exists:
			self._ensure_bucket()

	def _ensure_bucket(self) -> None:
		try:
			self._s3.head_bucket(Bucket=self._bucket_name)
			return
		except ClientError as e:
			if _error_code(e) not in ("404", "NoSuchBucket", "NotFound"):
				raise
		logger.info("Creating S3 bucket %s", self._bucket_name)
		kwargs = {"Bucket": self._bucket_name}
		if self._region_name != "us-east-1":
			kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self._region_name}
		self._s3.create_bucket(**kwargs)

	def key_for(self, scope: str) -> str:
		return f"{self._key_prefix}{scope}"

	def read(self, scope: str) -> Tuple[str, VersionToken]:
		try:
			return self._get(scope)
		except ClientError as e:
			if _error_code(e) not in _MISSING_CODES:
				raise
		if self.conditional_write(scope, SEED_VALUE, None):
			logger.info("Created scope %r in bucket %s", scope, self._bucket_name)
		return self._get(scope)

	def conditional_write(self, scope: str, value: str, expected_version: Optional[VersionToken]) -> bool:
		kwargs = {
			"Bucket": self._bucket_name,
			"Key": self.key_for(scope),
			"Body": value.encode("utf-8"),
			"ContentType": "text/plain",
			"ContentEncoding": "UTF-8",
		}
		if expected_version is None:
			kwargs["IfNoneMatch"] = "*"
		else:
			kwargs["IfMatch"] = expected_version
		try:
			self._s3.put_object(**kwargs)
		except ClientError as e:
			if _error_code(e) in _CONFLICT_CODES:
				return False
			raise
		return True

	def _get(self, scope: str) -> Tuple[str, VersionToken]:
		response = self._s3.get_object(Bucket=self._bucket_name, Key=self.key_for(scope))
		body = response["Body"].read().decode("utf-8")
		return body, response["ETag"]
