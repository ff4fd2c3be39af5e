from typing import Optional

from .dynamodb_store import DynamoDbScopeStore
from .memory_store import InMemoryScopeStore
from .s3_store import S3ScopeStore
from .scope_store import ScopeStore
from .settings import Settings, get_settings


def build_store(settings: Optional[Settings] = None) -> ScopeStore:
	"""Build the scope store selected by `settings.store_backend`."""
	settings = settings or get_settings()
	if settings.store_backend == "dynamodb":
		return DynamoDbScopeStore(
			table_name=settings.table_name,
			region_name=settings.region_name,
			endpoint_url=settings.endpoint_url,
			create_table_if_not_exists=settings.create_if_not_exists,
		)
	if settings.store_backend == "s3":
		return S3ScopeStore(
			bucket_name=settings.bucket_name,
			key_prefix=settings.key_prefix,
			region_name=settings.region_name,
			endpoint_url=settings.endpoint_url,
			create_bucket_if_not_exists=settings.create_if_not_exists,
		)
	if settings.store_backend == "memory":
		return InMemoryScopeStore()
	raise ValueError(f"Unknown store backend: {settings.store_backend!r}")
