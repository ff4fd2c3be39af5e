# scope_ids/settings.py
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
	model_config = SettingsConfigDict(env_prefix="SCOPE_IDS_", env_file=".env", extra="ignore")

	# Allocation defaults, overridable per call
	batch_size: int = Field(default=100, gt=0)
	prefetch_threshold: int = Field(default=25, ge=0, le=100)  # % of batch_size left
	max_write_attempts: int = Field(default=25, gt=0)
	prefetch_workers: int = Field(default=4, gt=0)

	# Store
	store_backend: Literal["dynamodb", "s3", "memory"] = "dynamodb"
	table_name: str = "id_scopes"
	bucket_name: str = "id-scopes"
	key_prefix: str = ""
	region_name: str = "ap-south-1"
	endpoint_url: Optional[str] = None
	create_if_not_exists: bool = False

	# Logging knobs
	log_level: str = "INFO"
	logger_name: str = "scope_ids"


@lru_cache
def get_settings() -> Settings:
	return Settings()
