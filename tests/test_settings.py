import logging

import pytest
from pydantic import ValidationError

from scope_ids.logger import init_logger
from scope_ids.memory_store import InMemoryScopeStore
from scope_ids.settings import Settings, get_settings
from scope_ids.stores import build_store


def test_defaults(monkeypatch):
	for name in ("BATCH_SIZE", "PREFETCH_THRESHOLD", "MAX_WRITE_ATTEMPTS", "STORE_BACKEND"):
		monkeypatch.delenv(f"SCOPE_IDS_{name}", raising=False)
	settings = Settings(_env_file=None)
	assert settings.batch_size == 100
	assert settings.prefetch_threshold == 25
	assert settings.max_write_attempts == 25
	assert settings.store_backend == "dynamodb"


def test_environment_overrides(monkeypatch):
	monkeypatch.setenv("SCOPE_IDS_BATCH_SIZE", "10")
	monkeypatch.setenv("SCOPE_IDS_STORE_BACKEND", "memory")
	get_settings.cache_clear()
	try:
		settings = get_settings()
		assert settings.batch_size == 10
		assert isinstance(build_store(settings), InMemoryScopeStore)
	finally:
		get_settings.cache_clear()


@pytest.mark.parametrize(
	"kwargs",
	[
		{"batch_size": 0},
		{"prefetch_threshold": 101},
		{"max_write_attempts": 0},
		{"store_backend": "redis"},
	],
)
def test_invalid_values(kwargs):
	with pytest.raises(ValidationError):
		Settings(_env_file=None, **kwargs)


def test_init_logger_is_idempotent():
	settings = Settings(_env_file=None, store_backend="memory", logger_name="scope_ids.test")
	first = init_logger(settings)
	handlers = list(logging.getLogger().handlers)
	second = init_logger(settings)
	assert first is second
	assert logging.getLogger().handlers == handlers
	assert logging.getLogger("botocore").level == logging.WARNING
