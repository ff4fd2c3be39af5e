import os
import sys
import threading

import pytest

# Add src to PYTHONPATH for tests
PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
SRC_DIR = os.path.join(PROJECT_ROOT, "src")
if SRC_DIR not in sys.path:
	sys.path.insert(0, SRC_DIR)

# moto needs credentials to sign requests, never hand it real ones
for _var, _value in (
	("AWS_ACCESS_KEY_ID", "testing"),
	("AWS_SECRET_ACCESS_KEY", "testing"),
	("AWS_SESSION_TOKEN", "testing"),
	("AWS_DEFAULT_REGION", "ap-south-1"),
):
	os.environ.setdefault(_var, _value)

from scope_ids.batch_allocator import BatchIdAllocator  # noqa: E402
from scope_ids.memory_store import InMemoryScopeStore  # noqa: E402


class ConflictingStore(InMemoryScopeStore):
	"""Reports a conflict for the first `conflicts` conditional writes."""

	def __init__(self, conflicts: int):
		super().__init__()
		self.conflicts = conflicts

	def conditional_write(self, scope, value, expected_version):
		with self._lock:
			if self.conflicts > 0:
				self.conflicts -= 1
				self.writes += 1
				return False
		return super().conditional_write(scope, value, expected_version)


class GatedStore(InMemoryScopeStore):
	"""Blocks reads of the gated scopes until `gate` is set."""

	def __init__(self, scopes=None):
		super().__init__()
		self.gate = threading.Event()
		self.gate.set()
		self.scopes = scopes
		self.read_attempts = 0

	def read(self, scope):
		with self._lock:
			self.read_attempts += 1
		if self.scopes is None or scope in self.scopes:
			if not self.gate.wait(timeout=5):
				raise TimeoutError(f"gate for {scope!r} never opened")
		return super().read(scope)


class StoreDown(Exception):
	pass


class FailingReadStore(InMemoryScopeStore):
	"""Raises StoreDown on the given (1-based) read calls."""

	def __init__(self, failing_reads):
		super().__init__()
		self.failing_reads = set(failing_reads)
		self.read_calls = 0

	def read(self, scope):
		with self._lock:
			self.read_calls += 1
			call = self.read_calls
		if call in self.failing_reads:
			raise StoreDown(f"read #{call} failed")
		return super().read(scope)


@pytest.fixture
def store():
	return InMemoryScopeStore()


@pytest.fixture
def allocator(store):
	gen = BatchIdAllocator(store, batch_size=10, prefetch_threshold=0)
	yield gen
	gen.close()
