import threading
from typing import Dict, Optional, Tuple

from .scope_store import SEED_VALUE, ScopeStore, VersionToken


class InMemoryScopeStore(ScopeStore):
	"""
	Process-local store. Versions are integers bumped on every write.

	Shared by several allocators it behaves like a remote store shared by several
	processes, which is what the tests use it for.
	"""

	def __init__(self) -> None:
		self._lock = threading.Lock()
		self._data: Dict[str, Tuple[str, int]] = {}
		self.reads = 0
		self.writes = 0

	def read(self, scope: str) -> Tuple[str, VersionToken]:
		with self._lock:
			self.reads += 1
			if scope not in self._data:
				self._data[scope] = (SEED_VALUE, 1)
			return self._data[scope]

	def conditional_write(self, scope: str, value: str, expected_version: Optional[VersionToken]) -> bool:
		with self._lock:
			self.writes += 1
			current = self._data.get(scope)
			if expected_version is None:
				if current is not None:
					return False
				self._data[scope] = (value, 1)
				return True
			if current is None or current[1] != expected_version:
				return False
			self._data[scope] = (value, current[1] + 1)
			return True

	def set_value(self, scope: str, value: str) -> None:
		with self._lock:
			current = self._data.get(scope)
			self._data[scope] = (value, current[1] + 1 if current else 1)

	def get_value(self, scope: str) -> Optional[str]:
		with self._lock:
			current = self._data.get(scope)
			return current[0] if current else None
