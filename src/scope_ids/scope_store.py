from abc import ABC, abstractmethod
from typing import Any, Optional, Tuple

SEED_VALUE = "1"

# Opaque to the allocator: an ETag, an item version, a revision number...
VersionToken = Any


class ScopeStore(ABC):
	"""
	Keyed, conditionally-writable text store holding one seed per scope.

	- The seed is the decimal text of the first ID of the next block to reserve.
	- A scope that does not exist yet reads as `SEED_VALUE`; implementations create it
	  on first read, and a lost creation race is not an error.
	- `conditional_write` reports a failed precondition by returning False. Every other
	  backend error is raised as-is.
	"""

	@abstractmethod
	def read(self, scope: str) -> Tuple[str, VersionToken]:
		"""Return the current seed for `scope` and the version token it was read at."""
		raise NotImplementedError

	@abstractmethod
	def conditional_write(self, scope: str, value: str, expected_version: Optional[VersionToken]) -> bool:
		"""
		Write `value` iff the stored version still equals `expected_version`.

		`expected_version=None` writes only if the scope does not exist yet.
		"""
		raise NotImplementedError
