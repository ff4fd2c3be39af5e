from abc import ABC, abstractmethod
from typing import List, Optional


class IdGenerator(ABC):
	@abstractmethod
	def next_id(
		self,
		scope: str,
		batch_size: Optional[int] = None,
		prefetch_threshold: Optional[int] = None,
	) -> int:
		"""Get the next ID number for `scope` (globally unique and incremental)."""
		raise NotImplementedError

	@abstractmethod
	def get_id_range(
		self,
		scope: str,
		count: int,
		batch_size: Optional[int] = None,
		prefetch_threshold: Optional[int] = None,
	) -> List[int]:
		"""Get a range of sequential ID numbers of size `count` for `scope`."""
		raise NotImplementedError
