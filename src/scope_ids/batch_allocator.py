import logging
import re
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial
from typing import Dict, List, NamedTuple, Optional, Tuple

from .exceptions import ContentionError, CorruptSeedError
from .id_generator import IdGenerator
from .scope_store import ScopeStore
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

_SEED_RE = re.compile(r"\s*[+-]?[0-9]+\s*\Z")


class Block(NamedTuple):
	# The block issues floor+1 .. ceiling.
	floor: int
	ceiling: int


class ScopeState:
	"""
	Allocation state of one scope. Every field is read and written under `lock` only.

	`next_block_min`/`next_block_max` hold a completed prefetch until the current block runs out;
	`pending_prefetch` is the prefetch still running (or failed, until a request adopts it).
	"""

	__slots__ = ("lock", "last_issued", "highest_available", "next_block_min", "next_block_max", "pending_prefetch")

	def __init__(self) -> None:
		self.lock = threading.Lock()
		self.last_issued = 0
		self.highest_available = 0
		self.next_block_min = 0
		self.next_block_max = 0
		self.pending_prefetch: Optional["Future[Block]"] = None


class BatchIdAllocator(IdGenerator):
	"""
	Reserves blocks of IDs per scope from a shared `ScopeStore` and serves `next_id()` from memory.

	- Global uniqueness via the store's conditional write: a block is only used once the
	  write advancing the seed past it has succeeded.
	- `next_id()` is served from the local block; the block is refilled synchronously when
	  exhausted, or ahead of time by a background prefetch once the remaining headroom drops
	  to `prefetch_threshold` percent of the batch size.
	- Callers of the same scope are serialized by that scope's lock; different scopes never
	  block each other.
	- Thread-safe within process; works across processes/hosts sharing the store.
	"""

	def __init__(
		self,
		store: ScopeStore,
		batch_size: int = 100,
		prefetch_threshold: int = 25,
		max_write_attempts: int = 25,
		prefetch_workers: int = 4,
	):
		if batch_size <= 0:
			raise ValueError("batch_size must be positive")
		if not 0 <= prefetch_threshold <= 100:
			raise ValueError("prefetch_threshold must be between 0 and 100")
		if max_write_attempts < 1:
			raise ValueError("max_write_attempts must be positive")
		self._store = store
		self._batch_size = batch_size
		self._prefetch_threshold = prefetch_threshold
		self._max_write_attempts = max_write_attempts

		self._states: Dict[str, ScopeState] = {}
		self._states_lock = threading.Lock()
		self._executor = ThreadPoolExecutor(max_workers=prefetch_workers, thread_name_prefix="scope-ids-prefetch")
		self._closed = False
		self._executor_lock = threading.Lock()

	@classmethod
	def from_settings(cls, store: ScopeStore, settings: Optional[Settings] = None) -> "BatchIdAllocator":
		settings = settings or get_settings()
		return cls(
			store,
			batch_size=settings.batch_size,
			prefetch_threshold=settings.prefetch_threshold,
			max_write_attempts=settings.max_write_attempts,
			prefetch_workers=settings.prefetch_workers,
		)

	@property
	def batch_size(self) -> int:
		return self._batch_size

	@property
	def prefetch_threshold(self) -> int:
		return self._prefetch_threshold

	@property
	def max_write_attempts(self) -> int:
		return self._max_write_attempts

	def next_id(
		self,
		scope: str,
		batch_size: Optional[int] = None,
		prefetch_threshold: Optional[int] = None,
	) -> int:
		size, prefetch_when_left = self._resolve(batch_size, prefetch_threshold)
		state = self._get_state(scope)
		with state.lock:
			return self._issue(scope, state, size, prefetch_when_left)

	def get_id_range(
		self,
		scope: str,
		count: int,
		batch_size: Optional[int] = None,
		prefetch_threshold: Optional[int] = None,
	) -> List[int]:
		if count <= 0:
			raise ValueError("count must be a positive integer")
		size, prefetch_when_left = self._resolve(batch_size, prefetch_threshold)
		state = self._get_state(scope)
		with state.lock:
			return [self._issue(scope, state, size, prefetch_when_left) for _ in range(count)]

	def close(self) -> None:
		"""Stop prefetching. The allocator keeps serving ids, fetching every block synchronously."""
		with self._executor_lock:
			self._closed = True
			self._executor.shutdown(wait=False)
		self._executor.shutdown(wait=True)

	def __enter__(self) -> "BatchIdAllocator":
		return self

	def __exit__(self, *exc_info) -> None:
		self.close()

	def _resolve(self, batch_size: Optional[int], prefetch_threshold: Optional[int]) -> Tuple[int, int]:
		size = self._batch_size if batch_size is None else batch_size
		threshold = self._prefetch_threshold if prefetch_threshold is None else prefetch_threshold
		if size <= 0:
			raise ValueError("batch_size must be positive")
		if not 0 <= threshold <= 100:
			raise ValueError("prefetch_threshold must be between 0 and 100")
		return size, size * threshold // 100

	def _get_state(self, scope: str) -> ScopeState:
		if not isinstance(scope, str) or not scope:
			raise ValueError("scope must be a non-empty string")
		with self._states_lock:
			state = self._states.get(scope)
			if state is None:
				state = self._states[scope] = ScopeState()
			return state

	def _issue(self, scope: str, state: ScopeState, size: int, prefetch_when_left: int) -> int:
		# Caller holds state.lock.
		self._stage_prefetched(state)
		if state.last_issued == state.highest_available:
			self._fetch(scope, state, size)
		elif prefetch_when_left > 0 and state.last_issued + prefetch_when_left >= state.highest_available:
			self._prefetch(scope, state, size)

		state.last_issued += 1
		return state.last_issued

	def _stage_prefetched(self, state: ScopeState) -> None:
		# A failed prefetch stays pending so the request adopting it raises the failure.
		future = state.pending_prefetch
		if future is None or not future.done() or future.cancelled() or future.exception() is not None:
			return
		state.pending_prefetch = None
		state.next_block_min, state.next_block_max = future.result()

	def _fetch(self, scope: str, state: ScopeState, size: int) -> None:
		future = state.pending_prefetch
		if future is not None:
			state.pending_prefetch = None
			if future.cancel():
				# Still queued behind other scopes' prefetches: fetch here instead of waiting on them.
				block = self._reserve_block(scope, size)
			else:
				# Re-raises the prefetch's failure; the next request then fetches on its own.
				block = future.result()
		elif (state.next_block_min, state.next_block_max) != (0, 0):
			block = Block(state.next_block_min, state.next_block_max)
		else:
			block = self._reserve_block(scope, size)

		state.last_issued, state.highest_available = block
		state.next_block_min = 0
		state.next_block_max = 0

	def _prefetch(self, scope: str, state: ScopeState, size: int) -> None:
		if state.pending_prefetch is not None or (state.next_block_min, state.next_block_max) != (0, 0):
			return
		with self._executor_lock:
			if self._closed:
				# The request that exhausts the block fetches synchronously.
				return
			future = self._executor.submit(self._reserve_block, scope, size)
		future.add_done_callback(partial(_log_prefetch_failure, scope))
		state.pending_prefetch = future
		logger.debug("Prefetching next block for scope %r (last issued %d of %d)", scope, state.last_issued, state.highest_available)

	def _reserve_block(self, scope: str, size: int) -> Block:
		attempts = 0
		while attempts < self._max_write_attempts:
			data, version = self._store.read(scope)
			if not isinstance(data, str) or not _SEED_RE.match(data):
				logger.error("Corrupt id seed for scope %r: %r", scope, data)
				raise CorruptSeedError(scope, data)

			seed = int(data)
			block = Block(seed - 1, seed - 1 + size)
			if self._store.conditional_write(scope, str(block.ceiling + 1), version):
				logger.debug("Reserved ids %d..%d for scope %r", block.floor + 1, block.ceiling, scope)
				return block

			attempts += 1
			logger.debug("Conflict reserving a block for scope %r (attempt %d/%d)", scope, attempts, self._max_write_attempts)

		logger.error("Gave up reserving a block for scope %r after %d attempts", scope, attempts)
		raise ContentionError(scope, attempts)


def _log_prefetch_failure(scope: str, future: "Future[Block]") -> None:
	if future.cancelled():
		return
	exc = future.exception()
	if exc is not None:
		logger.warning("Prefetch for scope %r failed, the next request to exhaust the block will raise it: %s", scope, exc)
