import threading
from concurrent.futures import ThreadPoolExecutor

from scope_ids.batch_allocator import BatchIdAllocator
from scope_ids.memory_store import InMemoryScopeStore


def test_heavy_concurrent_mixed_workload():
	"""
	Simulate heavy concurrent access from several producers sharing one store, with a mix of
	single next_id and ranged allocations over a few scopes.
	Ensures global uniqueness per scope and that every range is increasing.
	"""
	store = InMemoryScopeStore()
	gens = [BatchIdAllocator(store, batch_size=16, prefetch_threshold=25) for _ in range(3)]
	scopes = ["orders", "invoices"]

	total_single = 3000
	ranges = [2, 3, 5, 7, 10, 20, 50]
	repeat_ranges = 50

	results = {scope: [] for scope in scopes}
	lock = threading.Lock()

	def do_single(i: int):
		scope = scopes[i % len(scopes)]
		val = gens[i % len(gens)].next_id(scope)
		with lock:
			results[scope].append(val)

	def do_range(i: int, k: int):
		scope = scopes[i % len(scopes)]
		vals = gens[i % len(gens)].get_id_range(scope, k)
		assert len(vals) == k
		assert all(a < b for a, b in zip(vals, vals[1:]))
		with lock:
			results[scope].extend(vals)

	with ThreadPoolExecutor(max_workers=64) as ex:
		futures = [ex.submit(do_single, i) for i in range(total_single)]
		for r in range(repeat_ranges):
			for k in ranges:
				futures.append(ex.submit(do_range, r, k))
		for f in futures:
			f.result()
	for gen in gens:
		gen.close()

	issued = sum(len(v) for v in results.values())
	assert issued == total_single + repeat_ranges * sum(ranges)
	for values in results.values():
		assert len(set(values)) == len(values)
