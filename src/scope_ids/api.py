from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Path, Query

from .batch_allocator import BatchIdAllocator
from .exceptions import ContentionError, CorruptSeedError
from .logger import init_logger
from .scope_store import ScopeStore
from .settings import Settings, get_settings
from .stores import build_store


def create_app(
	store: Optional[ScopeStore] = None,
	settings: Optional[Settings] = None,
) -> FastAPI:
	settings = settings or get_settings()
	logger = init_logger(settings)

	gen = BatchIdAllocator.from_settings(store or build_store(settings), settings)

	@asynccontextmanager
	async def lifespan(_: FastAPI):
		yield
		logger.info("Shutting down id allocator")
		gen.close()

	app = FastAPI(title="Scope ID Generator API", version="1.0.0", lifespan=lifespan)
	app.state.allocator = gen

	def _call(fn, *args, **kwargs):
		try:
			return fn(*args, **kwargs)
		except ValueError as e:
			raise HTTPException(status_code=400, detail=str(e))
		except ContentionError as e:
			raise HTTPException(status_code=503, detail=str(e))
		except CorruptSeedError as e:
			raise HTTPException(status_code=500, detail=str(e))

	@app.get("/health")
	def health() -> dict:
		return {"status": "ok"}

	@app.get("/scopes/{scope}/next")
	def get_next(
		scope: str = Path(..., min_length=1),
		batch_size: Optional[int] = Query(None, gt=0),
		prefetch_threshold: Optional[int] = Query(None, ge=0, le=100),
	) -> int:
		return _call(gen.next_id, scope, batch_size, prefetch_threshold)

	@app.get("/scopes/{scope}/range")
	def get_range(
		scope: str = Path(..., min_length=1),
		count: int = Query(1, gt=0, le=100000),
		batch_size: Optional[int] = Query(None, gt=0),
		prefetch_threshold: Optional[int] = Query(None, ge=0, le=100),
	) -> List[int]:
		return _call(gen.get_id_range, scope, count, batch_size, prefetch_threshold)

	return app


# For uvicorn: `uvicorn scope_ids.api:create_app --factory`
