from .batch_allocator import BatchIdAllocator, ScopeState
from .dynamodb_store import DynamoDbScopeStore
from .exceptions import ContentionError, CorruptSeedError, UniqueIdGenerationError
from .id_generator import IdGenerator
from .memory_store import InMemoryScopeStore
from .s3_store import S3ScopeStore
from .scope_store import SEED_VALUE, ScopeStore

__all__ = [
	"BatchIdAllocator",
	"ContentionError",
	"CorruptSeedError",
	"DynamoDbScopeStore",
	"IdGenerator",
	"InMemoryScopeStore",
	"S3ScopeStore",
	"SEED_VALUE",
	"ScopeState",
	"ScopeStore",
	"UniqueIdGenerationError",
]
