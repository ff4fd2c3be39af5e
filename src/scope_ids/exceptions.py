class UniqueIdGenerationError(Exception):
	"""Base class for failures that prevent an ID from being issued."""


class CorruptSeedError(UniqueIdGenerationError):
	def __init__(self, scope: str, data: str):
		self.scope = scope
		self.data = data
		super().__init__(
			f"The id seed returned from storage for scope '{scope}' was corrupt, "
			f"and could not be parsed as an integer. The data returned was: {data!r}"
		)


class ContentionError(UniqueIdGenerationError):
	def __init__(self, scope: str, attempts: int):
		self.scope = scope
		self.attempts = attempts
		super().__init__(
			f"Failed to update the data store for scope '{scope}' after {attempts} attempts. "
			"This likely represents too much contention against the store. "
			"Increase the batch size to a value more appropriate to your generation load."
		)
