"""Error types for proof orchestration."""


class NoirSnarkError(Exception):
    """Base error for proof orchestration issues."""


class ConfigurationError(NoirSnarkError):
    """Raised when game or orchestrator configuration is invalid."""


class EncodingError(NoirSnarkError):
    """Raised when a domain value cannot be encoded as a field element."""


class CacheError(NoirSnarkError):
    """Base error for proof cache failures."""


class CacheReadError(CacheError):
    """Raised when cached data cannot be read. Callers treat it as a miss."""


class CacheWriteError(CacheError):
    """Raised when a proof or the cache index cannot be persisted."""


class ProverError(NoirSnarkError):
    """Base error for proof generation failures."""


class ProverProcessError(ProverError):
    """Raised when the external prover exits non-zero or produces no proof."""


class ProofGenerationError(ProverError):
    """Raised when an in-process backend cannot produce a proof."""


class CalldataShapeError(NoirSnarkError):
    """Raised when an assembled call tuple does not match its fixed layout."""
