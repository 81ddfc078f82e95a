# ============================================
# Exceptions Module
# ============================================
"""
Error taxonomy for the memory retrieval pipeline.

Only ConfigurationError is meant to reach callers as an exception. The
per-variant errors are caught by the fan-out coordinator and turned into
diagnostic strings; AggregateNoResultsError is carried inside the retrieval
outcome rather than raised.
"""


class MemoryRetrievalError(Exception):
    """Base class for all retrieval pipeline errors."""


class ConfigurationError(MemoryRetrievalError):
    """Missing credentials in production or an embedding dimension mismatch."""


class EmbeddingGenerationError(MemoryRetrievalError):
    """The embedding provider failed to produce a vector."""


class ExpansionError(MemoryRetrievalError):
    """The language model failed to produce query variations."""


class SearchError(MemoryRetrievalError):
    """The similarity search backend returned an error."""


class SearchFunctionMissingError(SearchError):
    """The vector search table or procedure has not been provisioned."""


class SearchTimeoutError(SearchError):
    """The retrieval deadline passed before a variant's call could start."""


class AggregateNoResultsError(MemoryRetrievalError):
    """
    Every query variant failed or came back empty.

    Attributes:
        expansion_error: Diagnostic from the query expander, if any
        last_search_error: Last per-variant failure message, if any
    """

    def __init__(self, expansion_error=None, last_search_error=None):
        self.expansion_error = expansion_error
        self.last_search_error = last_search_error
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        fail_msg = "Semantic search failed for all queries."
        message = f"{self.expansion_error}. {fail_msg}" if self.expansion_error else fail_msg
        if self.last_search_error:
            message = f"{message} Last error: {self.last_search_error}"
        return message
