"""Documentation search: build-time artifact indexer and query engine."""

__version__ = "0.1.0"
