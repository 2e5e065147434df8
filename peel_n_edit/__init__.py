"""Photo edit assistant: AI suggestions plus two competing edit pipelines."""

__version__ = "1.0.0"
