"""lexido: stream answers from cloud, local, or operator-configured LLM backends."""

__version__ = "1.3.1"
