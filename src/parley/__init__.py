"""parley: terminal chat client for streaming LLM backends."""

__version__ = "0.1.0"
