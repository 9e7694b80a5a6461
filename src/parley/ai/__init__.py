"""parley.ai: conversations, answer events and streaming backends."""
