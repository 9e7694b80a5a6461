"""Register all built-in backends."""

from __future__ import annotations

from parley.ai.backend import BackendProvider, register_backend
from parley.ai.backends.echo import create_echo_backend
from parley.ai.backends.ollama import create_ollama_backend
from parley.ai.backends.openai_chat import create_chatgpt_backend


def register_builtin_backends() -> None:
    register_backend(
        BackendProvider(
            name="chatgpt",
            factory=create_chatgpt_backend,
            description="OpenAI Chat Completions",
        )
    )
    register_backend(
        BackendProvider(
            name="ollama",
            factory=create_ollama_backend,
            description="Local Ollama server",
        )
    )
    register_backend(
        BackendProvider(
            name="echo",
            factory=create_echo_backend,
            description="Offline echo of the last prompt",
        )
    )
