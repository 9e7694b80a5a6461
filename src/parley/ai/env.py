"""Environment-based API key resolution for backends."""

from __future__ import annotations

import os

_ENV_KEYS: dict[str, str] = {
    "chatgpt": "OPENAI_API_KEY",
}


def get_env_api_key(backend: str) -> str | None:
    """Get the API key for *backend* from the environment.

    Returns None for backends that need no key or when the variable is unset
    or empty.
    """
    env_var = _ENV_KEYS.get(backend)
    if env_var is None:
        return None
    return os.environ.get(env_var) or None


def api_key_env_var(backend: str) -> str | None:
    return _ENV_KEYS.get(backend)
