"""Core types for conversations and backend settings.

All types use Pydantic models for validation and serialization.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["user", "assistant"]


class Message(BaseModel):
    """One turn of a conversation."""

    model_config = ConfigDict(populate_by_name=True)

    role: Role
    content: str


class Conversation(BaseModel):
    """Ordered turns exchanged with a backend."""

    model_config = ConfigDict(populate_by_name=True)

    messages: list[Message] = Field(default_factory=list)

    def add_user(self, content: str) -> None:
        self.messages.append(Message(role="user", content=content))

    def add_assistant(self, content: str) -> None:
        self.messages.append(Message(role="assistant", content=content))

    def is_empty(self) -> bool:
        return not self.messages

    def last_user_message(self) -> str | None:
        for message in reversed(self.messages):
            if message.role == "user":
                return message.content
        return None

    def to_chat_messages(self) -> list[dict[str, str]]:
        """Role/content dicts in the shape chat completion APIs expect."""
        return [{"role": m.role, "content": m.content} for m in self.messages]


# --- Backend settings ---


class ChatGPTSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    openai_api_key: str | None = None
    model: str = "gpt-4o-mini"
    url: str = "https://api.openai.com/v1"


class OllamaSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str = "http://localhost:11434"
    model: str = "llama3"


class EchoSettings(BaseModel):
    """Offline backend that streams the last prompt back word by word."""

    model_config = ConfigDict(populate_by_name=True)

    delay: float = Field(default=0.05, ge=0)


class BackendSettings(BaseModel):
    """Per-backend sections of the configuration file."""

    model_config = ConfigDict(populate_by_name=True)

    chatgpt: ChatGPTSettings = Field(default_factory=ChatGPTSettings)
    ollama: OllamaSettings = Field(default_factory=OllamaSettings)
    echo: EchoSettings = Field(default_factory=EchoSettings)
