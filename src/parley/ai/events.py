"""Answer lifecycle events emitted by backends.

A backend call emits ``StartAnswer`` once, then any number of ``Answer``
fragments in arrival order, then ``EndAnswer``.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class StartAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["start"] = "start"


class Answer(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["answer"] = "answer"
    fragment: str


class EndAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["end"] = "end"


AnswerEvent = Annotated[StartAnswer | Answer | EndAnswer, Field(discriminator="type")]
