"""Pydantic schemas for validating generated JSON responses."""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class GeneratedBeat(BaseModel):
    type: Literal['narrative', 'game', 'choice', 'checkpoint'] = 'narrative'
    id: Optional[str] = None
    narrative: Optional[str] = None
    word: Optional[str] = None
    gameType: Optional[str] = None
    stage: Optional[int] = None
    question: Optional[str] = None
    options: Optional[list[str]] = None
    checkpointNumber: Optional[int] = None
    celebrationEmoji: Optional[str] = None
    title: Optional[str] = None


class GeneratedStoryResponse(BaseModel):
    beats: list[GeneratedBeat]


class GeneratedWordInfo(BaseModel):
    meaning: str
    hint: str
    similar_words: list[str] = []
    difficulty: int = Field(default=5, ge=1, le=10)


class WordInfoResponse(BaseModel):
    target_words: dict[str, GeneratedWordInfo]
