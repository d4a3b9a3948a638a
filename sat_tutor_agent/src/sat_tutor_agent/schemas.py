"""
Schemas for JSON exchanged with the LLM.

Every model reply is untrusted: parse_payload returns None instead of raising
so callers can fall back to a fixed reply.
"""

import logging
import re
from typing import List, Optional, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from sat_tutor_agent.llm_client import extract_json

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

DIFFICULTIES = ("Easy", "Medium", "Hard")


def normalize_difficulty(value: Optional[str]) -> Optional[str]:
    """'easy' -> 'Easy'; anything unknown -> None."""
    if not value:
        return None
    value = str(value).strip().capitalize()
    return value if value in DIFFICULTIES else None


class ReplyPayload(BaseModel):
    """{"reply": "..."} returned by the prompt-templating handlers."""
    reply: str = Field(min_length=1)


class TopicRequest(BaseModel):
    """Topic and size of a requested quiz."""
    topic: str = Field(min_length=1)
    count: int = 3
    difficulty: Optional[str] = None

    @field_validator("count", mode="before")
    @classmethod
    def clamp_count(cls, v):
        try:
            v = int(v)
        except (TypeError, ValueError):
            return 3
        return max(1, min(5, v))

    @field_validator("difficulty", mode="before")
    @classmethod
    def known_difficulty(cls, v):
        return normalize_difficulty(v)


class GeneratedQuestion(BaseModel):
    """One question synthesized by the LLM."""
    text: str = Field(min_length=1)
    options: List[str] = Field(min_length=4, max_length=4)
    correctAnswer: str
    explanation: str = ""

    @field_validator("correctAnswer")
    @classmethod
    def letter(cls, v: str) -> str:
        v = v.strip().upper()[:1]
        if v not in ("A", "B", "C", "D"):
            raise ValueError("correctAnswer must be A-D")
        return v


class GeneratedQuiz(BaseModel):
    questions: List[GeneratedQuestion] = Field(min_length=1)

    @model_validator(mode="before")
    @classmethod
    def bare_list(cls, data):
        # Models sometimes return the question array without the wrapper object
        if isinstance(data, list):
            return {"questions": data}
        return data


class GradedAnswer(BaseModel):
    """Per-question grading line."""
    question: int
    user_answer: Optional[str] = None
    correct_answer: Optional[str] = None
    is_correct: bool = False
    explanation: str = ""

    @field_validator("question", mode="before")
    @classmethod
    def question_number(cls, v):
        # "Q1", "1." -> 1
        if isinstance(v, str):
            digits = re.search(r"\d+", v)
            if digits:
                return int(digits.group(0))
        return v


class GradingResult(BaseModel):
    """Only the score is required; total is filled in from the quiz when missing."""
    score: int
    total: Optional[int] = None
    results: List[GradedAnswer] = Field(default_factory=list)

    @field_validator("results", mode="before")
    @classmethod
    def usable_results(cls, v):
        if not isinstance(v, list):
            return []
        kept = []
        for item in v:
            try:
                kept.append(GradedAnswer.model_validate(item))
            except ValidationError:
                logger.info(f"ℹ️ [Schemas] Dropping unreadable grading line: {item!r}")
        return kept


class SafetyVerdict(BaseModel):
    safe: bool = True
    reason: str = ""


def parse_payload(model: Type[T], text: Optional[str]) -> Optional[T]:
    """Extract JSON from model output and validate it, or None on any failure."""
    data = extract_json(text)
    if data is None:
        return None
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning(f"⚠️ [Schemas] {model.__name__} validation failed: {e.error_count()} error(s)")
        return None
