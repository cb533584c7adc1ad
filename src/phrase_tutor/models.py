"""Data classes for the learn session domain model."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Direction(str, Enum):
    SOURCE_TO_TARGET = "source_to_target"
    TARGET_TO_SOURCE = "target_to_source"


class AnswerMode(str, Enum):
    EXACT = "exact"
    CONTAINS = "contains"
    WORD_BANK = "word_bank"
    HYBRID = "hybrid"


class SessionPhase(str, Enum):
    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    ROUND_SUMMARY = "round_summary"


DIFFICULTIES = ("easy", "medium", "hard")


@dataclass(frozen=True)
class AudioAvailability:
    has_source_audio: bool = False
    has_target_audio: bool = False


@dataclass(frozen=True)
class Phrase:
    id: str
    source_text: str
    target_text: str
    position: int = 0
    difficulty: Optional[str] = None
    audio: AudioAvailability = field(default_factory=AudioAvailability)

    def prompt_for(self, direction: Direction) -> str:
        if direction == Direction.SOURCE_TO_TARGET:
            return self.source_text
        return self.target_text

    def answer_for(self, direction: Direction) -> str:
        if direction == Direction.SOURCE_TO_TARGET:
            return self.target_text
        return self.source_text

    def has_prompt_audio(self, direction: Direction) -> bool:
        if direction == Direction.SOURCE_TO_TARGET:
            return self.audio.has_source_audio
        return self.audio.has_target_audio


@dataclass(frozen=True)
class ComparisonResult:
    is_correct: bool
    normalized_user: str
    normalized_correct: str

    def to_dict(self) -> dict:
        return {
            "is_correct": self.is_correct,
            "normalized_user": self.normalized_user,
            "normalized_correct": self.normalized_correct,
        }


@dataclass(frozen=True)
class CardResult:
    is_checked: bool = False
    is_correct: Optional[bool] = None
    user_answer: str = ""
    normalized_user: str = ""
    normalized_correct: str = ""
    correct_answer: str = ""
    selected_tokens: tuple = ()


@dataclass(frozen=True)
class DiffSegment:
    type: str  # "equal" or "different"
    text: str


@dataclass(frozen=True)
class RoundSummary:
    round_number: int
    correct_count: int
    incorrect_count: int
    total: int

    @property
    def skipped_count(self) -> int:
        return self.total - self.correct_count - self.incorrect_count
