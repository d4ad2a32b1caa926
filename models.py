from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, Tuple

class ResponseCode(IntEnum):
    SUCCESS = 0
    NO_RESULTS = 1
    INVALID_PARAMETER = 2
    TOKEN_NOT_FOUND = 3
    TOKEN_EMPTY = 4
    RATE_LIMIT = 5

@dataclass
class Session:
    session_id: str
    token: str

@dataclass(frozen=True)
class QuizFilters:
    category: Optional[int] = None
    difficulty: Optional[str] = None
    type: Optional[str] = None

    def as_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if self.category is not None:
            params["category"] = self.category
        if self.difficulty:
            params["difficulty"] = self.difficulty
        if self.type:
            params["type"] = self.type
        return params

@dataclass(frozen=True)
class Question:
    category: str
    type: str
    difficulty: str
    question: str
    correct_answer: str
    incorrect_answers: Tuple[str, ...] = ()

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Question":
        return cls(
            category=data.get("category", ""),
            type=data.get("type", ""),
            difficulty=data.get("difficulty", ""),
            question=data["question"],
            correct_answer=data["correct_answer"],
            incorrect_answers=tuple(data.get("incorrect_answers") or ()),
        )

    def to_api(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "type": self.type,
            "difficulty": self.difficulty,
            "question": self.question,
            "correct_answer": self.correct_answer,
            "incorrect_answers": list(self.incorrect_answers),
        }

@dataclass
class QuestionBatch:
    response_code: int
    results: List[Question] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "QuestionBatch":
        return cls(
            response_code=int(data["response_code"]),
            results=[Question.from_api(q) for q in data.get("results") or []],
        )

    def to_api(self) -> Dict[str, Any]:
        return {
            "response_code": self.response_code,
            "results": [q.to_api() for q in self.results],
        }

@dataclass(frozen=True)
class AnsweredQuestion:
    question: Question
    # Fixed once per question instance; never reshuffled.
    shuffled_answers: Tuple[str, ...]

    @property
    def correct_answer(self) -> str:
        return self.question.correct_answer

class Phase(str, Enum):
    LOADING = "loading"
    ANSWERING = "answering"
    FEEDBACK = "feedback"
    RESULT = "result"
    ERROR = "error"

@dataclass
class QuizState:
    questions: List[AnsweredQuestion] = field(default_factory=list)
    current_index: int = 0
    selected_answer: Optional[str] = None
    score: int = 0
    phase: Phase = Phase.LOADING
    session_id: Optional[str] = None
    # ERROR phase only:
    error_message: Optional[str] = None
    recoverable: bool = False

    @property
    def current_question(self) -> Optional[AnsweredQuestion]:
        if 0 <= self.current_index < len(self.questions):
            return self.questions[self.current_index]
        return None

    @property
    def answered_correctly(self) -> bool:
        q = self.current_question
        return q is not None and self.selected_answer == q.correct_answer

    @property
    def total(self) -> int:
        return len(self.questions)
