"""
Student State Data Model

Defines the per-user tutoring state record and the dialogue modes it can be in.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union
from datetime import datetime


class DialogueMode(Enum):
    """Dialogue modes. Values are the labels persisted in `current_state`."""
    START = "Start Session"
    STRUCTURED_TEACHING = "Teach"
    PRACTICE_LOOP = "Practice Loop"
    PLAN_SESSION = "Plan Session"
    DOUBT_SOLVING = "Doubt Solving"
    TEST_REVIEW = "Review"
    PROGRESS_REPORT = "Parent Report"

    @classmethod
    def from_label(cls, label: Optional[str]) -> "DialogueMode":
        """Parse a stored label, falling back to the start label."""
        for mode in cls:
            if mode.value == label:
                return mode
        return cls.START


@dataclass
class QuizQuestion:
    """One multiple-choice question inside a running quiz."""
    id: str
    text: str
    options: List[str]
    correct_answer: str  # "A" - "D"
    explanation: str = ""


@dataclass
class QuizData:
    """Questions handed out when a quiz starts."""
    topic: str
    questions: List[QuizQuestion] = field(default_factory=list)
    difficulty: str = "Medium"


@dataclass
class PracticeModule:
    """Present while a practice quiz is mid-flight."""
    quiz_data: QuizData


@dataclass
class TeachingModule:
    """Present while a structured lesson is mid-flight."""
    step: str = "WAIT_FOR_MODE"


ActiveModule = Union[PracticeModule, TeachingModule]


@dataclass
class StudentState:
    """Durable per-user tutoring state."""
    user_id: str
    current_state: DialogueMode = DialogueMode.START
    preferences: Dict[str, Any] = field(default_factory=dict)
    # Only one sticky module can be active at a time
    active_module: Optional[ActiveModule] = None
    goal: Optional[str] = None
    test_date: Optional[str] = None
    baseline: Dict[str, Any] = field(default_factory=dict)
    mastery: Dict[str, Any] = field(default_factory=dict)
    timing: Dict[str, Any] = field(default_factory=dict)
    error_patterns: Dict[str, Any] = field(default_factory=dict)
    # Grows without bound; no retention policy exists yet
    session_log: List[Dict[str, str]] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def practice(self) -> Optional[PracticeModule]:
        if isinstance(self.active_module, PracticeModule):
            return self.active_module
        return None

    @property
    def teaching(self) -> Optional[TeachingModule]:
        if isinstance(self.active_module, TeachingModule):
            return self.active_module
        return None

    @property
    def sticky_mode(self) -> Optional[DialogueMode]:
        """Mode that owns the active module, if any."""
        if self.practice is not None:
            return DialogueMode.PRACTICE_LOOP
        if self.teaching is not None:
            return DialogueMode.STRUCTURED_TEACHING
        return None

    def deactivate_modules(self):
        self.active_module = None

    def log_message(self, sender: str, text: str):
        """Append a message to the session log."""
        self.session_log.append({
            "sender": sender,
            "text": text,
            "timestamp": datetime.now().isoformat(),
        })
