"""
Intent Router

Picks the dialogue mode for the next turn from the latest message.

Keyword routing with two sticky modes: an active quiz or lesson keeps the
conversation in its mode until the student says stop/exit/quit/reset.
"""

import logging
import re
from typing import List, Optional, Tuple

from sat_tutor_agent.session_state import DialogueMode, StudentState

logger = logging.getLogger(__name__)


class IntentRouter:
    """Keyword-based mode selection with sticky-mode overrides."""

    # Checked in order, first match wins
    KEYWORD_RULES: List[Tuple[DialogueMode, Tuple[str, ...]]] = [
        (DialogueMode.STRUCTURED_TEACHING, ("teach", "learn", "study")),
        (DialogueMode.PRACTICE_LOOP, ("quiz", "practice", "questions", "drill")),
        (DialogueMode.PLAN_SESSION, ("plan", "schedule")),
        (DialogueMode.DOUBT_SOLVING, ("stuck", "hint", "help me")),
    ]

    EXIT_KEYWORDS = ("stop", "exit", "quit", "reset")

    # "1A", "2 b", "3c," ...
    ANSWER_PATTERN = re.compile(r"\d+\s*[a-d]\b")

    def keyword_candidate(self, text: str) -> Optional[DialogueMode]:
        """Mode suggested by keywords in an already lower-cased message."""
        for mode, keywords in self.KEYWORD_RULES:
            if any(k in text for k in keywords):
                return mode

        if ("review" in text and "test" in text) or "analyze mistake" in text:
            return DialogueMode.TEST_REVIEW
        if ("parent" in text and "report" in text) or "progress report" in text:
            return DialogueMode.PROGRESS_REPORT

        return None

    def is_exit(self, text: str) -> bool:
        return any(k in text for k in self.EXIT_KEYWORDS)

    def looks_like_answers(self, text: str) -> bool:
        return "answer" in text or bool(self.ANSWER_PATTERN.search(text))

    def route(self, message: str, state: StudentState) -> DialogueMode:
        """
        Decide the next mode and record it on the state.

        Exit keywords clear any active module as a side effect.
        """
        text = message.lower()
        candidate = self.keyword_candidate(text)

        if self.is_exit(text):
            if state.active_module is not None:
                logger.info(f"🚪 [Router] Exit keyword, leaving {state.sticky_mode.value}")
            state.deactivate_modules()
            candidate = DialogueMode.START
        elif state.sticky_mode is not None:
            if candidate is not None and candidate != state.sticky_mode:
                logger.info(f"📌 [Router] Ignoring {candidate.value}, {state.sticky_mode.value} is still active")
            candidate = state.sticky_mode

        if (
            candidate is None
            and self.looks_like_answers(text)
            and state.current_state != DialogueMode.STRUCTURED_TEACHING
        ):
            candidate = DialogueMode.PRACTICE_LOOP

        if candidate is None:
            candidate = DialogueMode.DOUBT_SOLVING

        if candidate != state.current_state:
            logger.info(f"👉 [Router] {state.current_state.value} → {candidate.value}")
            state.current_state = candidate

        return candidate
