"""
Student State Manager

Persists StudentState records in the Supabase `student_states` table.

Storage is best effort: load falls back to a default record and save hands the
in-memory record back when Supabase is unreachable. There is no locking, so two
concurrent turns for the same user can lose an update (last write wins).
"""

import logging
from typing import Optional, Dict, Any
from datetime import datetime

from sat_tutor_agent.session_state import (
    DialogueMode,
    PracticeModule,
    QuizData,
    QuizQuestion,
    StudentState,
    TeachingModule,
)

logger = logging.getLogger(__name__)

TABLE_NAME = "student_states"


def _parse_datetime(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now()
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return datetime.now()


class StudentStateManager:
    """
    Loads and saves StudentState records.

    Without a Supabase client the manager keeps records in memory only.
    """

    def __init__(self, supabase_client=None):
        """
        Initialize StudentStateManager.

        Args:
            supabase_client: Supabase client instance (optional)
        """
        self.supabase = supabase_client
        self.use_supabase = supabase_client is not None

        # Always initialize in-memory fallback (used in error cases)
        self._in_memory_states: Dict[str, StudentState] = {}

    # ==================== Serialization ====================

    def state_to_dict(self, state: StudentState) -> Dict[str, Any]:
        """
        Convert StudentState to a row for storage.

        The active module is written back into the legacy
        practice_module / teaching_module columns.
        """
        practice_module = None
        teaching_module = None

        if state.practice is not None:
            quiz = state.practice.quiz_data
            practice_module = {
                "active": True,
                "quiz_data": {
                    "topic": quiz.topic,
                    "difficulty": quiz.difficulty,
                    "questions": [
                        {
                            "id": q.id,
                            "text": q.text,
                            "options": list(q.options),
                            "correctAnswer": q.correct_answer,
                            "explanation": q.explanation,
                        }
                        for q in quiz.questions
                    ],
                },
            }
        elif state.teaching is not None:
            teaching_module = {"active": True, "step": state.teaching.step}

        return {
            "user_id": state.user_id,
            "current_state": state.current_state.value,
            "preferences": state.preferences,
            "practice_module": practice_module,
            "teaching_module": teaching_module,
            "goal": state.goal,
            "test_date": state.test_date,
            "baseline": state.baseline,
            "mastery": state.mastery,
            "timing": state.timing,
            "error_patterns": state.error_patterns,
            "session_log": state.session_log,
            "created_at": state.created_at.isoformat() if state.created_at else None,
            "updated_at": state.updated_at.isoformat() if state.updated_at else None,
        }

    def dict_to_state(self, data: Dict[str, Any]) -> StudentState:
        """Convert a stored row to StudentState."""
        state = StudentState(
            user_id=data["user_id"],
            current_state=DialogueMode.from_label(data.get("current_state")),
            preferences=data.get("preferences") or {},
            goal=data.get("goal"),
            test_date=data.get("test_date"),
            baseline=data.get("baseline") or {},
            mastery=data.get("mastery") or {},
            timing=data.get("timing") or {},
            error_patterns=data.get("error_patterns") or {},
            session_log=data.get("session_log") or [],
            created_at=_parse_datetime(data.get("created_at")),
            updated_at=_parse_datetime(data.get("updated_at")),
        )

        # Legacy rows could mark both modules active; the quiz wins
        practice = data.get("practice_module") or {}
        teaching = data.get("teaching_module") or {}
        if practice.get("active") and practice.get("quiz_data"):
            state.active_module = PracticeModule(quiz_data=self._quiz_from_dict(practice["quiz_data"]))
        elif teaching.get("active"):
            state.active_module = TeachingModule(step=teaching.get("step") or "WAIT_FOR_MODE")

        return state

    def _quiz_from_dict(self, data: Dict[str, Any]) -> QuizData:
        questions = [
            QuizQuestion(
                id=str(q.get("id", i + 1)),
                text=q.get("text", ""),
                options=list(q.get("options") or []),
                correct_answer=str(q.get("correctAnswer") or q.get("correct_answer") or "").upper(),
                explanation=q.get("explanation") or "",
            )
            for i, q in enumerate(data.get("questions") or [])
        ]
        return QuizData(
            topic=data.get("topic") or "Practice",
            questions=questions,
            difficulty=data.get("difficulty") or "Medium",
        )

    # ==================== Persistence ====================

    def default_state(self, user_id: str) -> StudentState:
        return StudentState(user_id=user_id)

    async def load(self, user_id: str) -> StudentState:
        """
        Load a user's state, or a fresh default record (not persisted).

        Never raises.
        """
        if not self.use_supabase:
            return self._in_memory_states.get(user_id) or self.default_state(user_id)

        try:
            result = self.supabase.table(TABLE_NAME) \
                .select('*') \
                .eq('user_id', user_id) \
                .limit(1) \
                .execute()

            if result.data:
                return self.dict_to_state(result.data[0])

            return self.default_state(user_id)

        except Exception as e:
            logger.warning(f"⚠️ [StudentState] Error loading state for {user_id[:20]}: {e}")
            # Fallback to in-memory
            return self._in_memory_states.get(user_id) or self.default_state(user_id)

    async def save(self, user_id: str, state: StudentState) -> StudentState:
        """
        Upsert the full record, stamping updated_at.

        On storage errors the in-memory record is returned so the current
        turn's reply is not lost; the write is not durable in that case.
        """
        state.user_id = user_id
        state.updated_at = datetime.now()

        if not self.use_supabase:
            self._in_memory_states[user_id] = state
            return state

        try:
            row = self.state_to_dict(state)
            self.supabase.table(TABLE_NAME).upsert(row, on_conflict='user_id').execute()
            self._in_memory_states.pop(user_id, None)
            return state

        except Exception as e:
            logger.warning(f"⚠️ [StudentState] Error saving state for {user_id[:20]}: {e}")
            self._in_memory_states[user_id] = state
            return state

    async def reset(self, user_id: str) -> bool:
        """Delete a user's stored state. Returns True if the delete went through."""
        self._in_memory_states.pop(user_id, None)

        if not self.use_supabase:
            return True

        try:
            self.supabase.table(TABLE_NAME).delete().eq('user_id', user_id).execute()
            return True
        except Exception as e:
            logger.warning(f"⚠️ [StudentState] Error resetting state for {user_id[:20]}: {e}")
            return False
