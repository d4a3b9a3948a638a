"""
SAT Tutor

Runs one chat turn: load state, integrity check, route, dispatch to the mode
handler, log and save.
"""

import logging
import time
from typing import Optional

from sat_tutor_agent import prompts
from sat_tutor_agent.app_settings import AppSettingsProvider
from sat_tutor_agent.config import TutorConfig
from sat_tutor_agent.intent_router import IntentRouter
from sat_tutor_agent.llm_client import GenerationError, TextGenerator
from sat_tutor_agent.mode_handlers import ModeHandlers, TutorReply
from sat_tutor_agent.schemas import SafetyVerdict, parse_payload
from sat_tutor_agent.session_manager import StudentStateManager
from sat_tutor_agent.session_state import StudentState

logger = logging.getLogger(__name__)

SUSPICIOUS_PHRASES = ("give me the answer", "just tell me", "cheat")
LONG_MESSAGE_CHARS = 500

ERROR_REPLY = "I encountered an error, let's restart."
REFUSAL_PREFIX = "I cannot fulfill that request. "


class SatTutor:
    """
    Conversational SAT tutor.

    Args:
        config: TutorConfig
        supabase_client: Supabase client for state and site settings (optional)
        generator: TextGenerator override, mainly for tests
        handlers: ModeHandlers override
    """

    def __init__(
        self,
        config: TutorConfig,
        supabase_client=None,
        generator: Optional[TextGenerator] = None,
        handlers: Optional[ModeHandlers] = None,
    ):
        self.config = config
        self.generator = generator or TextGenerator(config)
        self.state_manager = StudentStateManager(supabase_client)
        self.settings = AppSettingsProvider(config, supabase_client)
        self.router = IntentRouter()
        self.handlers = handlers or ModeHandlers(self.generator)

        logger.info(f"✅ [SatTutor] Initialized (storage: {'supabase' if supabase_client else 'memory'})")

    @staticmethod
    def needs_integrity_check(message: str) -> bool:
        text = message.lower()
        return any(p in text for p in SUSPICIOUS_PHRASES) or len(message) > LONG_MESSAGE_CHARS

    async def check_integrity(self, message: str) -> Optional[str]:
        """Refusal text if the message is judged unsafe, else None."""
        if not self.needs_integrity_check(message):
            return None

        try:
            raw = await self.generator.generate(
                [{"role": "user", "content": prompts.safety_guard_prompt(message)}],
                json_mode=True,
            )
        except GenerationError as e:
            logger.warning(f"⚠️ [SatTutor] Integrity check unavailable: {e}")
            return None

        verdict = parse_payload(SafetyVerdict, raw)
        if verdict is not None and not verdict.safe:
            logger.info(f"🛡️ [SatTutor] Message blocked: {verdict.reason}")
            return REFUSAL_PREFIX + (verdict.reason or "Please try a different approach.")
        return None

    async def respond(self, user_id: str, message: str) -> TutorReply:
        """Handle one student message and return the tutor's reply."""
        start_time = time.time()
        logger.info(f"🧠 [SatTutor] Turn for {user_id[:20]}")

        app_name = await self.settings.get_app_name()
        state = await self.state_manager.load(user_id)

        refusal = await self.check_integrity(message)
        if refusal is not None:
            return TutorReply(reply=refusal, mode=state.current_state)

        state.log_message("user", message)
        mode = self.router.route(message, state)

        try:
            result = await self.handlers.handle(mode, message, state, app_name)
        except Exception as e:
            logger.error(f"❌ [SatTutor] {mode.value} handler failed: {e}", exc_info=True)
            state.deactivate_modules()
            result = TutorReply(reply=ERROR_REPLY, mode=mode)

        state.log_message("ai", result.reply)
        await self.state_manager.save(user_id, state)

        logger.info(f"✅ [SatTutor] {mode.value} reply in {time.time() - start_time:.2f}s")
        return result

    async def get_state(self, user_id: str) -> StudentState:
        return await self.state_manager.load(user_id)

    async def reset_state(self, user_id: str) -> bool:
        return await self.state_manager.reset(user_id)


def state_summary(state: StudentState) -> dict:
    """Public view of a state record for the HTTP API."""
    quiz = state.practice.quiz_data if state.practice else None
    return {
        "user_id": state.user_id,
        "current_state": state.current_state.value,
        "preferences": state.preferences,
        "active_module": (
            "practice" if state.practice else "teaching" if state.teaching else None
        ),
        "quiz": {
            "topic": quiz.topic,
            "difficulty": quiz.difficulty,
            "question_count": len(quiz.questions),
        } if quiz else None,
        "goal": state.goal,
        "test_date": state.test_date,
        "message_count": len(state.session_log),
        "updated_at": state.updated_at.isoformat() if state.updated_at else None,
    }
