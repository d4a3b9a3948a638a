"""
Dialogue Mode Handlers

One coroutine per dialogue mode. Most handlers fill a prompt template and pass
the model's {"reply": ...} through; the practice loop and structured teaching
handlers also move the state's active module.
"""

import logging
import random
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

from sat_tutor_agent import prompts
from sat_tutor_agent.llm_client import GenerationError, TextGenerator
from sat_tutor_agent.question_bank import PracticeQuestion, search_questions
from sat_tutor_agent.schemas import (
    GeneratedQuiz,
    GradingResult,
    ReplyPayload,
    TopicRequest,
    normalize_difficulty,
    parse_payload,
)
from sat_tutor_agent.session_state import (
    DialogueMode,
    PracticeModule,
    QuizData,
    QuizQuestion,
    StudentState,
    TeachingModule,
)

logger = logging.getLogger(__name__)

ANSWER_INSTRUCTION = "Reply with your answers (e.g. 1A, 2B...) to see your score."

FALLBACK_TOPICS = ("Math", "English")

QUIZ_LABEL = "SAT"

DIFFICULTY_WORD = re.compile(r"\b(easy|medium|hard)\b")

SIMPLE_QUESTION_PREFIXES = ("what", "how", "why", "explain", "help")

GENERIC_FALLBACK = "I'm having trouble putting a response together right now. Could you rephrase that?"

FALLBACK_REPLIES: Dict[DialogueMode, str] = {
    DialogueMode.START: (
        "Welcome back! I can walk you through a lesson, run a practice quiz, build a study plan, "
        "or help with a problem you're stuck on. What would you like to do?"
    ),
    DialogueMode.PLAN_SESSION: "I couldn't build your study plan just now. Please try again in a moment.",
    DialogueMode.DOUBT_SOLVING: GENERIC_FALLBACK,
    DialogueMode.TEST_REVIEW: "I couldn't analyze that test right now. Please try again in a moment.",
    DialogueMode.PROGRESS_REPORT: "I couldn't prepare the progress report right now. Please try again in a moment.",
}

TEACHING_PROMPT = (
    "Great, let's learn! How would you like to go?\n\n"
    "1. **Step-by-step lesson**: I explain the concept and check your understanding as we go.\n"
    "2. **Quiz**: jump straight into practice questions.\n\n"
    "Tell me which one you'd like, and the topic."
)

TEACHING_REMINDER = (
    "We're still setting up your lesson. Would you like a **step-by-step lesson** or a **quiz**? "
    "Say **stop** any time to leave the lesson."
)

NO_QUESTIONS_REPLY = (
    "I couldn't find or create questions for that topic. "
    "Try another one, like \"Linear Equations\", \"Geometry\" or \"Transitions\"."
)

GRADING_FAILED_REPLY = (
    "I couldn't read your answers. Please reply in the format 1A, 2B, 3C "
    "(question number followed by your choice)."
)

WHATS_NEXT = (
    "**What's next?** Ask for another quiz, try a harder set, or ask me about any question you missed."
)

LETTERS = ("A", "B", "C", "D")


@dataclass
class TutorReply:
    reply: str
    mode: DialogueMode


Handler = Callable[[str, StudentState, str], Awaitable[str]]


def format_quiz(quiz: QuizData) -> str:
    """Numbered multiple-choice listing ending with the answer instruction."""
    lines = [f"📝 **{quiz.topic} Practice** ({quiz.difficulty})", ""]
    for i, q in enumerate(quiz.questions, 1):
        lines.append(f"**{i}.** {q.text}")
        for letter, option in zip(LETTERS, q.options):
            lines.append(f"{letter}) {option}")
        lines.append("")
    lines.append(ANSWER_INSTRUCTION)
    return "\n".join(lines)


def format_score_report(result: GradingResult) -> str:
    lines = [f"🎯 **Score: {result.score}/{result.total}**", ""]
    for item in result.results:
        mark = "✅" if item.is_correct else "❌"
        answer = item.user_answer or "no answer"
        line = f"{mark} **Q{item.question}:** you answered {answer}"
        if not item.is_correct and item.correct_answer:
            line += f", correct answer {item.correct_answer}"
        line += "."
        if item.explanation:
            line += f" {item.explanation}"
        lines.append(line)
    lines.extend(["", WHATS_NEXT])
    return "\n".join(lines)


def _to_quiz_question(q: PracticeQuestion) -> QuizQuestion:
    return QuizQuestion(
        id=q.id,
        text=q.text,
        options=list(q.options),
        correct_answer=q.correct_answer,
        explanation=q.explanation,
    )


class ModeHandlers:
    """
    Handlers for every dialogue mode.

    Args:
        generator: TextGenerator (or anything with the same generate coroutine)
        search: question lookup, defaults to the static question table
        rng: random source for question shuffling
    """

    def __init__(self, generator: TextGenerator, search=search_questions, rng: Optional[random.Random] = None):
        self.generator = generator
        self.search = search
        self.rng = rng or random.Random()

        self._handlers: Dict[DialogueMode, Handler] = {
            DialogueMode.START: self.start_session,
            DialogueMode.STRUCTURED_TEACHING: self.structured_teaching,
            DialogueMode.PRACTICE_LOOP: self.practice_loop,
            DialogueMode.PLAN_SESSION: self.plan_session,
            DialogueMode.DOUBT_SOLVING: self.doubt_solving,
            DialogueMode.TEST_REVIEW: self.test_review,
            DialogueMode.PROGRESS_REPORT: self.progress_report,
        }

    async def handle(self, mode: DialogueMode, message: str, state: StudentState, app_name: str) -> TutorReply:
        reply = await self._handlers[mode](message, state, app_name)
        return TutorReply(reply=reply, mode=mode)

    # ==================== Prompt-templating modes ====================

    async def _templated(self, prompt: str, fallback: str, fast_mode: bool = False) -> Optional[str]:
        """Send a prompt expecting {"reply": ...}; the fallback replaces any failure."""
        try:
            raw = await self.generator.generate(
                [{"role": "user", "content": prompt}],
                json_mode=True,
                temperature=0.5 if fast_mode else 0.7,
                fast_mode=fast_mode,
            )
        except GenerationError as e:
            logger.warning(f"⚠️ [ModeHandlers] Generation failed: {e}")
            return fallback

        payload = parse_payload(ReplyPayload, raw)
        if payload is None:
            logger.warning("⚠️ [ModeHandlers] Reply was not valid JSON, using fallback")
            return fallback
        return payload.reply

    async def start_session(self, message: str, state: StudentState, app_name: str) -> str:
        return await self._templated(
            prompts.sat_tutor_prompt(message, state, app_name),
            FALLBACK_REPLIES[DialogueMode.START],
        )

    async def plan_session(self, message: str, state: StudentState, app_name: str) -> str:
        return await self._templated(
            prompts.planner_prompt(message, state, app_name),
            FALLBACK_REPLIES[DialogueMode.PLAN_SESSION],
        )

    async def doubt_solving(self, message: str, state: StudentState, app_name: str) -> str:
        # Short plain questions get the small model first
        if self._is_simple_question(message):
            quick = await self._templated(prompts.quick_answer_prompt(message, app_name), None, fast_mode=True)
            if quick:
                logger.info("⚡ [DoubtSolving] Quick answer")
                return quick

        return await self._templated(
            prompts.doubt_solver_prompt(message, state, app_name),
            FALLBACK_REPLIES[DialogueMode.DOUBT_SOLVING],
        )

    async def test_review(self, message: str, state: StudentState, app_name: str) -> str:
        return await self._templated(
            prompts.test_analyst_prompt(message, state, app_name),
            FALLBACK_REPLIES[DialogueMode.TEST_REVIEW],
        )

    async def progress_report(self, message: str, state: StudentState, app_name: str) -> str:
        return await self._templated(
            prompts.parent_reporter_prompt(message, state, app_name),
            FALLBACK_REPLIES[DialogueMode.PROGRESS_REPORT],
        )

    @staticmethod
    def _is_simple_question(message: str) -> bool:
        text = message.lower().strip()
        return len(message) < 80 and ("?" in text or text.startswith(SIMPLE_QUESTION_PREFIXES))

    # ==================== Structured teaching ====================

    async def structured_teaching(self, message: str, state: StudentState, app_name: str) -> str:
        """Only the entry step exists; the lesson itself is not implemented yet."""
        if state.teaching is None:
            state.active_module = TeachingModule(step="WAIT_FOR_MODE")
            logger.info("📚 [Teaching] Lesson started, waiting for mode choice")
            return TEACHING_PROMPT
        return TEACHING_REMINDER

    # ==================== Practice loop ====================

    async def practice_loop(self, message: str, state: StudentState, app_name: str) -> str:
        if state.practice is None:
            return await self._start_quiz(message, state)
        return await self._grade_quiz(message, state)

    def _pick_difficulty(self, message: str, request: Optional[TopicRequest], state: StudentState) -> str:
        explicit = DIFFICULTY_WORD.search(message.lower())
        if explicit:
            return explicit.group(1).capitalize()
        if request is not None and request.difficulty:
            return request.difficulty
        return normalize_difficulty(state.preferences.get("difficulty")) or "Medium"

    async def _extract_topic(self, message: str) -> Optional[TopicRequest]:
        try:
            raw = await self.generator.generate(
                [{"role": "user", "content": prompts.topic_extraction_prompt(message)}],
                json_mode=True,
                temperature=0.2,
                fast_mode=True,
            )
        except GenerationError as e:
            logger.warning(f"⚠️ [PracticeLoop] Topic extraction failed: {e}")
            return None
        return parse_payload(TopicRequest, raw)

    def _lookup(self, topic: str, count: int, difficulty: str) -> List[QuizQuestion]:
        for query in (topic,) + FALLBACK_TOPICS:
            found = self.search(query, limit=count, difficulty=difficulty, rng=self.rng)
            if found:
                if query != topic:
                    logger.info(f"🔁 [PracticeLoop] No match for '{topic}', using '{query}' questions")
                return [_to_quiz_question(q) for q in found]
        return []

    async def _synthesize(self, topic: str, count: int, difficulty: str) -> List[QuizQuestion]:
        try:
            raw = await self.generator.generate(
                [{"role": "user", "content": prompts.quiz_synthesis_prompt(topic, count, difficulty)}],
                json_mode=True,
            )
        except GenerationError as e:
            logger.warning(f"⚠️ [PracticeLoop] Question synthesis failed: {e}")
            return []

        quiz = parse_payload(GeneratedQuiz, raw)
        if quiz is None:
            return []
        return [
            QuizQuestion(
                id=f"gen_{i}",
                text=q.text,
                options=list(q.options),
                correct_answer=q.correctAnswer,
                explanation=q.explanation,
            )
            for i, q in enumerate(quiz.questions[:count], 1)
        ]

    async def _start_quiz(self, message: str, state: StudentState) -> str:
        request = await self._extract_topic(message)
        if request is None:
            # Search with the raw message but keep it out of the quiz header
            topic, label, count = message, QUIZ_LABEL, 3
        else:
            topic, count = request.topic, request.count
            label = topic

        difficulty = self._pick_difficulty(message, request, state)
        state.preferences["difficulty"] = difficulty

        questions = self._lookup(topic, count, difficulty)
        if not questions:
            logger.info(f"🧪 [PracticeLoop] Question table empty for '{topic}', asking the model")
            questions = await self._synthesize(topic, count, difficulty)

        if not questions:
            return NO_QUESTIONS_REPLY

        quiz = QuizData(topic=label, questions=questions, difficulty=difficulty)
        state.active_module = PracticeModule(quiz_data=quiz)
        logger.info(f"📝 [PracticeLoop] Quiz started: {len(questions)} {difficulty} question(s) on '{label}'")
        return format_quiz(quiz)

    async def _grade_quiz(self, message: str, state: StudentState) -> str:
        quiz = state.practice.quiz_data
        try:
            raw = await self.generator.generate(
                [{"role": "user", "content": prompts.grading_prompt(quiz.questions, message)}],
                json_mode=True,
                temperature=0.2,
            )
        except GenerationError as e:
            logger.warning(f"⚠️ [PracticeLoop] Grading failed: {e}")
            return GRADING_FAILED_REPLY

        result = parse_payload(GradingResult, raw)
        if result is None:
            return GRADING_FAILED_REPLY
        if result.total is None:
            result.total = len(quiz.questions)

        state.deactivate_modules()
        logger.info(f"✅ [PracticeLoop] Graded quiz on '{quiz.topic}': {result.score}/{result.total}")
        return format_score_report(result)
