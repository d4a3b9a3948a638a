"""
Unit Tests for Dialogue Mode Handlers

Tests the practice-quiz lifecycle, the teaching stub and the fallback replies
of the prompt-templating handlers.
"""

import random

import pytest

from sat_tutor_agent.mode_handlers import (
    ANSWER_INSTRUCTION,
    FALLBACK_REPLIES,
    GRADING_FAILED_REPLY,
    NO_QUESTIONS_REPLY,
    TEACHING_PROMPT,
    TEACHING_REMINDER,
    ModeHandlers,
    format_quiz,
)
from sat_tutor_agent.session_state import DialogueMode, StudentState

APP = "Pundits AI"

GRADED = {
    "score": 1,
    "total": 2,
    "results": [
        {"question": 1, "user_answer": "A", "correct_answer": "A", "is_correct": True, "explanation": "Parallel lines."},
        {"question": 2, "user_answer": "B", "correct_answer": "C", "is_correct": False, "explanation": "Complete the square."},
    ],
}


def _handlers(generator, search=None):
    kwargs = {"rng": random.Random(3)}
    if search is not None:
        kwargs["search"] = search
    return ModeHandlers(generator, **kwargs)


class TestPracticeLoop:
    """Quiz start, grading and fallbacks."""

    @pytest.fixture
    def state(self):
        return StudentState(user_id="u1")

    @pytest.mark.asyncio
    async def test_start_quiz_from_question_table(self, make_generator, state):
        generator = make_generator([{"topic": "Trigonometry", "count": 2, "difficulty": None}])
        handlers = _handlers(generator)

        reply = await handlers.practice_loop("hard trigonometry quiz", state, APP)

        assert state.practice is not None
        quiz = state.practice.quiz_data
        assert quiz.difficulty == "Hard"
        assert [q.id for q in quiz.questions] == ["trig_002"]
        assert state.preferences["difficulty"] == "Hard"
        assert reply.endswith(ANSWER_INSTRUCTION)
        assert "**1.**" in reply and "A) -1/2" in reply
        assert len(generator.calls) == 1
        assert generator.calls[0]["fast_mode"] is True

    @pytest.mark.asyncio
    async def test_count_is_clamped(self, make_generator, state):
        generator = make_generator([{"topic": "english", "count": 40}])

        await _handlers(generator).practice_loop("all the english questions", state, APP)

        assert 1 <= len(state.practice.quiz_data.questions) <= 5

    @pytest.mark.asyncio
    async def test_difficulty_falls_back_to_preferences(self, make_generator, state):
        state.preferences["difficulty"] = "Easy"
        generator = make_generator([{"topic": "linear", "count": 3}])

        await _handlers(generator).practice_loop("linear equations drill", state, APP)

        assert state.practice.quiz_data.difficulty == "Easy"
        assert [q.id for q in state.practice.quiz_data.questions] == ["alg_003"]

    @pytest.mark.asyncio
    async def test_extracted_difficulty_used_without_explicit_word(self, make_generator, state):
        generator = make_generator([{"topic": "Quadratic", "count": 3, "difficulty": "hard"}])

        await _handlers(generator).practice_loop("quadratics drill, make it tough", state, APP)

        assert state.practice.quiz_data.difficulty == "Hard"
        assert [q.id for q in state.practice.quiz_data.questions] == ["adv_003"]

    @pytest.mark.asyncio
    async def test_unparseable_extraction_searches_with_message(self, make_generator, state):
        generator = make_generator(["not json at all"])

        reply = await _handlers(generator).practice_loop("probability practice", state, APP)

        assert state.practice is not None
        assert [q.id for q in state.practice.quiz_data.questions] == ["data_002"]
        assert state.practice.quiz_data.topic == "SAT"
        assert reply.splitlines()[0] == "📝 **SAT Practice** (Medium)"
        assert reply.endswith(ANSWER_INSTRUCTION)

    @pytest.mark.asyncio
    async def test_lookup_falls_back_to_math_then_english(self, make_generator, state):
        queries = []

        def search(query, limit, difficulty, rng):
            queries.append(query)
            if query == "English":
                from sat_tutor_agent.question_bank import SAT_QUESTION_BANK
                return [q for q in SAT_QUESTION_BANK if q.id == "eng_003"]
            return []

        generator = make_generator([{"topic": "Astronomy", "count": 1}])

        await _handlers(generator, search=search).practice_loop("astronomy quiz", state, APP)

        assert queries == ["Astronomy", "Math", "English"]
        assert state.practice.quiz_data.questions[0].id == "eng_003"

    @pytest.mark.asyncio
    async def test_synthesis_when_lookup_is_empty(self, make_generator, state):
        generated = {"questions": [{
            "text": "If \\(2x + 3 = 11\\) and \\(y = x^2\\), what is y?",
            "options": ["4", "8", "16", "64"],
            "correctAnswer": "c",
            "explanation": "x = 4 so y = 16.",
        }]}
        generator = make_generator([{"topic": "Astronomy", "count": 1}, generated])

        reply = await _handlers(generator, search=lambda *a, **k: []).practice_loop("astronomy quiz", state, APP)

        question = state.practice.quiz_data.questions[0]
        assert question.correct_answer == "C"
        assert "STRICT STYLE CONTRACT" in generator.calls[1]["prompt"]
        assert reply.endswith(ANSWER_INSTRUCTION)

    @pytest.mark.asyncio
    async def test_synthesis_accepts_bare_list(self, make_generator, state):
        generated = [{"text": "Q?", "options": ["1", "2", "3", "4"], "correctAnswer": "A"}]
        generator = make_generator([{"topic": "Astronomy", "count": 1}, generated])

        await _handlers(generator, search=lambda *a, **k: []).practice_loop("astronomy quiz", state, APP)

        assert state.practice is not None

    @pytest.mark.asyncio
    async def test_everything_fails_asks_for_another_topic(self, make_generator, generation_error, state):
        generator = make_generator([{"topic": "Astronomy", "count": 1}, generation_error])

        reply = await _handlers(generator, search=lambda *a, **k: []).practice_loop("astronomy quiz", state, APP)

        assert reply == NO_QUESTIONS_REPLY
        assert state.active_module is None

    @pytest.mark.asyncio
    async def test_grading_success_clears_module(self, make_generator, state):
        generator = make_generator([{"topic": "Algebra", "count": 2}, GRADED])
        handlers = _handlers(generator)
        await handlers.practice_loop("algebra quiz", state, APP)

        reply = await handlers.practice_loop("1A 2B", state, APP)

        assert state.active_module is None
        assert "Score: 1/2" in reply
        assert "✅ **Q1:**" in reply
        assert "❌ **Q2:** you answered B, correct answer C." in reply
        assert "What's next?" in reply
        assert '"1A 2B"' in generator.calls[1]["prompt"]

    @pytest.mark.asyncio
    async def test_partial_grade_still_ends_quiz(self, make_generator, state):
        partial = {"score": 1, "results": [
            {"question": "Q1", "user_answer": "A", "is_correct": True},
            {"question": "second", "is_correct": False},
        ]}
        generator = make_generator([{"topic": "Algebra", "count": 2}, partial])
        handlers = _handlers(generator)
        await handlers.practice_loop("algebra quiz", state, APP)
        total = len(state.practice.quiz_data.questions)

        reply = await handlers.practice_loop("1A 2C", state, APP)

        assert state.active_module is None
        assert f"Score: 1/{total}" in reply
        assert "✅ **Q1:** you answered A." in reply
        assert "Q2" not in reply

    @pytest.mark.asyncio
    async def test_grading_parse_failure_keeps_module(self, make_generator, state):
        generator = make_generator([{"topic": "Algebra", "count": 2}, "I think they got some right"])
        handlers = _handlers(generator)
        await handlers.practice_loop("algebra quiz", state, APP)
        quiz = state.practice.quiz_data

        reply = await handlers.practice_loop("no idea", state, APP)

        assert reply == GRADING_FAILED_REPLY
        assert state.practice is not None
        assert state.practice.quiz_data is quiz

    @pytest.mark.asyncio
    async def test_grading_generation_error_keeps_module(self, make_generator, generation_error, state):
        generator = make_generator([{"topic": "Algebra", "count": 2}, generation_error])
        handlers = _handlers(generator)
        await handlers.practice_loop("algebra quiz", state, APP)

        reply = await handlers.practice_loop("1A", state, APP)

        assert reply == GRADING_FAILED_REPLY
        assert state.practice is not None


class TestStructuredTeaching:

    @pytest.mark.asyncio
    async def test_entry_sets_teaching_module(self, make_generator):
        state = StudentState(user_id="u1")
        generator = make_generator()

        reply = await _handlers(generator).structured_teaching("teach me", state, APP)

        assert reply == TEACHING_PROMPT
        assert state.teaching.step == "WAIT_FOR_MODE"
        assert generator.calls == []

    @pytest.mark.asyncio
    async def test_active_lesson_reoffers_choice(self, make_generator):
        state = StudentState(user_id="u1")
        handlers = _handlers(make_generator())
        await handlers.structured_teaching("teach me", state, APP)

        reply = await handlers.structured_teaching("hmm", state, APP)

        assert reply == TEACHING_REMINDER
        assert "stop" in reply
        assert state.teaching is not None


class TestTemplatedHandlers:

    @pytest.mark.asyncio
    async def test_reply_passed_through(self, make_generator):
        generator = make_generator([{"reply": "### **1. Score Projection**"}])
        state = StudentState(user_id="u1", goal="1500")

        reply = await _handlers(generator).plan_session("make me a plan", state, APP)

        assert reply == "### **1. Score Projection**"
        prompt = generator.calls[0]["prompt"]
        assert APP in prompt
        assert "Score Projection" in prompt
        assert generator.calls[0]["json_mode"] is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("mode,method", [
        (DialogueMode.PLAN_SESSION, "plan_session"),
        (DialogueMode.TEST_REVIEW, "test_review"),
        (DialogueMode.PROGRESS_REPORT, "progress_report"),
        (DialogueMode.START, "start_session"),
    ])
    async def test_unparseable_output_uses_fallback(self, make_generator, mode, method):
        generator = make_generator(["this is not json"])
        handler = getattr(_handlers(generator), method)

        reply = await handler("hello there", StudentState(user_id="u1"), APP)

        assert reply == FALLBACK_REPLIES[mode]

    @pytest.mark.asyncio
    async def test_generation_error_uses_fallback(self, make_generator, generation_error):
        generator = make_generator([generation_error])

        reply = await _handlers(generator).test_review("review my test", StudentState(user_id="u1"), APP)

        assert reply == FALLBACK_REPLIES[DialogueMode.TEST_REVIEW]

    @pytest.mark.asyncio
    async def test_simple_question_uses_fast_model(self, make_generator):
        generator = make_generator([{"reply": "A discriminant is b^2 - 4ac."}])

        reply = await _handlers(generator).doubt_solving("what is a discriminant?", StudentState(user_id="u1"), APP)

        assert reply == "A discriminant is b^2 - 4ac."
        assert generator.calls[0]["fast_mode"] is True
        assert len(generator.calls) == 1

    @pytest.mark.asyncio
    async def test_quick_answer_failure_falls_through_to_full_solver(self, make_generator):
        generator = make_generator(["garbage", {"reply": "**1. Problem Breakdown**"}])

        reply = await _handlers(generator).doubt_solving("how do I factor this?", StudentState(user_id="u1"), APP)

        assert reply == "**1. Problem Breakdown**"
        assert generator.calls[1]["fast_mode"] is False
        assert "DOUBT_SOLVER" in generator.calls[1]["prompt"]

    @pytest.mark.asyncio
    async def test_handle_dispatches_by_mode(self, make_generator):
        state = StudentState(user_id="u1")

        result = await _handlers(make_generator()).handle(DialogueMode.STRUCTURED_TEACHING, "teach", state, APP)

        assert result.mode == DialogueMode.STRUCTURED_TEACHING
        assert result.reply == TEACHING_PROMPT


def test_format_quiz_listing():
    from sat_tutor_agent.session_state import QuizData, QuizQuestion

    quiz = QuizData(
        topic="Geometry",
        difficulty="Easy",
        questions=[QuizQuestion(id="g", text="Angle?", options=["40", "50", "140", "90"], correct_answer="A")],
    )

    text = format_quiz(quiz)

    assert text.splitlines()[0] == "📝 **Geometry Practice** (Easy)"
    assert "**1.** Angle?" in text
    assert "D) 90" in text
    assert text.splitlines()[-1] == ANSWER_INSTRUCTION
