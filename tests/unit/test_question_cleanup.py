"""
Unit Tests for question text cleanup

Tests topic extraction, option splitting and explanation cleanup.
"""

import pytest

from sat_tutor_agent.question_cleanup import (
    SAT_TOPICS,
    clean_explanation,
    extract_topic,
    fix_double_wrapping,
    normalize_for_topic,
    split_clumped_options,
    strip_question_number,
)


class TestNormalization:

    def test_topics_sorted_longest_first(self):
        lengths = [len(t) for t in SAT_TOPICS]
        assert lengths == sorted(lengths, reverse=True)

    def test_normalize_for_topic(self):
        assert normalize_for_topic("Geometry & Trigonometry:") == "geometry and trigonometry"
        assert normalize_for_topic("Lines, angles, and triangles") == "lines angles and triangles"
        assert normalize_for_topic("\\(x\\) - value") == "x value"
        assert normalize_for_topic(None) == ""

    @pytest.mark.parametrize("text", ["1. What", "2) What", "Q3: What", "Q.4) What", "Question 5) What"])
    def test_strip_question_number(self, text):
        assert strip_question_number(text) == "What"


class TestExtractTopic:

    def test_markdown_header(self):
        result = extract_topic("**Topic: Circles**\n\nWhat is the radius?")

        assert result.changed
        assert result.topic == "Circles"
        assert result.text == "What is the radius?"

    def test_main_and_sub_topic(self):
        result = extract_topic("Algebra, Linear functions: If f(x) = 3x + 2, what is f(4)?")

        assert result.changed
        assert result.topic == "Algebra - Linear functions"
        assert result.text == "If f(x) = 3x + 2, what is f(4)?"

    def test_question_number_before_topic(self):
        result = extract_topic("3. Quadratic equations What are the roots of x^2 - 4 = 0?")

        assert result.topic == "Quadratic equations"
        assert result.text == "What are the roots of x^2 - 4 = 0?"

    def test_longest_topic_wins(self):
        result = extract_topic("Linear equations in two variables: Solve for y.")

        assert result.topic == "Linear equations in two variables"
        assert result.text == "Solve for y."

    def test_normalized_match(self):
        result = extract_topic("Lines angles, and triangles - In the figure, what is x?")

        assert result.topic == "Lines, angles, and triangles"
        assert result.text == "In the figure, what is x?"

    def test_existing_topic_repeated_in_text(self):
        result = extract_topic("Geometry stuff. Circles: Find the area.", existing_topic="Geometry stuff")

        assert result.changed
        assert result.topic == "Geometry stuff - Circles"
        assert result.text == "Find the area."

    def test_word_prefix_is_not_a_topic(self):
        result = extract_topic("Algebraic expressions can be simplified. Which is equivalent?")

        assert not result.changed
        assert result.text == "Algebraic expressions can be simplified. Which is equivalent?"

    def test_no_topic_leaves_text_alone(self):
        result = extract_topic("1. What is 2 + 2?", existing_topic="Arithmetic")

        assert not result.changed
        assert result.topic == "Arithmetic"
        assert result.text == "1. What is 2 + 2?"

    def test_topic_only_text_is_kept(self):
        result = extract_topic("Circles")

        assert not result.changed
        assert result.text == "Circles"


class TestFixDoubleWrapping:

    def test_nested_delimiters(self):
        assert fix_double_wrapping("\\(\\( x^2 \\)\\)") == "\\( x^2 \\)"

    def test_spaced_typos(self):
        assert fix_double_wrapping("\\ (x\\ )") == "\\(x\\)"

    def test_triple_nesting(self):
        assert fix_double_wrapping("\\( \\( \\( y \\) \\) \\)") == "\\( y \\)"

    def test_empty(self):
        assert fix_double_wrapping("") == ""
        assert fix_double_wrapping(None) is None


class TestSplitClumpedOptions:

    def test_single_clumped_string(self):
        assert split_clumped_options(["A) 2 B) 4 C) 6 D) 8"]) == ["2", "4", "6", "8"]

    def test_dot_and_parenthesized_markers(self):
        assert split_clumped_options(["(A) red (B) blue", "C. green D. yellow"]) == ["red", "blue", "green", "yellow"]

    def test_latex_text_markers(self):
        options = ["\\(\\text{A)}\\) 12 \\(\\text{B)}\\) 15 \\(\\text{C)}\\) 18"]

        assert split_clumped_options(options) == ["12", "15", "18"]

    def test_leading_unmarked_text_is_option_a(self):
        assert split_clumped_options(["first choice B) second C) third"]) == ["first choice", "second", "third"]

    def test_clean_options_are_left_alone(self):
        assert split_clumped_options(["2", "4", "6", "8"]) is None

    @pytest.mark.parametrize("options", [
        ["Plan A: save", "Plan B: spend", "Plan C: invest", "Plan D: wait"],
        ["12", "Choice B. is wrong", "18", "24"],
    ])
    def test_four_stored_options_with_letters_are_left_alone(self, options):
        assert split_clumped_options(options) is None

    def test_never_returns_fewer_options_than_stored(self):
        assert split_clumped_options(["A) 1 B) 2", "x", "y"]) is None

    def test_one_clumped_entry_among_four(self):
        assert split_clumped_options(["A) 1 B) 2 C) 3 D) 4", "", "", ""]) == ["1", "2", "3", "4"]

    def test_single_marker_is_not_enough(self):
        assert split_clumped_options(["A) only one"]) is None

    def test_empty(self):
        assert split_clumped_options([]) is None
        assert split_clumped_options(None) is None


class TestCleanExplanation:

    def test_drops_generic_lines(self):
        text = (
            "Choice B is correct because 2x = 8 gives x = 4.\n"
            "Choice A is incorrect.\n"
            "Choice C is incorrect and may result from a sign error.\n"
            "Choice D is wrong: it doubles the slope."
        )

        assert clean_explanation(text) == (
            "Choice B is correct because 2x = 8 gives x = 4.\n"
            "Choice D is wrong: it doubles the slope."
        )

    def test_short_reasoned_line_is_kept(self):
        assert clean_explanation("Correct, since x = 4.") == "Correct, since x = 4."

    def test_empty(self):
        assert clean_explanation("") == ""
        assert clean_explanation(None) is None
