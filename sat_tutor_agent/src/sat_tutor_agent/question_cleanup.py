"""
Question text cleanup helpers.

Imported questions often carry their topic label glued to the front of the
question text ("Algebra, Linear functions: If f(x) = ...") and sometimes all
four answer choices packed into one option string. These helpers detect and
undo both. They are pure functions; scripts/ applies them to the database.
"""

import re
from dataclasses import dataclass
from typing import List, Optional

SAT_TOPICS = sorted([
    "Craft and Structure", "Information and Ideas", "Standard English Conventions",
    "Expression of Ideas", "Words in Context", "Command of Evidence", "Inferences",
    "Central Ideas and Details", "Text Structure", "Purpose", "Algebra", "Advanced Math",
    "Linear equations in one variable", "Linear equations in two variables", "Linear functions",
    "Systems of two linear equations", "Linear inequalities", "Nonlinear functions",
    "Quadratic equations", "Exponential functions", "Polynomials", "Radicals",
    "Rational exponents", "Problem-Solving and Data Analysis",
    "Ratios, rates, proportional relationships", "Percentages", "One-variable data",
    "Two-variable data", "Probability", "Conditional probability",
    "Inference from sample statistics", "Evaluating statistical claims",
    "Geometry and Trigonometry", "Geometry & Trigonometry", "Area and volume",
    "Lines, angles, and triangles", "Right triangles and trigonometry", "Circles",
    "Equivalent expressions",
    "Nonlinear equations in one variable and systems of equations in two variables",
    "in two variables", "in one variable",
    "Ratios rates proportional relationships and units", "Two-variable data: models and scatterplots",
    "Ratios, rates, proportional relationships and units",
    "Problem Solving & Data Analysis", "Systems of two linear equations in two variables",
    "Lines angles and triangles", "in one or two variables",
], key=len, reverse=True)

_MATH_DELIMITERS = re.compile(r"\\\(|\\\)|\\\[|\\\]")
_SEPARATORS = re.compile(r"[,\s.:-]+")
_LEADING_SEPARATORS = re.compile(r"^[,\s.:-]+")
_QUESTION_NUMBER = re.compile(r"^(\d+[.)\s]|Q\.?\d+[:.)]?|Question\s*\d+[:.)]?)\s*", re.IGNORECASE)
_TOPIC_HEADER = re.compile(r"^\*\*Topic:\s*([^*]+)\*\*\s*\n\n(.+)$", re.DOTALL)

# \text{A)} (optionally inside \( \)), (A), or A) / A. / A: followed by whitespace
_OPTION_MARKER = re.compile(
    r"((?:\\\()?\s*\\text\{\s*[A-D]\s*[).:-]*\s*\}\s*(?:\\\))?"
    r"|\([A-D]\)"
    r"|(?<![A-Za-z0-9\\])[A-D][).:](?=\s|$))"
)

_GENERIC_EXPLANATION = (
    re.compile(r"^Choice\s+[A-E]\s+is\s+(incorrect|correct)\s+(and\s+may\s+result\s+from|This\s+is\s+the\s+value\s+of)", re.IGNORECASE),
    re.compile(r"^Choice\s+[A-E]\s+is\s+incorrect\.?$", re.IGNORECASE),
)
_REASONING_WORDS = re.compile(r"\b(because|since|as|therefore|thus)\b", re.IGNORECASE)


@dataclass
class TopicExtraction:
    topic: Optional[str]
    text: str
    changed: bool


def normalize_for_topic(text: Optional[str]) -> str:
    """Lower-case, drop math delimiters and collapse separators for topic comparison."""
    if not text:
        return ""
    text = _MATH_DELIMITERS.sub("", text).replace("&", "and")
    return _SEPARATORS.sub(" ", text).strip().lower()


def strip_question_number(text: str) -> str:
    """Remove a leading "1.", "2)", "Q3:" or "Question 4)" label."""
    return _QUESTION_NUMBER.sub("", text, count=1)


def _strip_separators(text: str) -> str:
    return _LEADING_SEPARATORS.sub("", text).strip()


def _starts_with_topic(text: str, topic: str) -> bool:
    norm_text = normalize_for_topic(text)
    norm_topic = normalize_for_topic(topic)
    return bool(norm_topic) and (norm_text == norm_topic or norm_text.startswith(norm_topic + " "))


def _cut_topic(text: str, topic: str) -> Optional[str]:
    """
    Remove `topic` from the front of `text`, comparing normalized forms.

    Returns the remainder, or None if the normalized prefix never lines up
    with the topic.
    """
    norm_topic = normalize_for_topic(topic)
    for i in range(1, len(text) + 1):
        norm_prefix = normalize_for_topic(text[:i])
        if norm_prefix == norm_topic:
            return _strip_separators(text[i:])
        if len(norm_prefix) > len(norm_topic):
            break
    return None


def _find_topic(text: str, exclude: Optional[str] = None) -> Optional[str]:
    for topic in SAT_TOPICS:
        if topic != exclude and _starts_with_topic(text, topic):
            return topic
    return None


def extract_topic(text: Optional[str], existing_topic: Optional[str] = None) -> TopicExtraction:
    """
    Split a topic label off the front of question text.

    Recognizes a "**Topic: X**" markdown header, a known SAT topic (plus an
    optional sub-topic, combined as "Main - Sub"), and the question's existing
    topic repeated in its text. The text is returned unchanged when nothing
    matches or when removing the label would leave no question.
    """
    unchanged = TopicExtraction(topic=existing_topic, text=text or "", changed=False)
    if not text:
        return unchanged

    header = _TOPIC_HEADER.match(text.strip())
    if header:
        return TopicExtraction(topic=header.group(1).strip(), text=header.group(2).strip(), changed=True)

    body = _strip_separators(strip_question_number(text.strip()))
    topic = existing_topic

    main = _find_topic(body)
    if main:
        remainder = _cut_topic(body, main)
        if remainder is None:
            return unchanged
        topic = main
        sub = _find_topic(remainder, exclude=main)
        if sub:
            sub_remainder = _cut_topic(remainder, sub)
            if sub_remainder is not None:
                topic = f"{main} - {sub}"
                remainder = sub_remainder
    elif existing_topic and _starts_with_topic(body, existing_topic):
        remainder = _cut_topic(body, existing_topic)
        if remainder is None:
            return unchanged
        sub = _find_topic(remainder, exclude=existing_topic)
        if sub:
            sub_remainder = _cut_topic(remainder, sub)
            if sub_remainder is not None:
                remainder = sub_remainder
                if sub.lower() not in existing_topic.lower():
                    topic = f"{existing_topic} - {sub}"
    else:
        return unchanged

    if not remainder:
        return unchanged

    return TopicExtraction(topic=topic, text=remainder, changed=(remainder != text or topic != existing_topic))


def fix_double_wrapping(text: Optional[str]) -> Optional[str]:
    """Collapse "\\( \\(" / "\\) \\)" pairs and fix "\\ (" typos."""
    if not text:
        return text

    text = text.replace("\\ (", "\\(").replace("\\ )", "\\)")
    while True:
        collapsed = re.sub(r"\\\(\s*\\\(", r"\\(", text)
        collapsed = re.sub(r"\\\)\s*\\\)", r"\\)", collapsed)
        if collapsed == text:
            return collapsed
        text = collapsed


def _marker_letters(text: str) -> set:
    return {re.search(r"[A-D]", m).group(0) for m in _OPTION_MARKER.findall(text)}


def is_clumped(options: List[str]) -> bool:
    """Fewer than four options, or one option carrying two or more lettered markers."""
    present = [o for o in options if o]
    return len(present) < 4 or any(len(_marker_letters(o)) >= 2 for o in present)


def split_clumped_options(options: Optional[List[str]]) -> Optional[List[str]]:
    """
    Re-split answer choices that were stored as one string.

    ["A) 2 B) 4 C) 6 D) 8"] -> ["2", "4", "6", "8"]

    Only clumped lists are touched. Returns the split options when at least
    two were recovered and no fewer than were stored, else None.
    """
    if not options or not is_clumped(options):
        return None

    joined = " ".join(o for o in options if o)
    parts = _OPTION_MARKER.split(joined)
    if len(parts) < 2:
        return None

    slots = ["", "", "", ""]
    if len(parts[0].strip()) > 1:
        slots[0] = parts[0].strip()

    for j in range(1, len(parts), 2):
        letter = re.search(r"[A-D]", parts[j])
        content = parts[j + 1].strip() if j + 1 < len(parts) else ""
        if letter and content:
            slots[ord(letter.group(0)) - ord("A")] = content

    found = [s for s in slots if s]
    if len(found) < max(2, len([o for o in options if o])):
        return None
    return found


def _is_generic_line(line: str) -> bool:
    line = line.strip()
    if any(p.search(line) for p in _GENERIC_EXPLANATION):
        return True
    lowered = line.lower()
    return len(line) < 30 and "correct" in lowered and not _REASONING_WORDS.search(line)


def clean_explanation(text: Optional[str]) -> Optional[str]:
    """Drop boilerplate lines such as "Choice B is incorrect."."""
    if not text:
        return text
    kept = [line for line in text.split("\n") if not _is_generic_line(line)]
    return "\n".join(kept).strip()
