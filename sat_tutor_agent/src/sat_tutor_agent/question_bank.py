"""
Practice Question Source

Hand-authored SAT-style questions used by the practice loop before it falls
back to asking the LLM to write questions.

Lookup is plain keyword/substring matching: no index, no stemming, no ranking.
"""

import random
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Tuple


@dataclass(frozen=True)
class PracticeQuestion:
    """Static question table entry."""
    id: str
    topic: str
    tags: FrozenSet[str]
    difficulty: str  # Easy | Medium | Hard
    text: str
    options: Tuple[str, str, str, str]
    correct_answer: str
    explanation: str


def _q(id, topic, tags, difficulty, text, options, correct_answer, explanation) -> PracticeQuestion:
    return PracticeQuestion(
        id=id,
        topic=topic,
        tags=frozenset(tags),
        difficulty=difficulty,
        text=text,
        options=tuple(options),
        correct_answer=correct_answer,
        explanation=explanation,
    )


SAT_QUESTION_BANK: Tuple[PracticeQuestion, ...] = (
    # --- Algebra: linear equations & systems ---
    _q(
        "alg_001", "Linear Equations", ["algebra", "linear", "systems", "no solution"], "Hard",
        "For which value of **k** will the system of equations \\(kx - 3y = 4\\) and "
        "\\(4x - 5y = 7\\) have no solution?",
        ["2.4", "3.2", "1.5", "2.0"], "A",
        "For a system to have no solution, the lines must be parallel (same slope, different "
        "y-intercept).\n1) \\(kx - 3y = 4 \\rightarrow y = \\frac{k}{3}x - \\frac{4}{3}\\), so the "
        "slope is \\(\\frac{k}{3}\\).\n2) \\(4x - 5y = 7 \\rightarrow y = \\frac{4}{5}x - \\frac{7}{5}\\), "
        "so the slope is \\(\\frac{4}{5}\\).\nSet the slopes equal: \\(\\frac{k}{3} = \\frac{4}{5} "
        "\\rightarrow k = 2.4\\).",
    ),
    _q(
        "alg_002", "Linear Equations", ["algebra", "linear", "constants", "perpendicular"], "Medium",
        "The equation \\(ax + 3y = 6\\) has a graph in the xy-plane that is perpendicular to the "
        "graph of the equation \\(2x + 6y = 8\\). What is the value of **a**?",
        ["-9", "9", "-1", "1"], "A",
        "The second line is \\(y = -\\frac{1}{3}x + \\frac{4}{3}\\), slope \\(-\\frac{1}{3}\\). "
        "A perpendicular line has slope 3. The first line is \\(y = -\\frac{a}{3}x + 2\\), so "
        "\\(-\\frac{a}{3} = 3 \\rightarrow a = -9\\).",
    ),
    _q(
        "alg_003", "Linear Equations", ["algebra", "linear", "solving"], "Easy",
        "If \\(3x + 15 = 33\\), what is the value of \\(x + 5\\)?",
        ["6", "10", "11", "33"], "C",
        "Solve for x: \\(3x = 18 \\rightarrow x = 6\\). Then \\(x + 5 = 11\\).",
    ),
    _q(
        "alg_004", "Linear Inequalities", ["algebra", "linear", "inequalities", "word problem"], "Medium",
        "A delivery van can carry at most 1,200 pounds. The driver weighs 180 pounds and each "
        "package weighs 34 pounds. What is the greatest number of packages the van can carry "
        "with the driver on board?",
        ["29", "30", "31", "35"], "B",
        "Write \\(180 + 34p \\le 1200\\), so \\(34p \\le 1020\\) and \\(p \\le 30\\). The greatest "
        "whole number of packages is 30.",
    ),
    # --- Advanced math: nonlinear ---
    _q(
        "adv_001", "Circle Equations", ["advanced math", "circles", "completing the square"], "Hard",
        "The equation \\(x^2 + y^2 - 6x + 8y = 56\\) represents a circle in the xy-plane. What is "
        "the length of the radius of the circle?",
        ["6", "8", "9", "81"], "C",
        "Complete the square: \\((x - 3)^2 + (y + 4)^2 = 56 + 9 + 16 = 81\\). So \\(r^2 = 81\\) "
        "and \\(r = 9\\).",
    ),
    _q(
        "adv_002", "Exponentials", ["advanced math", "functions", "exponential"], "Medium",
        "If \\(3^{(x-2)} = 81\\), what is the value of **x**?",
        ["4", "5", "6", "2"], "C",
        "\\(81 = 3^4\\), so \\(x - 2 = 4\\) and \\(x = 6\\).",
    ),
    _q(
        "adv_003", "Quadratic Equations", ["advanced math", "quadratics", "discriminant"], "Hard",
        "For what value of **c** does the equation \\(2x^2 - 12x + c = 0\\) have exactly one real "
        "solution?",
        ["6", "12", "18", "36"], "C",
        "Exactly one real solution means the discriminant is zero: \\((-12)^2 - 4(2)(c) = 0\\), "
        "so \\(144 = 8c\\) and \\(c = 18\\).",
    ),
    _q(
        "adv_004", "Quadratic Equations", ["advanced math", "quadratics", "factoring"], "Easy",
        "What are the solutions to \\(x^2 - 5x + 6 = 0\\)?",
        ["1 and 6", "2 and 3", "-2 and -3", "-1 and 6"], "B",
        "Factor: \\((x - 2)(x - 3) = 0\\), so \\(x = 2\\) or \\(x = 3\\).",
    ),
    # --- Trigonometry (no Easy entries) ---
    _q(
        "trig_001", "Trigonometry", ["trigonometry", "geometry", "sine/cosine"], "Medium",
        "In a right triangle, the sine of angle \\(x^\\circ\\) is \\(\\frac{4}{5}\\). What is the "
        "cosine of angle \\((90 - x)^\\circ\\)?",
        ["4/5", "3/5", "5/4", "3/4"], "A",
        "Co-function identity: \\(\\sin(x) = \\cos(90 - x)\\), so the cosine is \\(\\frac{4}{5}\\).",
    ),
    _q(
        "trig_002", "Trigonometry", ["trigonometry", "radians", "unit circle"], "Hard",
        "What is the value of \\(\\sin(\\frac{5\\pi}{6})\\)?",
        ["-1/2", "1/2", "root(3)/2", "-root(3)/2"], "B",
        "\\(\\frac{5\\pi}{6}\\) is \\(150^\\circ\\), in Quadrant II where sine is positive. The "
        "reference angle is \\(30^\\circ\\), so the value is \\(\\frac{1}{2}\\).",
    ),
    _q(
        "trig_003", "Trigonometry", ["trigonometry", "triangles", "SOH CAH TOA"], "Medium",
        "In right triangle ABC, angle C is the right angle, \\(AC = 12\\), and \\(\\tan(A) = "
        "\\frac{5}{12}\\). What is \\(\\sin(B)\\)?",
        ["5/13", "12/13", "5/12", "13/12"], "B",
        "\\(\\tan(A) = \\frac{BC}{AC} = \\frac{5}{12}\\), so \\(BC = 5\\) and the hypotenuse "
        "\\(AB = 13\\). \\(\\sin(B) = \\frac{AC}{AB} = \\frac{12}{13}\\).",
    ),
    # --- Problem solving & data analysis ---
    _q(
        "data_001", "Problem Solving", ["percentages", "ratios", "data"], "Easy",
        "Before a 20% discount, a jacket costs \\(d\\) dollars. If the discounted price is $160, "
        "what is the value of \\(d\\)?",
        ["180", "192", "200", "320"], "C",
        "The discounted price is 80% of the original: \\(0.80d = 160\\), so \\(d = 200\\).",
    ),
    _q(
        "data_002", "Probability", ["probability", "data", "two-way table"], "Medium",
        "In a survey of 200 students, 120 play a sport and 45 of those also play an instrument. "
        "If a student who plays a sport is chosen at random, what is the probability that the "
        "student also plays an instrument?",
        ["9/40", "3/8", "9/25", "5/8"], "B",
        "Restrict to the 120 sport players: \\(\\frac{45}{120} = \\frac{3}{8}\\).",
    ),
    # --- Geometry ---
    _q(
        "geo_001", "Geometry", ["geometry", "circles", "arc length"], "Medium",
        "Points A and B lie on a circle with radius 4. If the measure of arc AB is "
        "\\(\\frac{\\pi}{3}\\) radians, what is the length of arc AB?",
        ["4pi/3", "8pi/3", "2pi", "4pi"], "A",
        "Arc length \\(s = r\\theta = 4 \\times \\frac{\\pi}{3} = \\frac{4\\pi}{3}\\).",
    ),
    _q(
        "geo_002", "Geometry", ["geometry", "lines", "angles"], "Easy",
        "Line \\(L\\) and line \\(M\\) intersect at a point. If one of the angles formed is "
        "\\(40^\\circ\\), what is the measure of the angle vertically opposite to it?",
        ["40", "50", "140", "90"], "A",
        "Vertically opposite angles are equal, so the angle is \\(40^\\circ\\).",
    ),
    # --- English: reading & writing ---
    _q(
        "eng_001", "Words in Context", ["english", "reading", "vocabulary", "context"], "Medium",
        "In the 19th century, the *Transcendentalists* believed that society and its "
        "institutions, particularly organized religion and political parties, ultimately "
        "corrupted the purity of the individual. In this context, \"corrupted\" most nearly means:",
        ["improved", "spoiled", "ignored", "mimicked"], "B",
        "**Spoiled** fits: the text contrasts 'corrupted' with 'purity', suggesting a tainting. "
        "'Improved' is the opposite; 'ignored' and 'mimicked' do not describe damage.",
    ),
    _q(
        "eng_002", "Standard English Conventions", ["english", "grammar", "punctuation", "boundaries"], "Hard",
        "The details of the pact were kept secret ______ no one outside the inner circle knew the "
        "terms until the final announcement.",
        ["secret, consequently,", "secret; consequently,", "secret: consequently", "secret consequently"], "B",
        "Two independent clauses joined by the conjunctive adverb 'consequently' need a semicolon "
        "before it and a comma after it.",
    ),
    _q(
        "eng_003", "Transitions", ["english", "writing", "transitions", "logic"], "Easy",
        "Beavers build dams to create deep ponds that protect them from predators. _______ these "
        "dams can help reduce flooding and recharge groundwater levels.",
        ["However,", "For example,", "Furthermore,", "Therefore,"], "C",
        "The second sentence adds another benefit, so the additive transition **Furthermore** "
        "is correct.",
    ),
    _q(
        "eng_004", "Central Ideas and Details", ["english", "reading", "main idea", "inference"], "Medium",
        "Researchers long assumed that octopuses, being solitary, had little need for complex "
        "social cognition. Recent field studies, however, document octopuses recognizing "
        "individual humans and adjusting their behavior toward them. Which choice best states "
        "the main idea of the text?",
        [
            "Octopuses prefer the company of humans to other octopuses.",
            "New observations challenge an earlier assumption about octopus cognition.",
            "Field studies are less reliable than laboratory studies.",
            "Solitary animals cannot recognize individuals.",
        ], "B",
        "The text sets up an old assumption and then presents evidence against it, so the main "
        "idea is that new observations challenge that assumption.",
    ),
)

STOP_WORDS = frozenset(["quiz", "practice", "questions", "test", "give", "easy", "hard", "medium", "want"])


def _tokenize(query: str) -> List[str]:
    return [t for t in query.lower().split() if len(t) > 2 and t not in STOP_WORDS]


def _matches(question: PracticeQuestion, token: str) -> bool:
    return (
        token in question.topic.lower()
        or any(token in tag.lower() for tag in question.tags)
        or token in question.text.lower()
    )


def search_questions(
    query: str,
    limit: int = 5,
    difficulty: str = "Medium",
    rng: Optional[random.Random] = None,
    bank: Tuple[PracticeQuestion, ...] = SAT_QUESTION_BANK,
) -> List[PracticeQuestion]:
    """
    Fuzzy keyword lookup over the static question table.

    1. Tokens of length <= 2 and stop words are dropped.
    2. No tokens left: random sample from the whole table.
    3. Otherwise any token matching topic, a tag or the text keeps an entry.
    4. Nothing matched and the query mentions "math": use the whole table.
    5. Difficulty is a soft filter, applied only if it leaves something.
    6. Shuffle and truncate to `limit`.
    """
    rng = rng or random.Random()
    limit = max(0, limit)
    tokens = _tokenize(query)

    if not tokens:
        return rng.sample(list(bank), min(limit, len(bank)))

    matches = [q for q in bank if any(_matches(q, t) for t in tokens)]

    if not matches and "math" in query.lower():
        matches = list(bank)

    wanted = (difficulty or "").lower()
    same_difficulty = [q for q in matches if q.difficulty.lower() == wanted]
    if same_difficulty:
        matches = same_difficulty

    rng.shuffle(matches)
    return matches[:limit]
