"""
Prompt construction for hint generation.
"""

from __future__ import annotations

import html
import re
from typing import Optional

from .schemas import ProblemData

_TAG_RE = re.compile(r"<[^>]*>")
_SPACE_RE = re.compile(r"\s+")
_APPROACH_RE = re.compile(r"#{2,3} (?:Approach|Solution)[^#]*", re.IGNORECASE)

MAX_STATEMENT_CHARS = 1000
MAX_APPROACH_CHARS = 500


def clean_html(text: str) -> str:
    text = _TAG_RE.sub(" ", text or "")
    text = html.unescape(text).replace("\xa0", " ")
    return _SPACE_RE.sub(" ", text).strip()


def extract_approach(solution: Optional[dict]) -> str:
    """Pull the approach section out of an official solution, leaving the code behind."""
    if not solution or not solution.get("body"):
        return ""
    match = _APPROACH_RE.search(solution["body"])
    if not match:
        return ""
    return clean_html(match.group(0))[:MAX_APPROACH_CHARS]


def build_hint_prompt(problem: ProblemData) -> str:
    topics = ", ".join(t.name for t in problem.topic_tags) or "Not specified"
    native_hints = "\n".join(problem.hints) or "No native hints available"
    statement = clean_html(problem.content)[:MAX_STATEMENT_CHARS]
    approach = extract_approach(problem.solution)
    approach_block = f"\nSolution approach reference:\n{approach}\n" if approach else ""

    return f"""You are a competitive programming mentor. Write exactly 3 progressive hints
for the problem below.

Rules:
1. Guide the student towards the solution without giving it away.
2. Each hint is more specific than the one before it.
3. No code and no pseudocode.
4. Do not name the final algorithm in the first hint.
5. Hint 1 points at the key observation or pattern.
6. Hint 2 suggests the data structure or technique to consider.
7. Hint 3 gives the key insight needed to implement it, not the implementation.
8. At most 3 sentences per hint, in an encouraging tone.

Problem: {problem.title}
Difficulty: {problem.difficulty}
Topics: {topics}

Statement (summary):
{statement}

Hints published with the problem:
{native_hints}
{approach_block}
Answer with this JSON object and nothing else:
{{"hint1": "...", "hint2": "...", "hint3": "..."}}"""
