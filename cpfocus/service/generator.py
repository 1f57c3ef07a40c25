"""
Hint generator — asks Gemini for three progressive hints.
"""

from __future__ import annotations

import json
import logging
import re
from typing import List, Protocol

import google.generativeai as genai

from ..config import config
from .prompts import build_hint_prompt
from .schemas import ProblemData

logger = logging.getLogger(__name__)

_JSON_RE = re.compile(r"\{[\s\S]*\}")


class HintGenerationError(RuntimeError):
    """The model call failed or returned something that is not three hints."""


class HintGenerator(Protocol):
    async def generate(self, problem: ProblemData) -> List[str]:
        ...


def parse_hints(text: str) -> List[str]:
    """Extract ``[hint1, hint2, hint3]`` from the first JSON object in *text*."""
    match = _JSON_RE.search(text or "")
    if not match:
        raise HintGenerationError("no JSON object in model response")
    try:
        parsed = json.loads(match.group(0))
    except ValueError as e:
        raise HintGenerationError(f"malformed JSON in model response: {e}") from e
    hints = [str(parsed.get(f"hint{i}", "")).strip() for i in (1, 2, 3)]
    if not all(hints):
        raise HintGenerationError("model response is missing hints")
    return hints


class GeminiHintGenerator:

    def __init__(self, api_key: str = "", model_name: str = ""):
        api_key = api_key or config.gemini_api_key
        if not api_key:
            logger.warning("no Gemini API key configured; hint generation will fail")
        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(model_name or config.gemini_model)

    async def generate(self, problem: ProblemData) -> List[str]:
        prompt = build_hint_prompt(problem)
        try:
            response = await self.model.generate_content_async(prompt)
            text = response.text
        except Exception as e:
            logger.error("Gemini API error for %s: %s", problem.title or problem.title_slug, e)
            raise HintGenerationError(str(e)) from e
        return parse_hints(text)
