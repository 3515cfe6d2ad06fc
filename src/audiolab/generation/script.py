"""Multi-speaker SSML dialogue generation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from audiolab.generation.llm import LLMError, TextGenerator

logger = logging.getLogger(__name__)

MAX_TURNS = 10
TOKENS_PER_TURN = 512
NARRATOR_TOKENS = 256
NARRATOR_EXCERPT_CHARS = 2000
PERSONA_EXCERPT_CHARS = 5000

SSML_OPEN = (
    '<speak xmlns="http://www.w3.org/2001/10/synthesis" '
    'xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
    'xsi:schemaLocation="http://www.w3.org/WAI/TR/2018/wcag21/syn-speech-api#command">'
)
SSML_CLOSE = "</speak>"


@dataclass(frozen=True)
class GeneratedScript:
    content: str
    turns_completed: int
    truncated: bool

    def to_bytes(self) -> bytes:
        return self.content.encode("utf-8")


def narrator_prompt(article_text: str) -> str:
    return (
        "As a narrator, provide a brief introduction to a podcast episode based on the "
        "following article.\n"
        'The introduction should be in SSML format, enclosed in a <voice name="Narrator"> '
        "tag, and include <prosody> tags.\n"
        f"Article Text: {article_text[:NARRATOR_EXCERPT_CHARS]}\n"
    )


def persona_prompt(
    persona: str,
    article_text: str,
    history: Sequence[str],
    turn: int,
    max_turns: int = MAX_TURNS,
) -> str:
    history_text = "\n".join(history)
    return (
        f"You are {persona}. Based on the article text and the conversation so far, "
        "generate your next line of dialogue in SSML format.\n"
        f"Keep your response concise, within {TOKENS_PER_TURN} tokens, and relevant to "
        "the discussion.\n"
        f'Ensure your response is enclosed in a <voice name="{persona}"> tag and includes '
        "<prosody> tags for expressive speech.\n"
        f"Article Text: {article_text[:PERSONA_EXCERPT_CHARS]}\n"
        f"Conversation History:\n{history_text}\n"
        f"Your Turn ({turn}/{max_turns}):\n"
    )


class ScriptGenerator:
    """Alternates personas round-robin after a narrator introduction."""

    def __init__(self, llm: TextGenerator, max_turns: int = MAX_TURNS) -> None:
        self._llm = llm
        self._max_turns = max_turns

    async def generate(self, article_text: str, personas: Sequence[str]) -> GeneratedScript:
        if not personas:
            raise ValueError("At least one persona is required")

        parts: list[str] = [SSML_OPEN]
        history: list[str] = []

        intro = await self._narrate(article_text)
        if intro:
            parts.append(intro)
            history.append(intro)

        turns = 0
        for i in range(self._max_turns):
            persona = personas[i % len(personas)]
            line = await self._speak(persona, article_text, history, i + 1)
            if not line:
                logger.warning(
                    "Persona %s failed to generate a response. Ending conversation.", persona
                )
                break
            parts.append(line)
            history.append(line)
            turns += 1

        parts.append(SSML_CLOSE)
        return GeneratedScript(
            content="".join(parts),
            turns_completed=turns,
            truncated=turns < self._max_turns,
        )

    async def _narrate(self, article_text: str) -> str:
        try:
            return await self._llm.generate(narrator_prompt(article_text), NARRATOR_TOKENS)
        except LLMError as exc:
            # Continue without the intro.
            logger.error("Error generating narrator intro: %s", exc)
            return ""

    async def _speak(
        self,
        persona: str,
        article_text: str,
        history: Sequence[str],
        turn: int,
    ) -> str:
        prompt = persona_prompt(persona, article_text, history, turn, self._max_turns)
        logger.debug("Prompt for %s:\n%s", persona, prompt)
        try:
            return await self._llm.generate(prompt, TOKENS_PER_TURN)
        except LLMError as exc:
            logger.error("Error calling model for %s: %s", persona, exc)
            return ""
