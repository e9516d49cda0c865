from __future__ import annotations

import json
import logging
from typing import Any, Sequence

from google import genai
from google.genai import types
from pydantic import ValidationError

from .augmentation import ExternalSuggestion
from .models.edit import IntentKind
from .models.section import SectionNode

logger = logging.getLogger(__name__)

INTENT_DESCRIPTIONS = {
    IntentKind.make_hero_dramatic: "Make the hero section bolder and more dramatic",
    IntentKind.increase_contrast: "Increase visual contrast across the page",
    IntentKind.add_social_proof: "Add a testimonials section",
    IntentKind.tighten_above_the_fold: "Remove clutter above the fold and lift the CTA",
    IntentKind.apply_theme: 'Apply a tone to the whole page; params {"tone": minimal|bold|playful|corporate}',
    IntentKind.optimize_for_conversion: "Ensure a bold CTA near the top",
    IntentKind.add_urgency_banner: 'Add an urgency banner at the top; params {"copy": str}',
    IntentKind.swap_variant: 'Swap a section layout; params {"kind": str, "variant": str}',
    IntentKind.reorder: 'Move a section; params {"kind": str, "relation": to|before|after, "anchor": str}',
    IntentKind.remove_section: 'Remove a section; params {"kind": str}',
    IntentKind.update_content: 'Change copy; params {"kind": str, "field": str, "value": str}',
}


def _strip_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    if text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


class GeminiInterpreter:
    """External command interpreter backed by a Gemini model."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model_name: str = "gemini-2.0-flash",
        temperature: float = 0.3,
        max_output_tokens: int = 512,
        client: Any = None,
    ) -> None:
        """Initialize the interpreter.

        Args:
            api_key: Gemini API key, used when no client is given
            model_name: Model name (e.g., "gemini-2.0-flash")
            temperature: Sampling temperature, kept low for repeatable answers
            max_output_tokens: Maximum output tokens
            client: Pre-built ``genai.Client``
        """
        self.model_name = model_name
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.client = client if client is not None else genai.Client(api_key=api_key)

    def suggest(self, command: str, sections: Sequence[SectionNode]) -> ExternalSuggestion:
        """Ask the model which intents ``command`` maps to.

        Args:
            command: The user's editing command
            sections: Current page sections

        Returns:
            Parsed suggestion; an empty, zero-confidence one if the reply
            cannot be parsed
        """
        response = self.client.models.generate_content(
            model=self.model_name,
            contents=self._build_prompt(command, sections),
            config=types.GenerateContentConfig(
                temperature=self.temperature,
                max_output_tokens=self.max_output_tokens,
            ),
        )
        raw = response.text or ""

        try:
            suggestion = ExternalSuggestion.model_validate(json.loads(_strip_fences(raw)))
        except (json.JSONDecodeError, ValidationError):
            logger.warning(
                "Failed to parse interpreter response",
                exc_info=True,
                extra={"response": raw},
            )
            return ExternalSuggestion(reasoning="Failed to parse model response")

        logger.info(
            "Interpreted command with Gemini",
            extra={
                "model": self.model_name,
                "intents": [item.intent for item in suggestion.intents],
                "confidence": suggestion.confidence,
            },
        )
        return suggestion

    def _build_prompt(self, command: str, sections: Sequence[SectionNode]) -> str:
        page = [
            {
                "kind": section.meta.kind,
                "variant": section.meta.variant,
                "tone": section.tone,
                "position": section.position,
            }
            for section in sections
        ]
        available = "\n".join(f"- {kind.value}: {text}" for kind, text in INTENT_DESCRIPTIONS.items())
        return f"""You translate website editing commands into structured intents.

Available intents:
{available}

Current page structure:
{json.dumps(page, ensure_ascii=False, indent=2)}

User command: "{command}"

Respond with JSON only, in this shape:
{{"intents": [{{"intent": "<name>", "params": {{}}}}], "confidence": 0.0, "reasoning": "<short explanation>"}}

Only use intents from the list. If the command does not clearly map to them,
return an empty "intents" list with low confidence.
"""


__all__ = ["GeminiInterpreter", "INTENT_DESCRIPTIONS"]
