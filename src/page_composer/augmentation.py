from __future__ import annotations

import logging
from typing import Any, Mapping, Protocol, Sequence

from pydantic import BaseModel, Field

from .interpreter import CommandInterpreter
from .models.edit import ChatInterpretation, Intent, Transform
from .models.section import SectionNode

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE_THRESHOLD = 0.6


class SuggestedIntent(BaseModel):
    intent: str
    params: Mapping[str, Any] = Field(default_factory=dict)


class ExternalSuggestion(BaseModel):
    intents: Sequence[SuggestedIntent] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    reasoning: str | None = None


class ExternalInterpreter(Protocol):
    def suggest(self, command: str, sections: Sequence[SectionNode]) -> ExternalSuggestion:
        ...


class AugmentedInterpreter:
    """Deterministic interpreter with an optional external fallback.

    The external interpreter is asked only when the deterministic rules
    recognise nothing or recognise something with low confidence, and its
    answer is used only above ``confidence_threshold``. Its intents are
    built by the deterministic builders, so it can never produce a
    transform the rule table could not.
    """

    def __init__(
        self,
        base: CommandInterpreter,
        external: ExternalInterpreter | None = None,
        *,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
    ) -> None:
        self._base = base
        self._external = external
        self._threshold = confidence_threshold

    def interpret(self, command: str, sections: Sequence[SectionNode]) -> ChatInterpretation:
        result = self._base.interpret(command, sections)
        if self._external is None:
            return result
        if result.intents and result.confidence >= self._threshold:
            return result

        try:
            suggestion = self._external.suggest(command, sections)
        except Exception as exc:
            logger.warning(
                "External interpreter failed; keeping deterministic result",
                exc_info=True,
                extra={"error": str(exc)},
            )
            return result.model_copy(
                update={"warnings": [*result.warnings, "External interpreter unavailable."]}
            )

        if suggestion.confidence < self._threshold or not suggestion.intents:
            logger.info(
                "External suggestion below threshold",
                extra={"confidence": suggestion.confidence, "threshold": self._threshold},
            )
            return result

        transforms: list[Transform] = []
        intents: list[Intent] = []
        warnings: list[str] = []
        for suggested in suggestion.intents:
            built = self._base.build_intent(
                suggested.intent,
                suggested.params,
                sections,
                confidence=suggestion.confidence,
            )
            transforms.extend(built.transforms)
            intents.extend(built.intents)
            warnings.extend(built.warnings)

        if not intents:
            return result.model_copy(update={"warnings": [*result.warnings, *warnings]})

        logger.info(
            "Used external interpretation",
            extra={
                "intents": [intent.label for intent in intents],
                "confidence": suggestion.confidence,
                "reasoning": suggestion.reasoning,
            },
        )
        return ChatInterpretation(transforms=transforms, intents=intents, warnings=warnings)


__all__ = [
    "AugmentedInterpreter",
    "ExternalInterpreter",
    "ExternalSuggestion",
    "SuggestedIntent",
]
