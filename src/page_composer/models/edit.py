from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field


PAGE_TARGET = "page"


class IntentKind(str, Enum):
    make_hero_dramatic = "makeHeroDramatic"
    increase_contrast = "increaseContrast"
    add_social_proof = "addSocialProof"
    tighten_above_the_fold = "tightenAboveTheFold"
    apply_theme = "applyTheme"
    optimize_for_conversion = "optimizeForConversion"
    add_urgency_banner = "addUrgencyBanner"
    swap_variant = "swapVariant"
    reorder = "reorder"
    remove_section = "removeSection"
    update_content = "updateContent"


class Intent(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: IntentKind
    detail: str | None = None
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)

    @property
    def label(self) -> str:
        if self.detail:
            return f"{self.kind.value}:{self.detail}"
        return self.kind.value


class Operation(str, Enum):
    set_tone = "set_tone"
    remap_tone = "remap_tone"
    swap_variant = "swap_variant"
    patch_content = "patch_content"
    patch_props = "patch_props"
    trim_list = "trim_list"
    insert_section = "insert_section"
    remove_section = "remove_section"
    move_section = "move_section"


class Transform(BaseModel):
    """A pure edit: ``operation`` applied to ``target`` with ``params``.

    ``target`` is a section id, a section kind, or ``"page"`` for every
    section.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    target: str = PAGE_TARGET
    operation: Operation
    params: Mapping[str, Any] = Field(default_factory=dict)


class ChatInterpretation(BaseModel):
    model_config = ConfigDict(frozen=True)

    transforms: Sequence[Transform] = Field(default_factory=list)
    intents: Sequence[Intent] = Field(default_factory=list)
    warnings: Sequence[str] = Field(default_factory=list)

    @property
    def intent_names(self) -> list[str]:
        return [intent.label for intent in self.intents]

    @property
    def confidence(self) -> float:
        if not self.intents:
            return 0.0
        return min(intent.confidence for intent in self.intents)


__all__ = [
    "PAGE_TARGET",
    "IntentKind",
    "Intent",
    "Operation",
    "Transform",
    "ChatInterpretation",
]
