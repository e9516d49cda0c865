from __future__ import annotations

from typing import Any, Iterable

from .models.content import Brand, SectionContent, Tone
from .models.section import SectionNode
from .registry import VariantDescriptor, VariantRegistry

EXACT_TONE = 2
ADJACENT_TONE = 1
NEUTRAL_TONE = 0


def next_section_id(kind: str, taken: Iterable[str]) -> str:
    """Smallest free ``"{kind}-{n}"`` id, so ids stay deterministic."""
    used = set(taken)
    index = 1
    while f"{kind}-{index}" in used:
        index += 1
    return f"{kind}-{index}"


def tone_fit(descriptor: VariantDescriptor, tone: Tone) -> tuple[int, float]:
    """Score a variant for ``tone`` as ``(tier, weight)``; higher is better."""
    tone = Tone(tone)
    affinity = descriptor.tone_affinity
    if tone in affinity:
        return EXACT_TONE, affinity[tone]
    adjacent = [affinity[neighbour] for neighbour in tone.neighbours() if neighbour in affinity]
    if adjacent:
        return ADJACENT_TONE, max(adjacent)
    return NEUTRAL_TONE, 0.0


class SectionSelector:
    def __init__(self, registry: VariantRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> VariantRegistry:
        return self._registry

    def rank(self, kind: str, tone: Tone) -> list[VariantDescriptor]:
        entries = self._registry.lookup(kind)
        indexed = list(enumerate(entries))
        # sorted() is stable, so equal scores keep registration order.
        indexed.sort(key=lambda pair: tuple(-value for value in tone_fit(pair[1], tone)))
        return [descriptor for _, descriptor in indexed]

    def best(self, kind: str, tone: Tone, *, rank: int = 0) -> VariantDescriptor:
        ranked = self.rank(kind, tone)
        return ranked[min(rank, len(ranked) - 1)]

    def select(
        self,
        kind: str,
        tone: Tone,
        brand: Brand,
        content: SectionContent | None,
        *,
        position: int = 0,
        rank: int = 0,
        section_id: str | None = None,
    ) -> SectionNode:
        descriptor = self.best(kind, tone, rank=rank)
        props = build_section_props(descriptor, tone, brand, content)
        return SectionNode(
            id=section_id or f"{kind}-{position + 1}",
            meta=descriptor.meta,
            props=props,
            position=position,
        )


def build_section_props(
    descriptor: VariantDescriptor,
    tone: Tone,
    brand: Brand | None,
    content: SectionContent | None,
) -> dict[str, Any]:
    """Merge variant defaults, then brand style tokens, then content."""
    props = descriptor.build_props()
    if brand is not None:
        props["style"].update(brand.style_tokens())
    props["tone"] = Tone(tone).value
    props["source"] = "defaults"
    if content is not None:
        props["content"].update(content.text_fields())
        props["actions"] = [action.model_dump(mode="json", exclude_none=True) for action in content.actions()]
        if content.image is not None:
            props["media"] = [content.image.model_dump(mode="json", exclude_none=True)]
        props["source"] = "content"
    return props


__all__ = ["SectionSelector", "build_section_props", "next_section_id", "tone_fit"]
