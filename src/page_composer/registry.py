from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Literal, Mapping, Sequence

from .errors import UnknownKindError
from .models.content import Tone
from .models.section import SectionMeta


@dataclass(frozen=True)
class VariantDescriptor:
    kind: str
    variant: str
    name: str
    description: str
    tone_affinity: Mapping[Tone, float]
    layout: Mapping[str, Any] = field(default_factory=dict)
    default_content: Mapping[str, Any] = field(default_factory=dict)
    default_style: Mapping[str, Any] = field(default_factory=dict)
    unique: bool = False
    priority: Literal["high", "normal", "low"] = "normal"
    estimated_size: Literal["xs", "sm", "md", "lg", "xl"] = "md"
    has_animations: bool = False

    @property
    def key(self) -> str:
        return f"{self.kind}-{self.variant}"

    @property
    def meta(self) -> SectionMeta:
        return SectionMeta(kind=self.kind, variant=self.variant, name=self.name)

    def build_props(self) -> dict[str, Any]:
        """Fresh default props; callers may mutate the result freely."""
        return {
            "layout": dict(self.layout),
            "content": copy.deepcopy(dict(self.default_content)),
            "style": dict(self.default_style),
            "actions": [],
            "media": [],
        }


class VariantRegistry:
    """Immutable catalogue of section variants, grouped by kind.

    Registration order is significant: it is the final tie-breaker when the
    selector ranks variants, so it must stay stable between runs.
    """

    def __init__(self, descriptors: Iterable[VariantDescriptor] = ()) -> None:
        ordered: list[VariantDescriptor] = []
        by_kind: dict[str, list[VariantDescriptor]] = {}
        seen: set[str] = set()
        for descriptor in descriptors:
            if descriptor.key in seen:
                raise ValueError(f"Variant registered twice: {descriptor.key}")
            seen.add(descriptor.key)
            ordered.append(descriptor)
            by_kind.setdefault(descriptor.kind, []).append(descriptor)
        self._descriptors: tuple[VariantDescriptor, ...] = tuple(ordered)
        self._by_kind: dict[str, tuple[VariantDescriptor, ...]] = {
            kind: tuple(entries) for kind, entries in by_kind.items()
        }

    def lookup(self, kind: str) -> tuple[VariantDescriptor, ...]:
        entries = self._by_kind.get(kind)
        if not entries:
            raise UnknownKindError(kind)
        return entries

    def get(self, kind: str, variant: str) -> VariantDescriptor | None:
        for descriptor in self._by_kind.get(kind, ()):
            if descriptor.variant == variant:
                return descriptor
        return None

    def has_kind(self, kind: str) -> bool:
        return kind in self._by_kind

    def kinds(self) -> list[str]:
        return list(self._by_kind)

    def is_unique(self, kind: str) -> bool:
        return any(descriptor.unique for descriptor in self._by_kind.get(kind, ()))

    def priority(self, kind: str) -> str:
        entries = self._by_kind.get(kind)
        if not entries:
            return "normal"
        return entries[0].priority

    def register(self, *descriptors: VariantDescriptor) -> "VariantRegistry":
        return VariantRegistry((*self._descriptors, *descriptors))

    def without_kind(self, kind: str) -> "VariantRegistry":
        return VariantRegistry(d for d in self._descriptors if d.kind != kind)

    def __iter__(self) -> Iterator[VariantDescriptor]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, kind: object) -> bool:
        return kind in self._by_kind


_SAMPLE_QUOTES: Sequence[Mapping[str, str]] = (
    {"text": "We ship 3x faster.", "author": "Sarah C."},
    {"text": "Feels like magic.", "author": "Marcus J."},
)


DEFAULT_VARIANTS: Sequence[VariantDescriptor] = (
    VariantDescriptor(
        kind="hero",
        variant="split-image-left",
        name="Hero • Split Image Left",
        description="Split layout with content on the right and an image on the left.",
        tone_affinity={Tone.minimal: 0.6, Tone.corporate: 0.8},
        layout={"arrangement": "split", "media_side": "left"},
        default_content={"headline": "Welcome", "subheadline": "Discover what we can do for you"},
        unique=True,
        priority="high",
        estimated_size="lg",
    ),
    VariantDescriptor(
        kind="hero",
        variant="minimal",
        name="Hero • Minimal",
        description="Centred headline on a quiet background.",
        tone_affinity={Tone.minimal: 1.0},
        layout={"arrangement": "centered", "media_side": None},
        default_content={"headline": "Welcome"},
        unique=True,
        priority="high",
        estimated_size="sm",
    ),
    VariantDescriptor(
        kind="hero",
        variant="full-bleed",
        name="Hero • Full Bleed",
        description="Edge-to-edge imagery with an oversized headline.",
        tone_affinity={Tone.bold: 1.0, Tone.playful: 0.5},
        layout={"arrangement": "full-bleed", "overlay": "dark"},
        default_content={"headline": "Welcome"},
        default_style={"headline_scale": "display"},
        unique=True,
        priority="high",
        estimated_size="xl",
    ),
    VariantDescriptor(
        kind="hero",
        variant="animated-gradient",
        name="Hero • Animated Gradient",
        description="Gradient spotlight background with motion.",
        tone_affinity={Tone.playful: 1.0, Tone.bold: 0.7},
        layout={"arrangement": "centered", "background": "gradient"},
        default_content={"headline": "Welcome"},
        unique=True,
        priority="high",
        estimated_size="lg",
        has_animations=True,
    ),
    VariantDescriptor(
        kind="features",
        variant="cards-3up",
        name="Features • Cards (3-up)",
        description="Three feature cards in a responsive grid.",
        tone_affinity={Tone.corporate: 0.9, Tone.minimal: 0.7},
        layout={"columns": 3, "style": "cards"},
        default_content={"headline": "Features", "items": []},
    ),
    VariantDescriptor(
        kind="features",
        variant="icon-list",
        name="Features • Icon List",
        description="Vertical list of features with leading icons.",
        tone_affinity={Tone.minimal: 1.0},
        layout={"columns": 1, "style": "list"},
        default_content={"headline": "Features", "items": []},
        estimated_size="sm",
    ),
    VariantDescriptor(
        kind="features",
        variant="bento-grid",
        name="Features • Bento Grid",
        description="Asymmetric tiles of mixed sizes.",
        tone_affinity={Tone.bold: 0.9, Tone.playful: 1.0},
        layout={"columns": 4, "style": "bento"},
        default_content={"headline": "Features", "items": []},
        estimated_size="lg",
    ),
    VariantDescriptor(
        kind="about",
        variant="mission-values",
        name="About • Mission & Values",
        description="Mission statement followed by value cards.",
        tone_affinity={Tone.corporate: 1.0, Tone.minimal: 0.6},
        layout={"arrangement": "stacked"},
        default_content={"headline": "About us"},
        priority="low",
    ),
    VariantDescriptor(
        kind="about",
        variant="story-timeline",
        name="About • Story Timeline",
        description="Company history on a vertical timeline.",
        tone_affinity={Tone.playful: 0.8, Tone.bold: 0.6},
        layout={"arrangement": "timeline"},
        default_content={"headline": "Our story"},
        priority="low",
        estimated_size="lg",
    ),
    VariantDescriptor(
        kind="testimonials",
        variant="grid-2x2",
        name="Testimonials • Grid 2×2",
        description="Four quotes in a 2×2 grid with avatars.",
        tone_affinity={Tone.corporate: 0.9, Tone.minimal: 0.8, Tone.bold: 0.6},
        layout={"columns": 2, "rows": 2},
        default_content={"headline": "Loved by top teams", "quotes": list(_SAMPLE_QUOTES)},
    ),
    VariantDescriptor(
        kind="testimonials",
        variant="carousel",
        name="Testimonials • Carousel",
        description="One quote at a time with auto-advance.",
        tone_affinity={Tone.playful: 1.0, Tone.bold: 0.8},
        layout={"autoplay": True},
        default_content={"headline": "Loved by top teams", "quotes": list(_SAMPLE_QUOTES)},
        has_animations=True,
    ),
    VariantDescriptor(
        kind="pricing",
        variant="table-3-tier",
        name="Pricing • 3-Tier Table",
        description="Three plans side by side with a highlighted middle tier.",
        tone_affinity={Tone.corporate: 1.0, Tone.bold: 0.6},
        layout={"tiers": 3, "highlight": 1},
        default_content={"headline": "Pricing"},
        estimated_size="lg",
    ),
    VariantDescriptor(
        kind="faq",
        variant="accordion",
        name="FAQ • Accordion",
        description="Collapsible questions and answers.",
        tone_affinity={Tone.minimal: 0.9, Tone.corporate: 0.8},
        layout={"expand": "single"},
        default_content={"headline": "Frequently asked questions"},
        priority="low",
        estimated_size="sm",
    ),
    VariantDescriptor(
        kind="faq",
        variant="grid",
        name="FAQ • Grid",
        description="Questions laid out in two columns.",
        tone_affinity={Tone.playful: 0.7, Tone.bold: 0.6},
        layout={"columns": 2},
        default_content={"headline": "Frequently asked questions"},
        priority="low",
    ),
    VariantDescriptor(
        kind="cta",
        variant="gradient-slab",
        name="CTA • Gradient Slab",
        description="Full-width gradient background with a centred call to action.",
        tone_affinity={Tone.bold: 1.0, Tone.playful: 0.8},
        layout={"background": "gradient", "align": "center"},
        default_content={"headline": "Get started today"},
        priority="high",
        estimated_size="sm",
    ),
    VariantDescriptor(
        kind="cta",
        variant="simple",
        name="CTA • Simple",
        description="Plain headline with a single button.",
        tone_affinity={Tone.minimal: 1.0, Tone.corporate: 0.8},
        layout={"background": "plain", "align": "center"},
        default_content={"headline": "Get started today"},
        priority="high",
        estimated_size="xs",
    ),
    VariantDescriptor(
        kind="contact",
        variant="form-basic",
        name="Contact • Basic Form",
        description="Name, email and message fields.",
        tone_affinity={Tone.corporate: 0.8, Tone.minimal: 0.8},
        layout={"fields": ["name", "email", "message"]},
        default_content={"headline": "Contact us"},
        priority="low",
    ),
    VariantDescriptor(
        kind="footer",
        variant="mega",
        name="Footer • Mega",
        description="Five-column footer with headings and link lists.",
        tone_affinity={Tone.corporate: 1.0},
        layout={"columns": 5},
        default_content={"copyright": "All rights reserved."},
        unique=True,
        priority="low",
        estimated_size="sm",
    ),
    VariantDescriptor(
        kind="footer",
        variant="minimal",
        name="Footer • Minimal",
        description="Single row of legal links.",
        tone_affinity={Tone.minimal: 1.0, Tone.playful: 0.5},
        layout={"columns": 1},
        default_content={"copyright": "All rights reserved."},
        unique=True,
        priority="low",
        estimated_size="xs",
    ),
)


def default_registry() -> VariantRegistry:
    return VariantRegistry(DEFAULT_VARIANTS)


__all__ = [
    "VariantDescriptor",
    "VariantRegistry",
    "DEFAULT_VARIANTS",
    "default_registry",
]
