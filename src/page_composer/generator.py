from __future__ import annotations

import logging
import time
from typing import Any, Mapping, Sequence

from pydantic import ValidationError

from .config import EngineSettings
from .errors import InvalidInputError, UnknownKindError
from .models.content import Brand, ContentGraph, Tone
from .models.section import (
    AuditFinding,
    GenerationResult,
    PageAudit,
    PageMeta,
    PageNode,
    SectionNode,
)
from .registry import VariantRegistry, default_registry
from .selector import SectionSelector, next_section_id

logger = logging.getLogger(__name__)

# Lower sorts earlier; kinds not listed sit in the middle in input order.
CANONICAL_PLACEMENT: Mapping[str, int] = {
    "hero": 0,
    "cta": 2,
    "footer": 3,
}
DEFAULT_PLACEMENT = 1

HEAVY_SIZES = frozenset({"lg", "xl"})


def resolve_order(kinds: Sequence[str]) -> list[str]:
    """Hero first, cta last (footer trails as page chrome), others as given."""
    return sorted(kinds, key=lambda kind: CANONICAL_PLACEMENT.get(kind, DEFAULT_PLACEMENT))


class PageComposer:
    def __init__(
        self,
        registry: VariantRegistry | None = None,
        *,
        alternate_count: int = 1,
    ) -> None:
        if alternate_count < 0:
            raise ValueError("alternate_count must not be negative")
        self._registry = registry if registry is not None else default_registry()
        self._selector = SectionSelector(self._registry)
        self._alternate_count = alternate_count

    @property
    def registry(self) -> VariantRegistry:
        return self._registry

    def generate(
        self,
        content: ContentGraph | Mapping[str, Any] | None,
        brand: Brand,
        tone: Tone | str,
        kinds: Sequence[str],
    ) -> GenerationResult:
        started = time.perf_counter()
        content, brand, tone, kinds = self._validate(content, brand, tone, kinds)
        ordered = resolve_order(kinds)
        meta = self._build_meta(content)

        primary = self._build_page(content, brand, tone, ordered, rank=0, meta=meta)
        alternates = [
            self._build_page(content, brand, tone, ordered, rank=index + 1, meta=meta)
            for index in range(self._alternate_count)
        ]

        render_time = time.perf_counter() - started
        logger.debug(
            "Generated page",
            extra={
                "tone": tone.value,
                "kinds": ordered,
                "sections": len(primary.sections),
                "passed": primary.audits.passed,
                "render_time": render_time,
            },
        )
        return GenerationResult(primary=primary, alternates=alternates, render_time=render_time)

    def _validate(
        self,
        content: ContentGraph | Mapping[str, Any] | None,
        brand: Brand,
        tone: Tone | str,
        kinds: Sequence[str],
    ) -> tuple[ContentGraph, Brand, Tone, list[str]]:
        if isinstance(kinds, (str, bytes)) or not isinstance(kinds, Sequence):
            raise InvalidInputError("kinds must be a sequence of section kind names")
        if not all(isinstance(kind, str) and kind for kind in kinds):
            raise InvalidInputError("every section kind must be a non-empty string")
        try:
            tone = Tone(tone)
        except ValueError as exc:
            raise InvalidInputError(f"Unknown tone: {tone!r}") from exc
        try:
            if not isinstance(brand, Brand):
                brand = Brand.model_validate(brand)
            if content is None:
                content = ContentGraph()
            elif not isinstance(content, ContentGraph):
                content = ContentGraph.model_validate(content)
        except ValidationError as exc:
            raise InvalidInputError(f"Malformed page input: {exc}") from exc
        return content, brand, tone, list(kinds)

    def _build_page(
        self,
        content: ContentGraph,
        brand: Brand,
        tone: Tone,
        ordered: Sequence[str],
        *,
        rank: int,
        meta: PageMeta,
    ) -> PageNode:
        sections: list[SectionNode] = []
        missing: list[str] = []
        for kind in ordered:
            try:
                section = self._selector.select(
                    kind,
                    tone,
                    brand,
                    content.get(kind),
                    position=len(sections),
                    rank=rank,
                    section_id=next_section_id(kind, (s.id for s in sections)),
                )
            except UnknownKindError:
                missing.append(kind)
                continue
            sections.append(section)

        audits = self._audit(sections, missing)
        return PageNode(sections=sections, brand=brand, audits=audits, meta=meta, tone=tone)

    def _audit(self, sections: Sequence[SectionNode], missing: Sequence[str]) -> PageAudit:
        findings: list[AuditFinding] = []

        for kind in missing:
            findings.append(
                AuditFinding(
                    rule="unknown-kind",
                    severity="error",
                    message=f"No variant registered for section kind '{kind}'; section dropped",
                )
            )

        if not sections:
            findings.append(
                AuditFinding(rule="non-empty", severity="error", message="Page has no sections")
            )
            return PageAudit.from_findings(findings)

        kinds = [section.meta.kind for section in sections]
        hero_count = kinds.count("hero")
        if hero_count == 0:
            findings.append(
                AuditFinding(rule="single-hero", severity="error", message="Page is missing a hero section")
            )
        elif hero_count > 1:
            findings.append(
                AuditFinding(
                    rule="single-hero",
                    severity="error",
                    message=f"Page has {hero_count} hero sections; exactly one is required",
                )
            )

        for kind in dict.fromkeys(kinds):
            if kind == "hero" or not self._registry.is_unique(kind):
                continue
            if kinds.count(kind) > 1:
                findings.append(
                    AuditFinding(
                        rule="unique-kind",
                        severity="error",
                        message=f"Section kind '{kind}' may appear only once",
                    )
                )

        if not any(self._has_call_to_action(section) for section in sections):
            findings.append(
                AuditFinding(
                    rule="call-to-action",
                    severity="warning",
                    message="Page has no explicit call-to-action text",
                )
            )

        descriptors = [self._registry.get(s.meta.kind, s.meta.variant) for s in sections]
        animated = sum(1 for d in descriptors if d is not None and d.has_animations)
        if animated / len(sections) > 0.5:
            findings.append(
                AuditFinding(
                    rule="excessive-animations",
                    severity="warning",
                    message="More than half of the sections are animated",
                )
            )
        heavy = sum(1 for d in descriptors if d is not None and d.estimated_size in HEAVY_SIZES)
        if heavy > 3:
            findings.append(
                AuditFinding(
                    rule="page-weight",
                    severity="warning",
                    message="Page contains several heavy sections; consider lazy loading",
                )
            )

        return PageAudit.from_findings(findings)

    def _has_call_to_action(self, section: SectionNode) -> bool:
        if section.meta.kind != "cta":
            return False
        if any(action.get("label") for action in section.props.get("actions", ())):
            return True
        return section.props.get("source") == "content" and bool(section.content.get("headline"))

    def _build_meta(self, content: ContentGraph) -> PageMeta:
        hero = content.get("hero")
        cta = content.get("cta")
        about = content.get("about")
        title = (hero and hero.headline) or (cta and cta.headline) or PageMeta().title
        description = (
            (hero and hero.subheadline)
            or (about and about.description)
            or PageMeta().description
        )
        return PageMeta(title=title[:60], description=description[:160])


def generate_page(
    content: ContentGraph | Mapping[str, Any] | None,
    brand: Brand,
    tone: Tone | str,
    kinds: Sequence[str],
    *,
    registry: VariantRegistry | None = None,
    alternate_count: int = 1,
) -> GenerationResult:
    composer = PageComposer(registry, alternate_count=alternate_count)
    return composer.generate(content, brand, tone, kinds)


def composer_from_settings(
    settings: EngineSettings,
    *,
    registry: VariantRegistry | None = None,
) -> PageComposer:
    return PageComposer(registry, alternate_count=settings.alternate_count)


__all__ = [
    "PageComposer",
    "generate_page",
    "composer_from_settings",
    "resolve_order",
    "CANONICAL_PLACEMENT",
]
