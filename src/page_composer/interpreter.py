from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

from .errors import InvalidInputError, UnknownKindError
from .models.content import Tone
from .models.edit import PAGE_TARGET, ChatInterpretation, Intent, IntentKind, Transform
from .models.section import SectionNode
from .registry import VariantRegistry, default_registry
from .selector import SectionSelector, build_section_props, next_section_id
from .transforms import (
    insert_section,
    move_section,
    patch_content,
    patch_props,
    remap_tone,
    remove_section,
    set_tone,
    swap_variant,
    trim_list,
)

logger = logging.getLogger(__name__)

NOT_UNDERSTOOD = "command not understood"
DEFAULT_URGENCY_COPY = "Limited-time offer: 20% off this month!"
EDITABLE_FIELDS = ("headline", "subheadline", "description", "disclaimer")
HERO_BULLET_LIMIT = 2


@dataclass
class RuleOutcome:
    transforms: list[Transform] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    detail: str | None = None


@dataclass
class EditContext:
    sections: Sequence[SectionNode]
    registry: VariantRegistry
    selector: SectionSelector
    fold_depth: int

    def first(self, kind: str) -> SectionNode | None:
        return next((s for s in self.sections if s.meta.kind == kind), None)

    def index_of(self, kind: str) -> int:
        return next((i for i, s in enumerate(self.sections) if s.meta.kind == kind), -1)

    def page_tone(self) -> Tone:
        hero = self.first("hero")
        tone = hero.tone if hero else None
        if tone is None and self.sections:
            tone = self.sections[0].tone
        try:
            return Tone(tone) if tone else Tone.minimal
        except ValueError:
            return Tone.minimal

    def new_section(self, kind: str, tone: Tone, content: Mapping[str, Any] | None = None) -> SectionNode:
        descriptor = self.selector.best(kind, tone)
        props = build_section_props(descriptor, tone, None, None)
        if content:
            props["content"].update(content)
            props["source"] = "content"
        return SectionNode(
            id=next_section_id(kind, (s.id for s in self.sections)),
            meta=descriptor.meta,
            props=props,
            position=len(self.sections),
        )


Builder = Callable[[EditContext, Mapping[str, Any]], RuleOutcome]
Extractor = Callable[["re.Match[str]"], dict[str, Any]]


@dataclass(frozen=True)
class CommandRule:
    intent: IntentKind
    pattern: "re.Pattern[str]"
    extract: Extractor = lambda match: {}
    confidence: float = 0.9
    # Skip this rule when an earlier rule already produced the same intent.
    exclusive: bool = False

    def match(self, text: str) -> "re.Match[str] | None":
        return self.pattern.search(text)


def _rule(intent: IntentKind, pattern: str, **kwargs: Any) -> CommandRule:
    return CommandRule(intent=intent, pattern=re.compile(pattern, re.IGNORECASE), **kwargs)


def _strip_quotes(value: str) -> str:
    return value.strip().strip("\"“”'").strip()


# ---------- Intent builders ----------


def build_make_hero_dramatic(ctx: EditContext, params: Mapping[str, Any]) -> RuleOutcome:
    hero = ctx.first("hero")
    if hero is None:
        return RuleOutcome(warnings=["No hero section found to make dramatic."])
    outcome = RuleOutcome()
    descriptor = ctx.selector.best("hero", Tone.bold)
    if descriptor.variant != hero.meta.variant:
        outcome.transforms.append(
            swap_variant(hero.id, descriptor.meta, descriptor.layout, name="makeHeroDramatic")
        )
    outcome.transforms.append(set_tone(hero.id, Tone.bold, name="makeHeroDramatic"))
    return outcome


def build_increase_contrast(ctx: EditContext, params: Mapping[str, Any]) -> RuleOutcome:
    if not ctx.sections:
        return RuleOutcome(warnings=["Page has no sections to adjust."])
    outcome = RuleOutcome(
        transforms=[
            remap_tone(PAGE_TARGET, Tone.minimal, Tone.corporate, name="increaseContrast"),
            patch_props(PAGE_TARGET, {"contrast": "high"}, name="increaseContrast"),
        ]
    )
    if ctx.first("cta") is not None:
        outcome.transforms.append(set_tone("cta", Tone.bold, name="increaseContrast"))
    return outcome


def build_add_social_proof(ctx: EditContext, params: Mapping[str, Any]) -> RuleOutcome:
    if not ctx.registry.has_kind("testimonials"):
        return RuleOutcome(warnings=["no testimonials variant available"])
    if ctx.first("testimonials") is not None:
        return RuleOutcome(warnings=["Page already has a testimonials section."])
    section = ctx.new_section("testimonials", ctx.page_tone())
    before = "cta" if ctx.index_of("cta") > 0 else None
    return RuleOutcome(transforms=[insert_section(section, before=before, name="addSocialProof")])


def build_tighten_above_the_fold(ctx: EditContext, params: Mapping[str, Any]) -> RuleOutcome:
    outcome = RuleOutcome()
    hero = ctx.first("hero")
    if hero is not None:
        bullets = hero.content.get("bullets")
        if isinstance(bullets, list) and len(bullets) > HERO_BULLET_LIMIT:
            outcome.transforms.append(
                trim_list(hero.id, "bullets", HERO_BULLET_LIMIT, name="tightenAboveTheFold")
            )
    for section in ctx.sections[: ctx.fold_depth + 1]:
        if section.meta.kind == "hero":
            continue
        if ctx.registry.priority(section.meta.kind) == "low":
            outcome.transforms.append(remove_section(section.id, name="tightenAboveTheFold"))
    cta = ctx.first("cta")
    if cta is not None and ctx.index_of("cta") > 1:
        outcome.transforms.append(move_section(cta.id, 1, name="tightenAboveTheFold"))
    if not outcome.transforms:
        outcome.warnings.append("Above-the-fold content is already tight.")
    return outcome


def build_apply_theme(ctx: EditContext, params: Mapping[str, Any]) -> RuleOutcome:
    tone = Tone(params["tone"])
    return RuleOutcome(
        transforms=[set_tone(PAGE_TARGET, tone, name=f"applyTheme:{tone.value}")],
        detail=tone.value,
    )


def build_optimize_for_conversion(ctx: EditContext, params: Mapping[str, Any]) -> RuleOutcome:
    outcome = RuleOutcome()
    cta = ctx.first("cta")
    if cta is None:
        if not ctx.registry.has_kind("cta"):
            outcome.warnings.append("no cta variant available")
        else:
            section = ctx.new_section(
                "cta",
                Tone.bold,
                {"headline": "Start your free trial", "description": "Get started in minutes, no credit card."},
            )
            section = section.model_copy(
                update={"props": {**section.props, "actions": [{"label": "Get started", "href": "/signup"}]}}
            )
            outcome.transforms.append(insert_section(section, name="optimizeForConversion"))
            cta = section
    if cta is not None:
        outcome.transforms.append(move_section(cta.id, 1, name="optimizeForConversion"))
        outcome.transforms.append(set_tone(cta.id, Tone.bold, name="optimizeForConversion"))
    dramatic = build_make_hero_dramatic(ctx, {})
    outcome.transforms.extend(dramatic.transforms)
    outcome.warnings.extend(dramatic.warnings)
    return outcome


def build_add_urgency_banner(ctx: EditContext, params: Mapping[str, Any]) -> RuleOutcome:
    if not ctx.registry.has_kind("cta"):
        return RuleOutcome(warnings=["no cta variant available"])
    copy = params.get("copy") or DEFAULT_URGENCY_COPY
    section = ctx.new_section(
        "cta",
        Tone.bold,
        {"headline": copy, "description": "", "disclaimer": "While supplies last."},
    )
    section = section.model_copy(
        update={"props": {**section.props, "actions": [{"label": "Claim offer", "href": "#offer"}]}}
    )
    return RuleOutcome(transforms=[insert_section(section, index=0, name="addUrgencyBanner")])


def build_swap_variant(ctx: EditContext, params: Mapping[str, Any]) -> RuleOutcome:
    kind, variant = str(params["kind"]).lower(), str(params["variant"]).lower()
    detail = f"{kind}->{variant}"
    target = ctx.first(kind)
    if target is None:
        return RuleOutcome(warnings=[f"No {kind} section found to swap."], detail=detail)
    descriptor = ctx.registry.get(kind, variant)
    if descriptor is None:
        return RuleOutcome(warnings=[f"No {kind} variant named '{variant}' is registered."], detail=detail)
    return RuleOutcome(
        transforms=[swap_variant(target.id, descriptor.meta, descriptor.layout)],
        detail=detail,
    )


def build_reorder(ctx: EditContext, params: Mapping[str, Any]) -> RuleOutcome:
    count = len(ctx.sections)
    if "from_index" in params:
        source = int(params["from_index"])
        if not 0 <= source < count:
            return RuleOutcome(warnings=[f"There is no section {source + 1} to move."])
        destination = max(0, min(int(params["to_index"]), count - 1))
        target = ctx.sections[source]
        return RuleOutcome(
            transforms=[move_section(target.id, destination)],
            detail=f"{source}->{destination}",
        )

    kind = str(params["kind"]).lower()
    source = ctx.index_of(kind)
    if source < 0:
        return RuleOutcome(warnings=[f"No {kind} section found to move."])
    anchor = str(params["anchor"]).lower()
    relation = str(params.get("relation") or "to").lower()
    if anchor.isdigit():
        destination = max(0, min(int(anchor) - 1, count - 1))
    else:
        anchor_index = ctx.index_of(anchor)
        if anchor_index < 0:
            return RuleOutcome(warnings=[f"No {anchor} section found to move {kind} next to."])
        destination = anchor_index
        if relation == "before" and source < anchor_index:
            destination = anchor_index - 1
        elif relation == "after" and source > anchor_index:
            destination = anchor_index + 1
    return RuleOutcome(
        transforms=[move_section(ctx.sections[source].id, destination)],
        detail=f"{source}->{destination}",
    )


def build_remove_section(ctx: EditContext, params: Mapping[str, Any]) -> RuleOutcome:
    kind = str(params["kind"]).lower()
    if ctx.first(kind) is None:
        return RuleOutcome(warnings=[f"No {kind} section found to remove."], detail=kind)
    return RuleOutcome(transforms=[remove_section(kind)], detail=kind)


def build_update_content(ctx: EditContext, params: Mapping[str, Any]) -> RuleOutcome:
    kind = params.get("kind")
    key, value = params["field"], params["value"]
    if kind is None:
        section = ctx.first("hero") or (ctx.sections[0] if ctx.sections else None)
    else:
        section = ctx.first(kind)
    label = f"{kind or 'hero'}.{key}"
    if section is None:
        return RuleOutcome(warnings=[f"No {kind or 'hero'} section found to update."], detail=label)
    label = f"{section.meta.kind}.{key}"
    return RuleOutcome(transforms=[patch_content(section.id, {key: value})], detail=label)


BUILDERS: Mapping[IntentKind, Builder] = {
    IntentKind.make_hero_dramatic: build_make_hero_dramatic,
    IntentKind.increase_contrast: build_increase_contrast,
    IntentKind.add_social_proof: build_add_social_proof,
    IntentKind.tighten_above_the_fold: build_tighten_above_the_fold,
    IntentKind.apply_theme: build_apply_theme,
    IntentKind.optimize_for_conversion: build_optimize_for_conversion,
    IntentKind.add_urgency_banner: build_add_urgency_banner,
    IntentKind.swap_variant: build_swap_variant,
    IntentKind.reorder: build_reorder,
    IntentKind.remove_section: build_remove_section,
    IntentKind.update_content: build_update_content,
}


_KINDS = r"hero|features|about|testimonials|pricing|faq|cta|contact|footer"
_TONES = "|".join(tone.value for tone in Tone)

# Evaluated top to bottom. Transforms are applied in this order no matter
# where the phrases appear in the command.
DEFAULT_RULES: Sequence[CommandRule] = (
    _rule(
        IntentKind.make_hero_dramatic,
        r"make .*hero.* (more )?dramatic|dramatic hero|bigger hero",
    ),
    _rule(
        IntentKind.increase_contrast,
        r"increase (the )?contrast|high[- ]contrast|more pop",
        confidence=0.85,
    ),
    _rule(
        IntentKind.add_social_proof,
        r"add (?:more |some )?(?:social proof|testimonials)|logo wall",
        confidence=0.85,
    ),
    _rule(
        IntentKind.tighten_above_the_fold,
        r"tighten (the )?above[- ]the[- ]fold|less above the fold|reduce clutter",
    ),
    _rule(
        IntentKind.apply_theme,
        rf"apply (?:the )?(?:theme )?({_TONES})",
        extract=lambda m: {"tone": m.group(1).lower()},
        confidence=0.95,
    ),
    _rule(
        IntentKind.optimize_for_conversion,
        r"optimi[sz]e (for )?conversions?|increase conversions|boost (the )?cta",
        confidence=0.8,
    ),
    _rule(
        IntentKind.add_urgency_banner,
        r"add (?:an )?urgency (?:banner|bar)(?:\s*:?\s*([^;]*))?",
        extract=lambda m: {"copy": _strip_quotes(m.group(1) or "") or None},
    ),
    _rule(
        IntentKind.swap_variant,
        rf"swap ({_KINDS}) (?:to|with) ([\w-]+)",
        extract=lambda m: {"kind": m.group(1).lower(), "variant": m.group(2).lower()},
        confidence=0.95,
    ),
    _rule(
        IntentKind.reorder,
        r"move (?:section )?(\d+)\s*(?:to|->)\s*(\d+)",
        extract=lambda m: {"from_index": int(m.group(1)) - 1, "to_index": int(m.group(2)) - 1},
        confidence=0.95,
    ),
    _rule(
        IntentKind.reorder,
        rf"move (?:the )?({_KINDS})(?: section)? (to|before|after) (?:the )?(\d+|{_KINDS})",
        extract=lambda m: {
            "kind": m.group(1).lower(),
            "relation": m.group(2).lower(),
            "anchor": m.group(3).lower(),
        },
        exclusive=True,
    ),
    _rule(
        IntentKind.remove_section,
        rf"(?:remove|delete|drop) (?:the )?({_KINDS})(?: section)?",
        extract=lambda m: {"kind": m.group(1).lower()},
    ),
    _rule(
        IntentKind.update_content,
        r"set (?:the )?headline to [\"“](.+?)[\"”]",
        extract=lambda m: {"kind": None, "field": "headline", "value": m.group(1)},
        confidence=0.95,
    ),
    _rule(
        IntentKind.update_content,
        rf"update (?:the )?({_KINDS}) ({'|'.join(EDITABLE_FIELDS)})\s*:\s*([^;]+)",
        extract=lambda m: {
            "kind": m.group(1).lower(),
            "field": m.group(2).lower(),
            "value": _strip_quotes(m.group(3)),
        },
        confidence=0.95,
    ),
)


class CommandInterpreter:
    """Deterministic phrase-rule interpreter for editing commands."""

    def __init__(
        self,
        registry: VariantRegistry | None = None,
        *,
        rules: Sequence[CommandRule] = DEFAULT_RULES,
        fold_depth: int = 2,
    ) -> None:
        self._registry = registry if registry is not None else default_registry()
        self._selector = SectionSelector(self._registry)
        self._rules = tuple(rules)
        self._fold_depth = fold_depth

    @property
    def registry(self) -> VariantRegistry:
        return self._registry

    def interpret(self, command: str, sections: Sequence[SectionNode]) -> ChatInterpretation:
        if not isinstance(command, str):
            raise InvalidInputError("command must be a string")
        ctx = self._context(sections)
        transforms: list[Transform] = []
        intents: list[Intent] = []
        warnings: list[str] = []

        for rule in self._rules:
            if rule.exclusive and any(intent.kind == rule.intent for intent in intents):
                continue
            match = rule.match(command)
            if match is None:
                continue
            outcome = self._run(rule.intent, ctx, rule.extract(match), warnings)
            if outcome is None:
                continue
            intents.append(Intent(kind=rule.intent, detail=outcome.detail, confidence=rule.confidence))
            transforms.extend(outcome.transforms)
            warnings.extend(outcome.warnings)

        if not intents:
            warnings.append(NOT_UNDERSTOOD)
        logger.debug(
            "Interpreted command",
            extra={"intents": [intent.label for intent in intents], "transforms": len(transforms)},
        )
        return ChatInterpretation(transforms=transforms, intents=intents, warnings=warnings)

    def build_intent(
        self,
        intent: IntentKind | str,
        params: Mapping[str, Any] | None,
        sections: Sequence[SectionNode],
        *,
        confidence: float = 1.0,
    ) -> ChatInterpretation:
        """Run the builder for ``intent`` directly, bypassing phrase matching."""
        try:
            kind = IntentKind(intent)
        except ValueError:
            return ChatInterpretation(warnings=[f"Unknown intent: {intent}"])
        warnings: list[str] = []
        outcome = self._run(kind, self._context(sections), dict(params or {}), warnings)
        if outcome is None:
            return ChatInterpretation(warnings=warnings)
        return ChatInterpretation(
            transforms=outcome.transforms,
            intents=[Intent(kind=kind, detail=outcome.detail, confidence=confidence)],
            warnings=[*warnings, *outcome.warnings],
        )

    def _context(self, sections: Sequence[SectionNode]) -> EditContext:
        return EditContext(
            sections=list(sections),
            registry=self._registry,
            selector=self._selector,
            fold_depth=self._fold_depth,
        )

    def _run(
        self,
        intent: IntentKind,
        ctx: EditContext,
        params: Mapping[str, Any],
        warnings: list[str],
    ) -> RuleOutcome | None:
        try:
            return BUILDERS[intent](ctx, params)
        except (KeyError, TypeError, ValueError, UnknownKindError) as exc:
            warnings.append(f"Could not build {intent.value}: {exc}")
            return None


def interpret_chat(
    command: str,
    sections: Sequence[SectionNode],
    *,
    registry: VariantRegistry | None = None,
) -> ChatInterpretation:
    return CommandInterpreter(registry).interpret(command, sections)


__all__ = [
    "CommandInterpreter",
    "CommandRule",
    "DEFAULT_RULES",
    "BUILDERS",
    "NOT_UNDERSTOOD",
    "interpret_chat",
]
