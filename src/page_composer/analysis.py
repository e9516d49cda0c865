from __future__ import annotations

from typing import Any, Literal, Sequence

from pydantic import BaseModel, Field

from .models.section import SectionNode


class DiffEntry(BaseModel):
    type: Literal["moved", "added", "removed", "changed"]
    id: str
    kind: str | None = None
    key: str | None = None
    before: Any = None
    after: Any = None


class ImpactEstimate(BaseModel):
    aesthetics: float = 0.0
    performance: float = 1.0
    conversion: float = 0.0


class TransformPlan(BaseModel):
    summary: Sequence[str] = Field(default_factory=list)
    diff: Sequence[DiffEntry] = Field(default_factory=list)
    impact: ImpactEstimate = Field(default_factory=ImpactEstimate)

    @property
    def changed(self) -> bool:
        return bool(self.diff)


def analyze_transform(before: Sequence[SectionNode], after: Sequence[SectionNode]) -> TransformPlan:
    """Describe what changed between two section lists, with a rough impact score."""
    diff: list[DiffEntry] = []
    after_by_id = {section.id: section for section in after}
    before_ids = {section.id for section in before}

    for old in before:
        new = after_by_id.get(old.id)
        if new is None:
            continue
        if old.position != new.position:
            diff.append(DiffEntry(type="moved", id=new.id, kind=new.kind, before=old.position, after=new.position))
        if old.meta.variant != new.meta.variant:
            diff.append(
                DiffEntry(
                    type="changed",
                    id=new.id,
                    kind=new.kind,
                    key="meta.variant",
                    before=old.meta.variant,
                    after=new.meta.variant,
                )
            )
        if old.tone != new.tone:
            diff.append(
                DiffEntry(type="changed", id=new.id, kind=new.kind, key="props.tone", before=old.tone, after=new.tone)
            )
        for key in dict.fromkeys([*old.props, *new.props]):
            if key in ("tone", "content"):
                continue
            if old.props.get(key) != new.props.get(key):
                diff.append(
                    DiffEntry(
                        type="changed",
                        id=new.id,
                        kind=new.kind,
                        key=f"props.{key}",
                        before=old.props.get(key),
                        after=new.props.get(key),
                    )
                )
        for key in dict.fromkeys([*old.content, *new.content]):
            if old.content.get(key) != new.content.get(key):
                diff.append(
                    DiffEntry(
                        type="changed",
                        id=new.id,
                        kind=new.kind,
                        key=f"content.{key}",
                        before=old.content.get(key),
                        after=new.content.get(key),
                    )
                )

    for section in after:
        if section.id not in before_ids:
            diff.append(DiffEntry(type="added", id=section.id, kind=section.kind, after=section.position))
    for section in before:
        if section.id not in after_by_id:
            diff.append(DiffEntry(type="removed", id=section.id, kind=section.kind, before=section.position))

    style_changes = sum(
        1
        for d in diff
        if d.type == "changed" and d.key is not None and (d.key == "meta.variant" or d.key.startswith("props."))
    )
    moves = sum(1 for d in diff if d.type == "moved")
    cta_index = next((i for i, s in enumerate(after) if s.kind == "cta"), -1)
    bold_cta = any(s.kind == "cta" and s.tone == "bold" for s in after)
    heavy_media = sum(1 for s in after if s.props.get("layout", {}).get("arrangement") == "full-bleed")

    aesthetics = min(1.0, style_changes / 4 + moves * 0.2)
    conversion = (0.7 if 0 <= cta_index <= 1 else 0.3) + (0.2 if bold_cta else 0.0)
    performance = max(0.0, 1.0 - heavy_media * 0.1)

    summary: list[str] = []
    if moves:
        summary.append("Reordered sections for better flow.")
    if any(d.key == "props.tone" for d in diff):
        summary.append("Adjusted section tones.")
    if any(d.key and d.key.startswith("props.") and d.key != "props.tone" for d in diff):
        summary.append("Updated section styling.")
    if any(d.type == "added" for d in diff):
        summary.append("Added new sections.")
    if any(d.type == "removed" for d in diff):
        summary.append("Removed sections.")
    if 0 <= cta_index <= 1:
        summary.append("Call to action sits above the fold.")

    return TransformPlan(
        summary=summary,
        diff=diff,
        impact=ImpactEstimate(
            aesthetics=round(aesthetics, 2),
            performance=round(performance, 2),
            conversion=round(min(1.0, conversion), 2),
        ),
    )


__all__ = ["DiffEntry", "ImpactEstimate", "TransformPlan", "analyze_transform"]
