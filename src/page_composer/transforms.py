from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Iterable, Mapping, Sequence

from .models.content import Tone
from .models.edit import PAGE_TARGET, Operation, Transform
from .models.section import SectionMeta, SectionNode
from .selector import next_section_id

logger = logging.getLogger(__name__)

SectionList = list[SectionNode]
OperationHandler = Callable[[SectionList, Transform], SectionList]


# ---------- Transform factories ----------


def set_tone(target: str, tone: Tone | str, *, name: str = "setTone") -> Transform:
    return Transform(name=name, target=target, operation=Operation.set_tone, params={"tone": Tone(tone).value})


def remap_tone(
    target: str, from_tone: Tone | str, to_tone: Tone | str, *, name: str = "remapTone"
) -> Transform:
    return Transform(
        name=name,
        target=target,
        operation=Operation.remap_tone,
        params={"from": Tone(from_tone).value, "to": Tone(to_tone).value},
    )


def swap_variant(
    target: str,
    meta: SectionMeta,
    layout: Mapping[str, Any] | None = None,
    *,
    name: str = "swapVariant",
) -> Transform:
    return Transform(
        name=name,
        target=target,
        operation=Operation.swap_variant,
        params={"meta": meta, "layout": dict(layout or {})},
    )


def patch_content(target: str, fields: Mapping[str, Any], *, name: str = "updateContent") -> Transform:
    return Transform(name=name, target=target, operation=Operation.patch_content, params={"fields": dict(fields)})


def patch_props(target: str, fields: Mapping[str, Any], *, name: str = "patchProps") -> Transform:
    return Transform(name=name, target=target, operation=Operation.patch_props, params={"fields": dict(fields)})


def trim_list(target: str, field: str, limit: int, *, name: str = "trimList") -> Transform:
    return Transform(
        name=name,
        target=target,
        operation=Operation.trim_list,
        params={"field": field, "limit": limit},
    )


def insert_section(
    section: SectionNode,
    *,
    before: str | None = None,
    index: int | None = None,
    name: str = "insertSection",
) -> Transform:
    """Insert ``section`` before the first match of ``before`` (id or kind),
    else at ``index``, else at the end."""
    return Transform(
        name=name,
        target=PAGE_TARGET,
        operation=Operation.insert_section,
        params={"section": section, "before": before, "index": index},
    )


def remove_section(target: str, *, name: str = "removeSection") -> Transform:
    return Transform(name=name, target=target, operation=Operation.remove_section)


def move_section(target: str, to_index: int, *, name: str = "reorderSections") -> Transform:
    return Transform(name=name, target=target, operation=Operation.move_section, params={"to": to_index})


# ---------- Engine ----------


def _matches(section: SectionNode, target: str) -> bool:
    return target == PAGE_TARGET or section.id == target or section.meta.kind == target


def _targets(sections: Sequence[SectionNode], target: str) -> list[int]:
    """Indices addressed by ``target``; an id match wins over a kind match."""
    by_id = [i for i, section in enumerate(sections) if section.id == target]
    if by_id:
        return by_id
    return [i for i, section in enumerate(sections) if _matches(section, target)]


def _with_props(section: SectionNode, **changes: Any) -> SectionNode:
    props = dict(section.props)
    props.update(changes)
    return section.model_copy(update={"props": props})


def _renumber(sections: Iterable[SectionNode]) -> SectionList:
    out: SectionList = []
    for index, section in enumerate(sections):
        if section.position != index:
            section = section.model_copy(update={"position": index})
        out.append(section)
    return out


def _set_tone(sections: SectionList, transform: Transform) -> SectionList:
    tone = transform.params["tone"]
    out = list(sections)
    for i in _targets(out, transform.target):
        out[i] = _with_props(out[i], tone=tone)
    return out


def _remap_tone(sections: SectionList, transform: Transform) -> SectionList:
    source, destination = transform.params["from"], transform.params["to"]
    out = list(sections)
    for i in _targets(out, transform.target):
        if out[i].props.get("tone") == source:
            out[i] = _with_props(out[i], tone=destination)
    return out


def _swap_variant(sections: SectionList, transform: Transform) -> SectionList:
    meta = transform.params["meta"]
    if not isinstance(meta, SectionMeta):
        meta = SectionMeta.model_validate(meta)
    layout = transform.params.get("layout") or {}
    out = list(sections)
    for i in _targets(out, transform.target):
        if out[i].meta.kind != meta.kind:
            continue
        section = out[i].model_copy(update={"meta": meta})
        out[i] = _with_props(section, layout=dict(layout)) if layout else section
    return out


def _patch_content(sections: SectionList, transform: Transform) -> SectionList:
    fields = transform.params["fields"]
    out = list(sections)
    for i in _targets(out, transform.target):
        content = dict(out[i].props.get("content") or {})
        content.update(copy.deepcopy(dict(fields)))
        out[i] = _with_props(out[i], content=content)
    return out


def _patch_props(sections: SectionList, transform: Transform) -> SectionList:
    fields = copy.deepcopy(dict(transform.params["fields"]))
    out = list(sections)
    for i in _targets(out, transform.target):
        out[i] = _with_props(out[i], **fields)
    return out


def _trim_list(sections: SectionList, transform: Transform) -> SectionList:
    field, limit = transform.params["field"], transform.params["limit"]
    out = list(sections)
    for i in _targets(out, transform.target):
        content = out[i].props.get("content") or {}
        values = content.get(field)
        if isinstance(values, list) and len(values) > limit:
            trimmed = dict(content)
            trimmed[field] = values[:limit]
            out[i] = _with_props(out[i], content=trimmed)
    return out


def _insert_section(sections: SectionList, transform: Transform) -> SectionList:
    section = transform.params["section"]
    if not isinstance(section, SectionNode):
        section = SectionNode.model_validate(section)
    section = section.model_copy(deep=True)
    taken = {s.id for s in sections}
    if section.id in taken:
        section = section.model_copy(update={"id": next_section_id(section.meta.kind, taken)})

    out = list(sections)
    before = transform.params.get("before")
    index = transform.params.get("index")
    anchor = _targets(out, before) if before else []
    if anchor:
        at = anchor[0]
    elif index is not None:
        at = max(0, min(int(index), len(out)))
    else:
        at = len(out)
    out.insert(at, section)
    return _renumber(out)


def _remove_section(sections: SectionList, transform: Transform) -> SectionList:
    doomed = set(_targets(sections, transform.target))
    if not doomed:
        return list(sections)
    return _renumber(s for i, s in enumerate(sections) if i not in doomed)


def _move_section(sections: SectionList, transform: Transform) -> SectionList:
    found = _targets(sections, transform.target)
    if not found or transform.target == PAGE_TARGET:
        return list(sections)
    source = found[0]
    destination = max(0, min(int(transform.params["to"]), len(sections) - 1))
    if source == destination:
        return list(sections)
    out = list(sections)
    out.insert(destination, out.pop(source))
    return _renumber(out)


OPERATIONS: Mapping[Operation, OperationHandler] = {
    Operation.set_tone: _set_tone,
    Operation.remap_tone: _remap_tone,
    Operation.swap_variant: _swap_variant,
    Operation.patch_content: _patch_content,
    Operation.patch_props: _patch_props,
    Operation.trim_list: _trim_list,
    Operation.insert_section: _insert_section,
    Operation.remove_section: _remove_section,
    Operation.move_section: _move_section,
}


class TransformEngine:
    """Applies transforms in order. Never mutates its input."""

    def __init__(self, operations: Mapping[Operation, OperationHandler] = OPERATIONS) -> None:
        self._operations = dict(operations)

    def apply_one(self, transform: Transform, sections: Sequence[SectionNode]) -> SectionList:
        handler = self._operations[transform.operation]
        return handler(list(sections), transform)

    def apply(self, transforms: Iterable[Transform], sections: Sequence[SectionNode]) -> SectionList:
        state = list(sections)
        for transform in transforms:
            state = self.apply_one(transform, state)
            logger.debug(
                "Applied transform",
                extra={"transform": transform.name, "target": transform.target, "sections": len(state)},
            )
        return state


def apply_transforms(transforms: Iterable[Transform], sections: Sequence[SectionNode]) -> SectionList:
    return TransformEngine().apply(transforms, sections)


__all__ = [
    "TransformEngine",
    "OPERATIONS",
    "apply_transforms",
    "set_tone",
    "remap_tone",
    "swap_variant",
    "patch_content",
    "patch_props",
    "trim_list",
    "insert_section",
    "remove_section",
    "move_section",
]
