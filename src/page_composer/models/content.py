from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field, RootModel


class Tone(str, Enum):
    minimal = "minimal"
    bold = "bold"
    playful = "playful"
    corporate = "corporate"

    def neighbours(self) -> tuple["Tone", ...]:
        return TONE_NEIGHBOURS[self]


TONE_NEIGHBOURS: Mapping[Tone, tuple[Tone, ...]] = {
    Tone.minimal: (Tone.corporate,),
    Tone.corporate: (Tone.minimal, Tone.bold),
    Tone.bold: (Tone.corporate, Tone.playful),
    Tone.playful: (Tone.bold,),
}


class Action(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    href: str
    variant: Literal["primary", "secondary", "ghost", "link"] | None = None


class Quote(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    author: str
    role: str | None = None
    company: str | None = None


class MediaAsset(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["image", "video"] = "image"
    src: str
    alt: str | None = None


class SectionContent(BaseModel):
    """Content payload for one section kind. Unknown keys are kept."""

    model_config = ConfigDict(frozen=True, extra="allow")

    headline: str | None = None
    subheadline: str | None = None
    description: str | None = None
    bullets: Sequence[str] | None = None
    items: Sequence[str] | None = None
    quotes: Sequence[Quote] | None = None
    primary_action: Action | None = None
    secondary_action: Action | None = None
    disclaimer: str | None = None
    image: MediaAsset | None = None

    def actions(self) -> list[Action]:
        return [action for action in (self.primary_action, self.secondary_action) if action]

    def text_fields(self) -> dict[str, Any]:
        """Everything that renders as section copy (actions and media excluded)."""
        data = self.model_dump(
            mode="json",
            exclude_none=True,
            exclude={"primary_action", "secondary_action", "image"},
        )
        return data


class ContentGraph(RootModel[dict[str, SectionContent]]):
    model_config = ConfigDict(frozen=True)

    root: dict[str, SectionContent] = Field(default_factory=dict)

    def get(self, kind: str) -> SectionContent | None:
        return self.root.get(kind)

    def kinds(self) -> list[str]:
        return list(self.root)

    def __contains__(self, kind: object) -> bool:
        return kind in self.root


class BrandFonts(BaseModel):
    model_config = ConfigDict(frozen=True)

    heading: str = "Inter"
    body: str = "Inter"
    mono: str | None = None


class Brand(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str | None = None
    fonts: BrandFonts = Field(default_factory=BrandFonts)
    colors: Mapping[str, Mapping[str, str]] = Field(default_factory=dict)
    radius: Mapping[str, str] = Field(default_factory=dict)
    voice: Sequence[str] = Field(default_factory=list)

    def swatch(self, scale: str, step: str) -> str | None:
        return self.colors.get(scale, {}).get(step)

    def style_tokens(self) -> dict[str, Any]:
        tokens: dict[str, Any] = {
            "heading_font": self.fonts.heading,
            "body_font": self.fonts.body,
        }
        primary = self.swatch("brand", "600") or self.swatch("brand", "500")
        if primary:
            tokens["primary_color"] = primary
        accent = self.swatch("accent", "500")
        if accent:
            tokens["accent_color"] = accent
        text = self.swatch("gray", "900")
        if text:
            tokens["text_color"] = text
        if "md" in self.radius:
            tokens["radius"] = self.radius["md"]
        return tokens


__all__ = [
    "Tone",
    "TONE_NEIGHBOURS",
    "Action",
    "Quote",
    "MediaAsset",
    "SectionContent",
    "ContentGraph",
    "BrandFonts",
    "Brand",
]
