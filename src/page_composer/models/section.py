from __future__ import annotations

from typing import Any, Literal, Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field

from .content import Brand, Tone


class SectionMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: str
    variant: str
    name: str

    @property
    def key(self) -> str:
        return f"{self.kind}-{self.variant}"


class SectionNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    meta: SectionMeta
    props: Mapping[str, Any] = Field(default_factory=dict)
    position: int = 0

    @property
    def kind(self) -> str:
        return self.meta.kind

    @property
    def tone(self) -> str | None:
        return self.props.get("tone")

    @property
    def content(self) -> Mapping[str, Any]:
        return self.props.get("content") or {}


class AuditFinding(BaseModel):
    model_config = ConfigDict(frozen=True)

    rule: str
    severity: Literal["error", "warning", "info"]
    message: str


class PageAudit(BaseModel):
    model_config = ConfigDict(frozen=True)

    passed: bool
    issues: Sequence[str] = Field(default_factory=list)
    findings: Sequence[AuditFinding] = Field(default_factory=list)

    @classmethod
    def from_findings(cls, findings: Sequence[AuditFinding]) -> "PageAudit":
        return cls(
            passed=not any(finding.severity == "error" for finding in findings),
            issues=[finding.message for finding in findings],
            findings=list(findings),
        )

    @property
    def blocking(self) -> list[str]:
        return [finding.message for finding in self.findings if finding.severity == "error"]


class PageMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = "Welcome"
    description: str = "Discover our products and services"


class PageNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    sections: Sequence[SectionNode] = Field(default_factory=list)
    brand: Brand
    audits: PageAudit
    meta: PageMeta = Field(default_factory=PageMeta)
    tone: Tone | None = None

    def section_kinds(self) -> list[str]:
        return [section.meta.kind for section in self.sections]


class GenerationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    primary: PageNode
    alternates: Sequence[PageNode] = Field(default_factory=list)
    render_time: float = 0.0


__all__ = [
    "SectionMeta",
    "SectionNode",
    "AuditFinding",
    "PageAudit",
    "PageMeta",
    "PageNode",
    "GenerationResult",
]
