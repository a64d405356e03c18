from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(slots=True)
class Link:
    text: str
    href: str
    title: str | None = None


@dataclass(slots=True)
class Image:
    src: str
    alt: str | None = None
    title: str | None = None
    width: str | None = None
    height: str | None = None


@dataclass(slots=True)
class FormInput:
    type: str
    name: str | None = None
    id: str | None = None
    value: str | None = None


@dataclass(slots=True)
class Form:
    action: str | None
    method: str
    inputs: list[FormInput] = field(default_factory=list)


@dataclass(slots=True)
class MetaTag:
    name: str | None = None
    property: str | None = None
    content: str | None = None
    charset: str | None = None

    def is_empty(self) -> bool:
        return all(
            value is None for value in (self.name, self.property, self.content, self.charset)
        )


@dataclass(slots=True)
class StructureStats:
    """Element counts over the whole document tree."""

    total_elements: int = 0
    div_count: int = 0
    span_count: int = 0
    table_count: int = 0
    list_count: int = 0
    script_count: int = 0
    style_count: int = 0


@dataclass(slots=True)
class ExtractionResult:
    """Structured summary of a markup document."""

    title: str | None = None
    headings: dict[int, list[str]] = field(default_factory=dict)
    paragraphs: list[str] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)
    images: list[Image] = field(default_factory=list)
    forms: list[Form] = field(default_factory=list)
    meta_tags: list[MetaTag] = field(default_factory=list)
    raw_text: str = ""
    structure: StructureStats = field(default_factory=StructureStats)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class ExtractionError:
    """Returned instead of a result when the document could not be parsed."""

    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message}


Extraction = ExtractionResult | ExtractionError


__all__ = [
    "Extraction",
    "ExtractionError",
    "ExtractionResult",
    "Form",
    "FormInput",
    "Image",
    "Link",
    "MetaTag",
    "StructureStats",
]
