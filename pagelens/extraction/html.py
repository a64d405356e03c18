from __future__ import annotations

from collections import Counter

from pagelens.extraction.parser import BeautifulSoupParser, DocumentParser, MarkupNode
from pagelens.extraction.types import (
    Extraction,
    ExtractionError,
    ExtractionResult,
    Form,
    FormInput,
    Image,
    Link,
    MetaTag,
    StructureStats,
)

HEADING_LEVELS = range(1, 7)
DEFAULT_FORM_METHOD = "GET"
_FORM_FIELDS = ("input", "select", "textarea")
_INVISIBLE_TAGS = frozenset({"script", "style"})


def extract_document(content: bytes, parser: DocumentParser | None = None) -> Extraction:
    """Parse ``content`` once and summarise it.

    Any failure while parsing or walking the tree is returned as an
    ``ExtractionError``; this function does not raise for bad documents.
    """

    active_parser = parser or BeautifulSoupParser()
    try:
        document = active_parser.parse(content)
        return summarize(document)
    except Exception as error:  # noqa: BLE001
        detail = str(error) or type(error).__name__
        return ExtractionError(message=f"Failed to parse document: {detail}")


def summarize(document: MarkupNode) -> ExtractionResult:
    """Build an ``ExtractionResult`` from an already parsed tree."""

    elements = list(document.find_all())
    by_tag: dict[str, list[MarkupNode]] = {}
    for element in elements:
        by_tag.setdefault(element.tag, []).append(element)

    titles = by_tag.get("title", [])
    return ExtractionResult(
        title=titles[0].text().strip() if titles else None,
        headings=_headings(by_tag),
        paragraphs=_paragraphs(by_tag.get("p", [])),
        links=_links(by_tag.get("a", [])),
        images=_images(by_tag.get("img", [])),
        forms=_forms(by_tag.get("form", [])),
        meta_tags=_meta_tags(by_tag.get("meta", [])),
        raw_text=document.text(skip=_INVISIBLE_TAGS).strip(),
        structure=_structure(elements),
    )


def _headings(by_tag: dict[str, list[MarkupNode]]) -> dict[int, list[str]]:
    headings: dict[int, list[str]] = {}
    for level in HEADING_LEVELS:
        texts = [node.text().strip() for node in by_tag.get(f"h{level}", [])]
        if texts:
            headings[level] = texts
    return headings


def _paragraphs(nodes: list[MarkupNode]) -> list[str]:
    texts = (node.text().strip() for node in nodes)
    return [text for text in texts if text]


def _links(nodes: list[MarkupNode]) -> list[Link]:
    links: list[Link] = []
    for node in nodes:
        href = node.get("href")
        if href is None:
            continue
        links.append(Link(text=node.text().strip(), href=href, title=node.get("title")))
    return links


def _images(nodes: list[MarkupNode]) -> list[Image]:
    images: list[Image] = []
    for node in nodes:
        src = node.get("src")
        if src is None:
            continue
        images.append(
            Image(
                src=src,
                alt=node.get("alt"),
                title=node.get("title"),
                width=node.get("width"),
                height=node.get("height"),
            )
        )
    return images


def _forms(nodes: list[MarkupNode]) -> list[Form]:
    forms: list[Form] = []
    for node in nodes:
        method = node.get("method")
        forms.append(
            Form(
                action=node.get("action"),
                method=DEFAULT_FORM_METHOD if method is None else method,
                inputs=[_form_input(field) for field in node.find_all(*_FORM_FIELDS)],
            )
        )
    return forms


def _form_input(node: MarkupNode) -> FormInput:
    declared_type = node.get("type")
    return FormInput(
        type=node.tag if declared_type is None else declared_type,
        name=node.get("name"),
        id=node.get("id"),
        value=node.get("value"),
    )


def _meta_tags(nodes: list[MarkupNode]) -> list[MetaTag]:
    tags = (
        MetaTag(
            name=node.get("name"),
            property=node.get("property"),
            content=node.get("content"),
            charset=node.get("charset"),
        )
        for node in nodes
    )
    return [tag for tag in tags if not tag.is_empty()]


def _structure(elements: list[MarkupNode]) -> StructureStats:
    counts = Counter(element.tag for element in elements)
    return StructureStats(
        total_elements=len(elements),
        div_count=counts["div"],
        span_count=counts["span"],
        table_count=counts["table"],
        list_count=counts["ul"] + counts["ol"],
        script_count=counts["script"],
        style_count=counts["style"],
    )


__all__ = ["DEFAULT_FORM_METHOD", "extract_document", "summarize"]
