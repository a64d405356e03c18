from __future__ import annotations

from collections.abc import Collection, Iterator
from typing import Protocol

from bs4 import BeautifulSoup
from bs4.element import CData, NavigableString, PreformattedString, Tag


class MarkupNode(Protocol):
    """Element of a parsed markup tree.

    ``tag`` is the lowercase element name. ``find_all`` yields descendant
    elements (never the node itself) in document order; with no arguments it
    yields every descendant element.
    """

    @property
    def tag(self) -> str: ...

    def get(self, attribute: str) -> str | None: ...

    def text(self, skip: Collection[str] = ()) -> str: ...

    def find_all(self, *tags: str) -> Iterator[MarkupNode]: ...


class DocumentParser(Protocol):
    """Turns raw document bytes into the root node of a markup tree."""

    def parse(self, content: bytes) -> MarkupNode: ...


class SoupNode:
    """``MarkupNode`` backed by a BeautifulSoup tag."""

    __slots__ = ("_element",)

    def __init__(self, element: Tag) -> None:
        self._element = element

    @property
    def tag(self) -> str:
        return (self._element.name or "").lower()

    def get(self, attribute: str) -> str | None:
        value = self._element.get(attribute)
        if value is None:
            return None
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    def text(self, skip: Collection[str] = ()) -> str:
        parts: list[str] = []
        for string in self._element.find_all(string=True):
            if not isinstance(string, NavigableString):
                continue
            if isinstance(string, PreformattedString) and not isinstance(string, CData):
                continue
            if skip and any(parent.name in skip for parent in string.parents):
                continue
            parts.append(str(string))
        return "".join(parts)

    def find_all(self, *tags: str) -> Iterator[MarkupNode]:
        matcher: list[str] | bool = list(tags) if tags else True
        for element in self._element.find_all(matcher):
            yield SoupNode(element)


class BeautifulSoupParser:
    """Permissive HTML parser built on BeautifulSoup and lxml (libxml2).

    Content is decoded as UTF-8 with replacement characters for invalid bytes.
    Optional end tags are implied, so ``<p>one<p>two`` yields sibling
    paragraphs, and missing ``html``/``body`` elements are added.
    """

    def __init__(self, features: str = "lxml") -> None:
        self.features = features

    def parse(self, content: bytes) -> MarkupNode:
        markup = content.decode("utf-8", errors="replace")
        return SoupNode(BeautifulSoup(markup, self.features))


__all__ = ["BeautifulSoupParser", "DocumentParser", "MarkupNode", "SoupNode"]
