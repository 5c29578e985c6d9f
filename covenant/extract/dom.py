"""
Minimal DOM query capability over BeautifulSoup.

Extractors only use ``select``, ``select_one``, ``text``, ``attr``,
``inner_html`` and ``children`` so the parsing library stays swappable.
"""

import re
from typing import List, Optional, Union

from bs4 import BeautifulSoup, Tag

_WHITESPACE = re.compile(r"\s+")


def collapse(value: Optional[str]) -> str:
    return _WHITESPACE.sub(" ", value or "").strip()


class Node:
    """Read-only view over one element"""

    __slots__ = ("element",)

    def __init__(self, element: Union[Tag, BeautifulSoup]):
        self.element = element

    def __repr__(self) -> str:
        return f"Node(<{self.tag}>)"

    def __eq__(self, other) -> bool:
        return isinstance(other, Node) and other.element is self.element

    def __hash__(self) -> int:
        return id(self.element)

    @property
    def tag(self) -> str:
        return (self.element.name or "").lower()

    def select(self, selector: str) -> List["Node"]:
        return [Node(el) for el in self.element.select(selector)]

    def select_one(self, selector: str) -> Optional["Node"]:
        found = self.element.select_one(selector)
        return Node(found) if found is not None else None

    def children(self, tag: Optional[str] = None) -> List["Node"]:
        """Direct element children, optionally filtered by tag name"""
        result = []
        for child in self.element.children:
            if not isinstance(child, Tag):
                continue
            if tag and child.name.lower() != tag:
                continue
            result.append(Node(child))
        return result

    def text(self) -> str:
        """Whitespace-normalized text content"""
        return collapse(self.element.get_text())

    def raw_text(self) -> str:
        return self.element.get_text()

    def attr(self, name: str) -> Optional[str]:
        value = self.element.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value

    def has_attr(self, name: str) -> bool:
        return self.element.has_attr(name)

    def inner_html(self) -> str:
        return "".join(str(child) for child in self.element.contents)

    def outer_html(self) -> str:
        return str(self.element)


class Document(Node):
    """Parsed HTML document"""

    __slots__ = ()

    def __init__(self, html: str):
        super().__init__(BeautifulSoup(html or "", "html.parser"))

    @classmethod
    def from_soup(cls, soup: BeautifulSoup) -> "Document":
        doc = cls.__new__(cls)
        Node.__init__(doc, soup)
        return doc

    def body(self) -> Node:
        """The ``<body>`` element, or the whole document when there is none"""
        body = self.select_one("body")
        return body if body is not None else self
