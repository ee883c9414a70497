"""
Rich-Text Link Extractor
========================
Parse HTML field values and pull out the two reference streams the
validator cares about: anchor hrefs and image srcs, in document order.

Parsing is delegated to BeautifulSoup; lxml is the default tree builder and
is tolerant of malformed markup.
"""

from dataclasses import dataclass, field
from typing import Iterator, List

from bs4 import BeautifulSoup

from .models import RawReference, ReferenceKind


@dataclass
class ExtractedReferences:
    """
    References found in one document.

    Attributes:
        anchors: <a> elements with a non-empty href
        images: <img> elements with a non-empty src
    """
    anchors: List[RawReference] = field(default_factory=list)
    images: List[RawReference] = field(default_factory=list)

    def __iter__(self) -> Iterator[RawReference]:
        yield from self.anchors
        yield from self.images

    def __len__(self) -> int:
        return len(self.anchors) + len(self.images)


def parse_html(content: str, parser: str = "lxml") -> BeautifulSoup:
    """Parse markup into a navigable tree. Parser failures propagate."""
    return BeautifulSoup(content, parser)


def _attribute(tag, name: str) -> str:
    value = tag.get(name)
    if isinstance(value, list):  # multi-valued attributes come back as lists
        value = ' '.join(value)
    return value or ''


class LinkExtractor:
    """
    Pure traversal over a parsed document.

    Usage:
        document = parse_html('<p><a href="~/link.aspx?_id=...">x</a></p>')
        refs = LinkExtractor().extract(document)
        for ref in refs.anchors:
            print(ref.raw_value)
    """

    def extract_anchors(self, document: BeautifulSoup) -> List[RawReference]:
        anchors = []
        for tag in document.find_all('a', href=True):
            href = _attribute(tag, 'href')
            if href:
                anchors.append(RawReference(ReferenceKind.ANCHOR, href))
        return anchors

    def extract_images(self, document: BeautifulSoup) -> List[RawReference]:
        images = []
        for tag in document.find_all('img', src=True):
            src = _attribute(tag, 'src')
            if src:
                images.append(RawReference(ReferenceKind.IMAGE, src))
        return images

    def extract(self, document: BeautifulSoup) -> ExtractedReferences:
        return ExtractedReferences(
            anchors=self.extract_anchors(document),
            images=self.extract_images(document),
        )
