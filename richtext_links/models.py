"""
Rich-Text Link Data Models
==========================
Dataclasses for references, content items, link entries and the
per-call validation result.

This module is designed to be independent and can be tested separately
from the rest of the validation system.
"""

from dataclasses import dataclass, field, asdict
from typing import List, Dict, Optional, Any, Tuple
from datetime import datetime, timezone
from enum import Enum
from urllib.parse import urlparse
import re

_GUID_RE = re.compile(
    r'^\{?([0-9a-fA-F]{8})-?([0-9a-fA-F]{4})-?([0-9a-fA-F]{4})-?'
    r'([0-9a-fA-F]{4})-?([0-9a-fA-F]{12})\}?$'
)


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


def normalize_item_id(value: Optional[str]) -> Optional[str]:
    """
    Normalise a GUID in any common spelling to ``{XXXXXXXX-XXXX-XXXX-XXXX-XXXXXXXXXXXX}``.

    Accepts braced or bare, dashed or 32-hex-digit forms. Returns None when
    the value is not a GUID.
    """
    if not value:
        return None
    match = _GUID_RE.match(value.strip())
    if not match:
        return None
    return '{' + '-'.join(match.groups()).upper() + '}'


class ReferenceKind(Enum):
    """Which markup element a reference came from."""
    ANCHOR = "anchor"     # <a href>
    IMAGE = "image"       # <img src>


class Classification(Enum):
    """Outcome of classifying a raw reference."""
    EXTERNAL = "external"
    INTERNAL = "internal"


@dataclass(frozen=True)
class RawReference:
    """A URL as it appears in markup, before classification."""
    kind: ReferenceKind
    raw_value: str


@dataclass(frozen=True)
class OriginContext:
    """
    Scheme and host of the origin a reference is compared against.

    Built from the in-flight request when there is one, or from the
    configured canonical server URL.
    """
    scheme: str
    host: str

    @classmethod
    def from_url(cls, url: Optional[str]) -> Optional['OriginContext']:
        """Parse ``scheme://host[:port]/...``; None when scheme or host is missing."""
        if not url:
            return None
        parsed = urlparse(url)
        if not parsed.scheme or not parsed.hostname:
            return None
        return cls(scheme=parsed.scheme, host=parsed.hostname)

    @property
    def root(self) -> str:
        host = f"[{self.host}]" if ':' in self.host else self.host
        return f"{self.scheme}://{host}/"


@dataclass(frozen=True)
class Item:
    """
    A content item as returned by a repository.

    Attributes:
        id: Normalised GUID of the item
        path: Full hierarchical path, e.g. /sitecore/media library/Images/pic
        name: Item name (defaults to the last path segment)
        template: Optional template name, e.g. "Image"
    """
    id: str
    path: str
    name: str = ""
    template: str = ""

    def __post_init__(self):
        normalized = normalize_item_id(self.id)
        if normalized is None:
            raise ValueError(f"Invalid item id: {self.id!r}")
        object.__setattr__(self, 'id', normalized)
        if not self.name:
            object.__setattr__(self, 'name', self.path.rstrip('/').rsplit('/', 1)[-1])

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SourceContext:
    """
    Where a reference was found.

    Attributes:
        item_id: Id of the item owning the field
        field_id: Id of the rich-text field
        language: Language of the item version
        version: Version number of the item
        database: Name of the repository the item lives in
        item_path: Optional full path of the source item (diagnostics only)
    """
    item_id: str
    field_id: str = ""
    language: str = "en"
    version: Optional[int] = 1
    database: str = "master"
    item_path: str = ""

    def describe(self) -> str:
        """Render as ``db://{id}/path?field=..&lang=..&ver=..`` for log messages."""
        ver = '' if self.version is None else self.version
        return (f"{self.database}://{self.item_id}{self.item_path}"
                f"?field={self.field_id}&lang={self.language}&ver={ver}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ItemLink:
    """
    A link believed broken.

    ``target_item_id`` is None for path-only entries: the reference is known
    to be internal but has not been tied to an item.
    """
    source: SourceContext
    target_path: str
    target_item_id: Optional[str] = None
    target_database: str = "master"

    @property
    def is_path_only(self) -> bool:
        return self.target_item_id is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source': self.source.to_dict(),
            'target_path': self.target_path,
            'target_item_id': self.target_item_id,
            'target_database': self.target_database,
        }


@dataclass
class ValidLink:
    """A resolved link pairing the target item with the raw path it was found under."""
    item: Item
    target_path: str
    source: Optional[SourceContext] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'item': self.item.to_dict(),
            'target_path': self.target_path,
            'source': self.source.to_dict() if self.source else None,
        }


@dataclass
class HtmlField:
    """
    A rich-text field value together with its owning item and repository.

    Attributes:
        value: HTML markup of the field
        source: Source context (item, field, language, version)
        repository: The repository the owning item lives in
    """
    value: Optional[str]
    source: SourceContext
    repository: Any = None

    @property
    def database(self) -> str:
        return getattr(self.repository, 'name', self.source.database)


@dataclass
class LinksValidationResult:
    """
    Accumulator for one validation call.

    ``links`` holds entries still believed broken; ``valid_links`` holds
    confirmed targets. A source reference is kept in exactly one of the two.
    """
    links: List[ItemLink] = field(default_factory=list)
    valid_links: List[ValidLink] = field(default_factory=list)
    created_at: str = ""

    def __post_init__(self):
        if not self.created_at:
            self.created_at = _utcnow()

    def add_valid_link(self, item: Item, target_path: str,
                       source: Optional[SourceContext] = None) -> ValidLink:
        link = ValidLink(item=item, target_path=target_path, source=source)
        self.valid_links.append(link)
        return link

    def add_broken_link(self, source: SourceContext, target_path: str,
                        target_item_id: Optional[str] = None,
                        target_database: str = "master") -> ItemLink:
        link = ItemLink(
            source=source,
            target_path=target_path,
            target_item_id=normalize_item_id(target_item_id) if target_item_id else None,
            target_database=target_database,
        )
        self.links.append(link)
        return link

    def remove_link(self, link: ItemLink) -> bool:
        """Remove a broken entry by identity; returns False when it is not present."""
        for index, existing in enumerate(self.links):
            if existing is link:
                del self.links[index]
                return True
        return False

    @property
    def broken_links(self) -> List[ItemLink]:
        return self.links

    @property
    def counts(self) -> Tuple[int, int]:
        """(valid, broken)"""
        return len(self.valid_links), len(self.links)

    @property
    def has_broken_links(self) -> bool:
        return bool(self.links)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        valid, broken = self.counts
        return {
            'created_at': self.created_at,
            'valid_count': valid,
            'broken_count': broken,
            'valid_links': [v.to_dict() for v in self.valid_links],
            'broken_links': [b.to_dict() for b in self.broken_links],
        }
