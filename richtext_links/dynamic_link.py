"""
Dynamic Link Codec
==================
Parse and format the encoded references rich-text fields use for internal
targets.

Two encodings are understood:

- Item links:  ``~/link.aspx?_id=<32 hex>&_z=z``  (optionally ``_lang=<code>``)
- Media links: ``-/media/<32 hex>.ashx?w=100``   (any configured media prefix)

Both may be embedded in an absolute URL (``https://host/~/link.aspx?...``).
A media URL that addresses the asset by path rather than by id is not a
dynamic link and fails to parse.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional
from urllib.parse import parse_qsl, urlencode

from config_logging import (
    DEFAULT_MEDIA_EXTENSION,
    DEFAULT_MEDIA_PREFIXES,
    LINK_ROUTING_PREFIX,
    ReferenceDecodeError,
    require_argument,
)
from .models import normalize_item_id

LINK_TYPE_ITEM = "item"
LINK_TYPE_MEDIA = "media"


@dataclass
class DynamicLink:
    """
    A decoded internal reference.

    Attributes:
        item_id: Normalised id of the target item
        link_type: "item" for routed links, "media" for media links
        language: Optional language code carried by the link
        parameters: Remaining query parameters, in source order
        prefix: Media prefix the link was found under (media links only)
    """
    item_id: str
    link_type: str = LINK_TYPE_ITEM
    language: Optional[str] = None
    parameters: Dict[str, str] = field(default_factory=dict)
    prefix: str = ""
    extension: str = DEFAULT_MEDIA_EXTENSION

    @property
    def short_id(self) -> str:
        """Id as 32 upper-case hex digits."""
        return self.item_id.strip('{}').replace('-', '')

    def format(self) -> str:
        """Serialise back to the canonical markup form."""
        if self.link_type == LINK_TYPE_MEDIA:
            url = f"{self.prefix or DEFAULT_MEDIA_PREFIXES[0]}{self.short_id}.{self.extension}"
            params = dict(self.parameters)
            if self.language:
                params['la'] = self.language
            return f"{url}?{urlencode(params)}" if params else url

        params = {'_id': self.short_id}
        if self.language:
            params['_lang'] = self.language
        params.update(self.parameters)
        return f"{LINK_ROUTING_PREFIX}{urlencode(params)}"


class DynamicLinkCodec:
    """Parser/formatter bound to a set of media prefixes."""

    def __init__(self, media_prefixes: Optional[Iterable[str]] = None,
                 media_extension: str = DEFAULT_MEDIA_EXTENSION):
        prefixes = tuple(media_prefixes) if media_prefixes is not None else DEFAULT_MEDIA_PREFIXES
        # Longest first so "/-/media/" wins over "-/media/"
        self.media_prefixes = tuple(sorted((p for p in prefixes if p), key=len, reverse=True))
        self.media_extension = media_extension

    def parse(self, raw: str) -> DynamicLink:
        """
        Decode a raw reference.

        Raises:
            InvalidArgumentError: raw is None
            ReferenceDecodeError: raw is not a dynamic link
        """
        require_argument(raw, 'raw')
        text = raw.strip().replace('&amp;', '&')

        routing = text.find(LINK_ROUTING_PREFIX)
        if routing >= 0:
            return self._parse_item_link(raw, text[routing + len(LINK_ROUTING_PREFIX):])

        for prefix in self.media_prefixes:
            position = text.find(prefix)
            if position >= 0:
                return self._parse_media_link(raw, prefix, text[position + len(prefix):])

        raise ReferenceDecodeError("Not an item or media link", reference=raw)

    def _parse_item_link(self, raw: str, query: str) -> DynamicLink:
        query = query.split('#', 1)[0]
        params = dict(parse_qsl(query, keep_blank_values=True))
        raw_id = params.pop('_id', None)
        if raw_id is None:
            # Hand-written links sometimes drop the underscore
            raw_id = params.pop('id', None)
        item_id = normalize_item_id(raw_id)
        if item_id is None:
            raise ReferenceDecodeError("Item link is missing a valid _id parameter", reference=raw)
        language = params.pop('_lang', None) or None
        return DynamicLink(item_id=item_id, link_type=LINK_TYPE_ITEM,
                           language=language, parameters=params)

    def _parse_media_link(self, raw: str, prefix: str, remainder: str) -> DynamicLink:
        remainder = remainder.split('#', 1)[0]
        path, _, query = remainder.partition('?')
        name, dot, extension = path.rpartition('.')
        if not dot:
            name, extension = path, self.media_extension
        item_id = normalize_item_id(name)
        if item_id is None:
            raise ReferenceDecodeError("Media link does not address an item id", reference=raw)
        params = dict(parse_qsl(query, keep_blank_values=True))
        language = params.pop('la', None) or None
        return DynamicLink(item_id=item_id, link_type=LINK_TYPE_MEDIA, language=language,
                           parameters=params, prefix=prefix, extension=extension)


_default_codec = DynamicLinkCodec()


def parse(raw: str) -> DynamicLink:
    """Decode with the default media prefixes."""
    return _default_codec.parse(raw)
