"""
Reference Resolver
==================
Resolve internal references found in a rich-text field to repository items
and record every attempt in the validation result.

``LinkAccumulator`` is the base capability shared by every field type: it
records a link (valid when an item was found, path-only broken otherwise)
and resolves a routed link in the context of the field. ``ReferenceResolver``
layers the rich-text rules on top: images are decoded as media links,
anchors must carry a routed or media prefix.

Decode failures and lookup faults never escape; the reference is recorded
as broken with an unknown target.
"""

from typing import Optional, Union

from config_logging import ReferenceDecodeError, get_logger, require_argument
from .classifier import ReferenceClassifier
from .dynamic_link import DynamicLinkCodec
from .models import (
    HtmlField,
    Item,
    ItemLink,
    LinksValidationResult,
    RawReference,
    ReferenceKind,
    ValidLink,
)

logger = get_logger('richtext_links.resolver')

RecordedLink = Union[ValidLink, ItemLink]


class LinkAccumulator:
    """
    Link bookkeeping for one field.

    Args:
        field: The field whose references are being recorded
        codec: Decoder for routed and media links
    """

    def __init__(self, field: HtmlField, codec: Optional[DynamicLinkCodec] = None):
        self.field = require_argument(field, 'field')
        self.codec = codec or DynamicLinkCodec()

    @property
    def repository(self):
        return self.field.repository

    def add_link(self, result: LinksValidationResult, item: Optional[Item],
                 raw_path: str) -> RecordedLink:
        """Record ``raw_path`` as valid when ``item`` is known, otherwise as path-only broken."""
        require_argument(result, 'result')
        if item is not None:
            return result.add_valid_link(item, raw_path, source=self.field.source)
        return result.add_broken_link(self.field.source, raw_path,
                                      target_database=self.field.database)

    def lookup_by_id(self, item_id: str) -> Optional[Item]:
        if self.repository is None:
            return None
        return self.repository.get_item_by_id(item_id)

    def resolve_contextual_link(self, raw_path: str) -> Optional[Item]:
        """
        Resolve a routed or id-based media link relative to this field.

        Raises:
            ReferenceDecodeError: the link is not a decodable reference
        """
        link = self.codec.parse(raw_path)
        return self.lookup_by_id(link.item_id)


class ReferenceResolver:
    """
    Resolve anchors and images of a rich-text field.

    Usage:
        resolver = ReferenceResolver(LinkAccumulator(field), classifier)
        resolver.resolve(result, RawReference(ReferenceKind.IMAGE, src))
    """

    def __init__(self, accumulator: LinkAccumulator, classifier: ReferenceClassifier):
        self.accumulator = accumulator
        self.classifier = classifier

    def resolve_image(self, result: LinksValidationResult, src: str) -> RecordedLink:
        try:
            link = self.accumulator.codec.parse(src)
            item = self.accumulator.lookup_by_id(link.item_id)
        except ReferenceDecodeError as e:
            logger.debug("Image reference is not an id-based media link", url=src, error=str(e))
            item = None
        except Exception as e:
            logger.warning(f"Image lookup failed: {e}", url=src)
            item = None
        return self.accumulator.add_link(result, item, src)

    def resolve_anchor(self, result: LinksValidationResult, href: str) -> Optional[RecordedLink]:
        if not self.classifier.is_link_worthy(RawReference(ReferenceKind.ANCHOR, href)):
            return None
        try:
            item = self.accumulator.resolve_contextual_link(href)
        except ReferenceDecodeError as e:
            logger.debug("Anchor reference could not be decoded", url=href, error=str(e))
            item = None
        except Exception as e:
            logger.warning(f"Anchor lookup failed: {e}", url=href)
            item = None
        return self.accumulator.add_link(result, item, href)

    def resolve(self, result: LinksValidationResult,
                reference: RawReference) -> Optional[RecordedLink]:
        """
        Resolve one internal reference.

        Returns the recorded entry, or None when the reference is not
        link-worthy and was skipped.
        """
        if reference.kind is ReferenceKind.IMAGE:
            if not self.classifier.is_link_worthy(reference):
                return None
            return self.resolve_image(result, reference.raw_value)
        return self.resolve_anchor(result, reference.raw_value)
