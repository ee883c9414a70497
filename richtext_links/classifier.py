"""
Reference Classifier
====================
Decide whether a raw URL from rich-text markup points outside the system or
at an internal item/media reference worth resolving.

A reference is internal when it starts with the current origin
(``{scheme}://{host}/``, case-insensitive) or with one of the internal
prefixes (the link-routing prefix plus every media prefix). Prefix
membership is enough on its own, so references rewritten by a reverse proxy
or CDN to a different host still count as internal. Without any origin at
all, every reference is external.
"""

from typing import Iterable, List, Optional

from config_logging import (
    DEFAULT_MEDIA_PREFIXES,
    LINK_ROUTING_PREFIX,
    LinkCheckConfig,
    get_logger,
    require_argument,
)
from .models import Classification, OriginContext, RawReference, ReferenceKind

logger = get_logger('richtext_links.classifier')


class ReferenceClassifier:
    """
    Classify raw references against an origin and the internal prefixes.

    Args:
        media_prefixes: Configured media-serving prefixes
        origin: Origin of the in-flight request, if any
        server_url: Canonical server URL used when there is no request origin
    """

    def __init__(self, media_prefixes: Optional[Iterable[str]] = None,
                 origin: Optional[OriginContext] = None,
                 server_url: str = ""):
        prefixes = media_prefixes if media_prefixes is not None else DEFAULT_MEDIA_PREFIXES
        # An empty prefix would match every reference
        self.media_prefixes: List[str] = [p for p in prefixes if p]
        self.request_origin = origin
        self.server_url = server_url or ""

    @classmethod
    def from_config(cls, config: LinkCheckConfig,
                    origin: Optional[OriginContext] = None) -> 'ReferenceClassifier':
        return cls(media_prefixes=config.media_prefixes, origin=origin,
                   server_url=config.server_url)

    @property
    def origin(self) -> Optional[OriginContext]:
        """Request origin, else the configured server URL, else None."""
        if self.request_origin is not None:
            return self.request_origin
        if self.server_url:
            return OriginContext.from_url(self.server_url)
        return None

    @property
    def internal_prefixes(self) -> List[str]:
        return [LINK_ROUTING_PREFIX] + self.media_prefixes

    def is_external_link(self, link: str) -> bool:
        """
        True when ``link`` cannot be shown to be internal.

        Raises:
            InvalidArgumentError: link is None
        """
        require_argument(link, 'link')
        origin = self.origin
        if origin is None:
            return True

        if link.lower().startswith(origin.root.lower()):
            return False
        if any(link.startswith(prefix) for prefix in self.internal_prefixes):
            return False
        return True

    def is_link_worthy(self, reference: RawReference) -> bool:
        """
        Whether an internal reference carries a routed or media prefix anywhere in it.

        Images need a media prefix; anchors accept the routing prefix too.
        Matching is an ordinal substring test so absolute URLs qualify.
        """
        if reference.kind is ReferenceKind.IMAGE:
            prefixes = self.media_prefixes
        else:
            prefixes = self.internal_prefixes
        return any(prefix in reference.raw_value for prefix in prefixes)

    def classify(self, reference: RawReference) -> Classification:
        if self.is_external_link(reference.raw_value):
            return Classification.EXTERNAL
        return Classification.INTERNAL

    def should_resolve(self, reference: RawReference) -> bool:
        """Internal and link-worthy: the reference needs resolving."""
        if not reference.raw_value:
            return False
        if self.classify(reference) is Classification.EXTERNAL:
            logger.debug("Skipping external reference", url=reference.raw_value,
                         kind=reference.kind.value)
            return False
        if not self.is_link_worthy(reference):
            logger.debug("Skipping internal reference without a known prefix",
                         url=reference.raw_value, kind=reference.kind.value)
            return False
        return True
