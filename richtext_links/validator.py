"""
Rich-Text Link Validator
========================
Validation orchestrator for HTML-valued content fields.

For one field value:
1. Parse the markup and extract anchors and images
2. Skip references that are external or carry no internal prefix
3. Resolve the rest, recording each as valid or broken
4. Reconcile path-only broken links by direct media-path lookup

Every link-worthy reference ends up in exactly one of
``result.valid_links`` and ``result.links``. The validator keeps no state
between calls, so one instance may validate many fields concurrently.
"""

from typing import List, Optional

from config_logging import LinkCheckConfig, get_config, get_logger, require_argument
from .classifier import ReferenceClassifier
from .diagnostics import DiagnosticsSink, LoggingDiagnosticsSink
from .dynamic_link import DynamicLinkCodec
from .extractor import LinkExtractor, parse_html
from .media_path import MediaPathNormalizer
from .models import HtmlField, LinksValidationResult, OriginContext, SourceContext
from .reconciler import MediaPathReconciler, ReconcileOutcome
from .resolver import LinkAccumulator, ReferenceResolver

logger = get_logger('richtext_links.validator')


class HtmlFieldLinkValidator:
    """
    Validate the links of rich-text fields.

    Usage:
        validator = HtmlFieldLinkValidator(origin=OriginContext('https', 'site.example.com'))
        result = LinksValidationResult()
        validator.validate_links(field, result)
        print(result.counts)

    Args:
        config: Link check configuration (defaults to the global one)
        origin: Origin of the in-flight request, if any
        diagnostics: Sink for reconciliation faults
    """

    def __init__(self, config: Optional[LinkCheckConfig] = None,
                 origin: Optional[OriginContext] = None,
                 diagnostics: Optional[DiagnosticsSink] = None):
        self.config = config or get_config()
        self.classifier = ReferenceClassifier.from_config(self.config, origin=origin)
        self.codec = DynamicLinkCodec(self.config.media_prefixes, self.config.media_link_extension)
        self.normalizer = MediaPathNormalizer.from_config(self.config)
        self.extractor = LinkExtractor()
        self.diagnostics = diagnostics or LoggingDiagnosticsSink()

    def validate_links(self, field: HtmlField,
                       result: LinksValidationResult) -> List[ReconcileOutcome]:
        """
        Validate ``field`` into ``result``.

        Returns the per-entry outcomes of the reconciliation pass.

        Raises:
            InvalidArgumentError: field or result is None
        """
        require_argument(result, 'result')
        require_argument(field, 'field')

        with logger.log_operation('validate_links', item_id=field.source.item_id,
                                  field_id=field.source.field_id):
            if field.value:
                self._add_links(field, result)
            return self.reconcile(field, result)

    def _add_links(self, field: HtmlField, result: LinksValidationResult):
        document = parse_html(field.value, self.config.html_parser)
        references = self.extractor.extract(document)
        resolver = ReferenceResolver(LinkAccumulator(field, self.codec), self.classifier)

        for reference in references:
            if self.classifier.is_external_link(reference.raw_value):
                continue
            resolver.resolve(result, reference)

        logger.debug("Links extracted", anchors=len(references.anchors),
                     images=len(references.images),
                     valid=len(result.valid_links), broken=len(result.links))

    def reconcile(self, field: HtmlField,
                  result: LinksValidationResult) -> List[ReconcileOutcome]:
        reconciler = MediaPathReconciler(field, self.normalizer, self.diagnostics)
        return reconciler.reconcile(result)

    def validate_html(self, html: str, source: SourceContext,
                      repository) -> LinksValidationResult:
        """Validate a bare HTML string into a fresh result."""
        result = LinksValidationResult()
        self.validate_links(HtmlField(value=html, source=source, repository=repository), result)
        return result

    def is_external_link(self, link: str) -> bool:
        return self.classifier.is_external_link(link)
