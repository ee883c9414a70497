"""
Rich-Text Link Validator
========================
Validate hyperlinks and media references embedded in HTML content fields.

For every <a href> and <img src> in a field value the validator decides
whether the reference is external, an encoded item link, or a media path,
resolves internal references against the content repository, and reports
the ones that do not resolve as broken links. A reconciliation pass
re-checks path-only broken links by direct media-path lookup so that valid
media references are not reported as broken.

Version: reads from version.json (module v1.0)
"""

__version__ = "1.0.0"  # module version

from .models import (
    Classification,
    HtmlField,
    Item,
    ItemLink,
    LinksValidationResult,
    OriginContext,
    RawReference,
    ReferenceKind,
    SourceContext,
    ValidLink,
    normalize_item_id,
)
from .classifier import ReferenceClassifier
from .dynamic_link import DynamicLink, DynamicLinkCodec
from .extractor import ExtractedReferences, LinkExtractor, parse_html
from .media_path import MediaPathNormalizer
from .repository import ContentRepository, InMemoryRepository
from .diagnostics import DiagnosticsSink, LoggingDiagnosticsSink
from .resolver import LinkAccumulator, ReferenceResolver
from .reconciler import MediaPathReconciler, ReconcileOutcome, ReconcileStatus
from .validator import HtmlFieldLinkValidator
from .report import BrokenLinkReport, ReportSummary, export_csv, export_json

__all__ = [
    # Models
    'Classification',
    'HtmlField',
    'Item',
    'ItemLink',
    'LinksValidationResult',
    'OriginContext',
    'RawReference',
    'ReferenceKind',
    'SourceContext',
    'ValidLink',
    'normalize_item_id',
    # Collaborators
    'ContentRepository',
    'InMemoryRepository',
    'DynamicLink',
    'DynamicLinkCodec',
    'MediaPathNormalizer',
    'DiagnosticsSink',
    'LoggingDiagnosticsSink',
    # Engine
    'ReferenceClassifier',
    'ExtractedReferences',
    'LinkExtractor',
    'parse_html',
    'LinkAccumulator',
    'ReferenceResolver',
    'MediaPathReconciler',
    'ReconcileOutcome',
    'ReconcileStatus',
    'HtmlFieldLinkValidator',
    # Reporting
    'BrokenLinkReport',
    'ReportSummary',
    'export_csv',
    'export_json',
    # Version
    '__version__'
]
