"""
Media-Path Reconciler
=====================
Second pass over broken links that only carry a target path.

A reference can end up broken with no item id simply because structured
decoding could not map a served media path to an item. Normalising the path
the way the media layer does and looking it up directly catches those
cases: hits move from broken to valid, misses stay broken, and faults are
reported to the diagnostics sink without stopping the batch.

Lookups run under ``repository.access_checks_disabled()``; the lookup only
answers whether an item exists.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from config_logging import get_logger, require_argument
from .diagnostics import DiagnosticsSink, LoggingDiagnosticsSink
from .media_path import MediaPathNormalizer
from .models import HtmlField, Item, ItemLink, LinksValidationResult

logger = get_logger('richtext_links.reconciler')


class ReconcileStatus(Enum):
    PROMOTED = "promoted"     # Found by path, moved to valid
    NOT_FOUND = "not_found"   # No item at the normalised path, still broken
    FAILED = "failed"         # Normalisation or lookup raised, still broken


@dataclass
class ReconcileOutcome:
    """What happened to one path-only broken entry."""
    link: ItemLink
    status: ReconcileStatus
    media_path: Optional[str] = None
    item: Optional[Item] = None
    error: Optional[BaseException] = None

    def to_dict(self):
        return {
            'target_path': self.link.target_path,
            'status': self.status.value,
            'media_path': self.media_path,
            'item_id': self.item.id if self.item else None,
            'error': str(self.error) if self.error else None,
        }


class MediaPathReconciler:
    """
    Re-check path-only broken links of one field.

    Args:
        field: Field the links were collected from (supplies the repository)
        normalizer: Served URL to media path transform
        diagnostics: Where reconciliation faults are reported
    """

    def __init__(self, field: HtmlField,
                 normalizer: Optional[MediaPathNormalizer] = None,
                 diagnostics: Optional[DiagnosticsSink] = None):
        self.field = require_argument(field, 'field')
        self.normalizer = normalizer or MediaPathNormalizer()
        self.diagnostics = diagnostics or LoggingDiagnosticsSink()

    def reconcile(self, result: LinksValidationResult) -> List[ReconcileOutcome]:
        """Promote resolvable path-only entries of ``result`` in place."""
        require_argument(result, 'result')
        repository = self.field.repository
        if repository is None:
            return []

        outcomes = []
        with repository.access_checks_disabled():
            for link in list(result.links):
                if not link.is_path_only:
                    continue
                outcome = self._check(repository, link)
                if outcome.status is ReconcileStatus.PROMOTED:
                    result.add_valid_link(outcome.item, link.target_path, source=link.source)
                    result.remove_link(link)
                    logger.info("Broken link resolved by media path",
                                target_path=link.target_path, item_id=outcome.item.id)
                elif outcome.status is ReconcileStatus.FAILED:
                    self._report(link, outcome.error)
                outcomes.append(outcome)
        return outcomes

    def _check(self, repository, link: ItemLink) -> ReconcileOutcome:
        media_path = None
        try:
            media_path = self.normalizer.to_media_path(link.target_path)
            item = repository.get_item(media_path)
        except Exception as e:
            return ReconcileOutcome(link, ReconcileStatus.FAILED, media_path=media_path, error=e)
        if item is None:
            return ReconcileOutcome(link, ReconcileStatus.NOT_FOUND, media_path=media_path)
        return ReconcileOutcome(link, ReconcileStatus.PROMOTED, media_path=media_path, item=item)

    def _report(self, link: ItemLink, error: BaseException):
        message = (f"Failed to revise potentially-valid broken link, "
                   f"TargetPath: {link.target_path}, Source: {link.source.describe()}")
        self.diagnostics.log_error(message, error, self)
