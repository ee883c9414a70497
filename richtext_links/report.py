"""
Broken Link Report
==================
Run link validation across many rich-text fields and export the findings
to JSON or CSV.

This module is designed to be independent of the HTTP surface and can be
driven from scripts or scheduled jobs.
"""

import csv
import io
import json
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from config_logging import get_logger, handle_errors
from .models import HtmlField, LinksValidationResult
from .reconciler import ReconcileStatus
from .validator import HtmlFieldLinkValidator

logger = get_logger('richtext_links.report')


@dataclass
class ReportSummary:
    """
    Totals for a report run.

    Attributes:
        fields_scanned: Number of fields validated
        valid: Valid links across all fields
        broken: Broken links across all fields
        promoted: Links moved to valid by media-path reconciliation
        reconcile_failures: Reconciliation lookups that raised
        fields_failed: Fields whose validation raised (e.g. parser failure)
    """
    fields_scanned: int = 0
    valid: int = 0
    broken: int = 0
    promoted: int = 0
    reconcile_failures: int = 0
    fields_failed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class FieldReport:
    field: HtmlField
    result: LinksValidationResult
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {'source': self.field.source.to_dict(), 'error': self.error}
        data.update(self.result.to_dict())
        return data


@dataclass
class BrokenLinkReport:
    """Results of validating a batch of fields."""
    fields: List[FieldReport] = field(default_factory=list)
    summary: ReportSummary = field(default_factory=ReportSummary)
    created_at: str = ""

    def __post_init__(self):
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')

    @classmethod
    @handle_errors(logger)
    def run(cls, fields: Iterable[HtmlField],
            validator: Optional[HtmlFieldLinkValidator] = None) -> 'BrokenLinkReport':
        """
        Validate every field.

        A field whose validation raises is recorded with its error and the
        run moves on to the next field.
        """
        validator = validator or HtmlFieldLinkValidator()
        report = cls()
        with logger.log_operation('broken_link_report'):
            for html_field in fields:
                report.add(validator, html_field)
        logger.info("Broken link report complete", **report.summary.to_dict())
        return report

    def add(self, validator: HtmlFieldLinkValidator, html_field: HtmlField) -> FieldReport:
        result = LinksValidationResult()
        entry = FieldReport(field=html_field, result=result)
        self.summary.fields_scanned += 1
        try:
            outcomes = validator.validate_links(html_field, result)
        except Exception as e:
            logger.error(f"Field validation failed: {e}", exc_info=True,
                         source=html_field.source.describe())
            entry.error = f"{type(e).__name__}: {e}"
            self.summary.fields_failed += 1
        else:
            self.summary.promoted += sum(1 for o in outcomes if o.status is ReconcileStatus.PROMOTED)
            self.summary.reconcile_failures += sum(1 for o in outcomes if o.status is ReconcileStatus.FAILED)
        valid, broken = result.counts
        self.summary.valid += valid
        self.summary.broken += broken
        self.fields.append(entry)
        return entry

    @property
    def broken_fields(self) -> List[FieldReport]:
        return [f for f in self.fields if f.result.has_broken_links]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'created_at': self.created_at,
            'summary': self.summary.to_dict(),
            'fields': [f.to_dict() for f in self.fields],
        }


def export_json(report: BrokenLinkReport, only_broken: bool = False) -> str:
    """
    Export a report to JSON.

    Args:
        report: Report to export
        only_broken: Restrict the field list to fields with broken links
    """
    data = report.to_dict()
    if only_broken:
        data['fields'] = [f.to_dict() for f in report.broken_fields]
    data['exported_at'] = datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
    return json.dumps(data, indent=2)


def export_csv(report: BrokenLinkReport, include_valid: bool = False) -> str:
    """
    Export a report to CSV, one row per link.

    Returns:
        CSV content as string
    """
    output = io.StringIO()

    # Use UTF-8 BOM for Excel compatibility
    output.write('\ufeff')

    writer = csv.writer(output, quoting=csv.QUOTE_MINIMAL)
    writer.writerow([
        'Status',
        'Source Item',
        'Field',
        'Language',
        'Version',
        'Target Path',
        'Target Item',
    ])

    for entry in report.fields:
        source = entry.field.source
        for link in entry.result.broken_links:
            writer.writerow(['BROKEN', source.item_id, source.field_id, source.language,
                             source.version, link.target_path, link.target_item_id or ''])
        if include_valid:
            for valid in entry.result.valid_links:
                writer.writerow(['VALID', source.item_id, source.field_id, source.language,
                                 source.version, valid.target_path, valid.item.id])

    return output.getvalue()
