"""
Shared fixtures for the rich-text link validator tests.
"""

import pytest
from typing import List, Tuple

from config_logging import LinkCheckConfig
from richtext_links.diagnostics import DiagnosticsSink
from richtext_links.models import HtmlField, Item, SourceContext
from richtext_links.repository import InMemoryRepository

HOME_ID = "{11111111-2222-3333-4444-555555555555}"
ABOUT_ID = "{22222222-3333-4444-5555-666666666666}"
PIC_ID = "{3F2504E0-04F9-4CFC-9E2F-4F8A3B6C9D7A}"
LOGO_ID = "{AAAAAAAA-BBBB-CCCC-DDDD-EEEEEEEEEEEE}"
MISSING_ID = "{99999999-9999-9999-9999-999999999999}"

SITE = "http://site.example.com"


def short_id(item_id: str) -> str:
    return item_id.strip('{}').replace('-', '')


class RecordingSink(DiagnosticsSink):
    """Diagnostics sink that keeps what it was given."""

    def __init__(self):
        self.records: List[Tuple[str, BaseException, object]] = []

    def log_error(self, message, error, source=None):
        self.records.append((message, error, source))


@pytest.fixture
def config() -> LinkCheckConfig:
    return LinkCheckConfig(server_url=SITE, log_format='text', log_level='WARNING')


@pytest.fixture
def repository() -> InMemoryRepository:
    return InMemoryRepository(items=[
        Item(HOME_ID, "/sitecore/content/Home"),
        Item(ABOUT_ID, "/sitecore/content/Home/About"),
        Item(PIC_ID, "/sitecore/media library/pic", template="Image"),
        Item(LOGO_ID, "/sitecore/media library/Images/company logo", template="Image"),
    ])


@pytest.fixture
def source() -> SourceContext:
    return SourceContext(item_id=HOME_ID, field_id="{F1F1F1F1-0000-0000-0000-000000000001}",
                         language="en", version=3, item_path="/sitecore/content/Home")


@pytest.fixture
def make_field(repository, source):
    def _make(html):
        return HtmlField(value=html, source=source, repository=repository)
    return _make


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()
