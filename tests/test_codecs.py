"""
Tests for Dynamic Link Codec and Media Path Normalizer
======================================================
"""

import pytest

from config_logging import InvalidArgumentError, MediaPathError, ReferenceDecodeError
from richtext_links.dynamic_link import (
    LINK_TYPE_ITEM,
    LINK_TYPE_MEDIA,
    DynamicLink,
    DynamicLinkCodec,
    parse,
)
from richtext_links.media_path import MediaPathNormalizer
from richtext_links.models import normalize_item_id

from conftest import HOME_ID, PIC_ID, short_id


class TestItemIds:
    """Tests for item id normalisation."""

    def test_spellings_normalise_to_braced_upper(self):
        """Test that every GUID spelling normalises to the braced form."""
        expected = PIC_ID
        assert normalize_item_id(short_id(PIC_ID).lower()) == expected
        assert normalize_item_id(PIC_ID.strip('{}')) == expected
        assert normalize_item_id(PIC_ID.lower()) == expected

    def test_non_ids(self):
        """Test values that are not GUIDs."""
        assert normalize_item_id("") is None
        assert normalize_item_id("pic") is None
        assert normalize_item_id("/sitecore/media library/pic") is None


class TestDynamicLinkParse:
    """Tests for DynamicLinkCodec.parse."""

    def test_item_link(self):
        """Test decoding a routed item link."""
        link = parse(f"~/link.aspx?_id={short_id(HOME_ID)}&_z=z")
        assert link.item_id == HOME_ID
        assert link.link_type == LINK_TYPE_ITEM
        assert link.parameters == {'_z': 'z'}

    def test_item_link_language_and_entities(self):
        """Test language extraction and entity-encoded separators."""
        link = parse(f"~/link.aspx?_id={short_id(HOME_ID)}&amp;_lang=de-DE&amp;_z=z")
        assert link.language == "de-DE"
        assert link.parameters == {'_z': 'z'}

    def test_bare_id_parameter(self):
        """Test an item link using id= instead of _id=."""
        assert parse(f"~/link.aspx?id={HOME_ID}").item_id == HOME_ID

    def test_absolute_item_link(self):
        """Test a routed link embedded in an absolute URL."""
        link = parse(f"https://site.example.com/~/link.aspx?_id={short_id(HOME_ID)}")
        assert link.item_id == HOME_ID

    def test_media_link_with_parameters(self):
        """Test decoding a media link with query parameters."""
        link = parse(f"-/media/{short_id(PIC_ID)}.ashx?w=100&h=50&la=en")
        assert link.link_type == LINK_TYPE_MEDIA
        assert link.item_id == PIC_ID
        assert link.parameters == {'w': '100', 'h': '50'}
        assert link.language == "en"
        assert link.prefix == "-/media/"

    def test_media_link_by_path_is_not_dynamic(self):
        """Test that a media URL addressed by path does not decode."""
        with pytest.raises(ReferenceDecodeError):
            parse("-/media/Images/company-logo.jpg")

    def test_missing_id(self):
        """Test routed links without a usable id."""
        with pytest.raises(ReferenceDecodeError):
            parse("~/link.aspx?_z=z")
        with pytest.raises(ReferenceDecodeError):
            parse("~/link.aspx?_id=not-a-guid")

    def test_unrelated_url(self):
        """Test a plain site path."""
        with pytest.raises(ReferenceDecodeError):
            parse("/about/us")

    def test_none_raises_invalid_argument(self):
        """Test None input."""
        with pytest.raises(InvalidArgumentError):
            parse(None)

    def test_custom_media_prefix(self):
        """Test a codec bound to a non-default media prefix."""
        codec = DynamicLinkCodec(media_prefixes=["/assets/"])
        assert codec.parse(f"/assets/{short_id(PIC_ID)}.png").extension == "png"
        with pytest.raises(ReferenceDecodeError):
            codec.parse(f"-/media/{short_id(PIC_ID)}.ashx")

    def test_empty_media_prefix_ignored(self):
        """Test that an empty configured prefix does not match everything."""
        codec = DynamicLinkCodec(media_prefixes=["", "-/media/"])
        assert codec.media_prefixes == ("-/media/",)
        with pytest.raises(ReferenceDecodeError):
            codec.parse(f"/about/{short_id(PIC_ID)}")


class TestDynamicLinkFormat:
    """Tests for DynamicLink.format."""

    def test_item_link_format(self):
        """Test formatting a routed item link."""
        link = DynamicLink(item_id=HOME_ID, parameters={'_z': 'z'})
        assert link.format() == f"~/link.aspx?_id={short_id(HOME_ID)}&_z=z"

    def test_media_link_format_parses_back(self):
        """Test that a formatted media link decodes to the same link."""
        link = DynamicLink(item_id=PIC_ID, link_type=LINK_TYPE_MEDIA, parameters={'w': '10'})
        assert parse(link.format()) == DynamicLink(
            item_id=PIC_ID, link_type=LINK_TYPE_MEDIA, parameters={'w': '10'}, prefix="-/media/"
        )


class TestMediaPathNormalizer:
    """Tests for MediaPathNormalizer.to_media_path."""

    @pytest.fixture
    def normalizer(self):
        """Normalizer with default settings."""
        return MediaPathNormalizer()

    def test_media_library_path_unchanged(self, normalizer):
        """Test that a media library path passes through."""
        assert normalizer.to_media_path("/sitecore/media library/pic") == "/sitecore/media library/pic"

    def test_root_match_needs_segment_boundary(self, normalizer):
        """Test that a sibling of the library root is not treated as inside it."""
        assert normalizer.to_media_path("/sitecore/media librarypic") != "/sitecore/media library/pic"
        assert (normalizer.to_media_path("/sitecore/media library-old/pic")
                == "/sitecore/media library/sitecore/media library-old/pic")

    def test_served_url_to_item_path(self, normalizer):
        """Test a served URL with extension and query."""
        assert (normalizer.to_media_path("-/media/Images/company-logo.jpg?w=10")
                == "/sitecore/media library/Images/company logo")

    def test_absolute_served_url(self, normalizer):
        """Test an absolute served URL with a port and escapes."""
        assert (normalizer.to_media_path("http://cdn.example.com:8080/~/media/Images/a%20b.png")
                == "/sitecore/media library/Images/a b")

    def test_short_id_becomes_item_id(self, normalizer):
        """Test that an id-form media URL yields the item id."""
        assert normalizer.to_media_path(f"~/media/{short_id(PIC_ID)}.ashx") == PIC_ID

    def test_illegal_characters(self, normalizer):
        """Test rejection of characters that cannot appear in a path."""
        with pytest.raises(MediaPathError):
            normalizer.to_media_path("/sitecore/media library/bad<name>")

    def test_empty_path(self, normalizer):
        """Test paths that name no item."""
        with pytest.raises(MediaPathError):
            normalizer.to_media_path("-/media/")
        with pytest.raises(MediaPathError):
            normalizer.to_media_path("   ")

    def test_relative_segments_rejected(self, normalizer):
        """Test rejection of dot segments."""
        with pytest.raises(MediaPathError):
            normalizer.to_media_path("-/media/../content/Home")

    def test_empty_prefix_ignored(self):
        """Test that an empty configured prefix is dropped."""
        normalizer = MediaPathNormalizer(media_prefixes=["", "-/media/"])
        assert normalizer.media_prefixes == ("-/media/",)

    def test_none_raises(self, normalizer):
        """Test None input."""
        with pytest.raises(InvalidArgumentError):
            normalizer.to_media_path(None)
