"""
Media Path Normalizer
=====================
Turn a served media URL (or a bare media path) back into the path or id of
the media item it addresses, using the same rules the media-serving layer
applies to incoming requests.

Examples (default configuration):
    -/media/Images/my-pic.jpg?w=10  ->  /sitecore/media library/Images/my pic
    /sitecore/media library/pic     ->  /sitecore/media library/pic
    ~/media/3F2504E004F94CFC9E2F4F8A3B6C9D7A.ashx
                                    ->  {3F2504E0-04F9-4CFC-9E2F-4F8A3B6C9D7A}
"""

import re
from typing import Iterable, Optional, Tuple
from urllib.parse import unquote, urlsplit

from config_logging import (
    DEFAULT_MEDIA_LIBRARY_ROOT,
    DEFAULT_MEDIA_PREFIXES,
    LinkCheckConfig,
    MediaPathError,
    require_argument,
)
from .models import normalize_item_id

# Characters that can never appear in an item path
_ILLEGAL_PATH_CHARS = re.compile(r'[<>"*?|:\\\x00-\x1f]')
_EXTENSION = re.compile(r'\.[A-Za-z0-9]+$')


class MediaPathNormalizer:
    """
    Pure string transform from served URL to media item path.

    Args:
        media_prefixes: Prefixes the media layer serves under
        media_library_root: Root path of the media library
        encode_name_replacements: (encoded, decoded) pairs undone on the path
    """

    def __init__(self, media_prefixes: Optional[Iterable[str]] = None,
                 media_library_root: str = DEFAULT_MEDIA_LIBRARY_ROOT,
                 encode_name_replacements: Iterable[Tuple[str, str]] = (("-", " "),)):
        prefixes = tuple(media_prefixes) if media_prefixes is not None else DEFAULT_MEDIA_PREFIXES
        self.media_prefixes = tuple(sorted((p for p in prefixes if p), key=len, reverse=True))
        self.media_library_root = media_library_root.rstrip('/')
        self.encode_name_replacements = tuple(encode_name_replacements)

    @classmethod
    def from_config(cls, config: LinkCheckConfig) -> 'MediaPathNormalizer':
        return cls(
            media_prefixes=config.media_prefixes,
            media_library_root=config.media_library_root,
            encode_name_replacements=config.encode_name_replacements,
        )

    def _strip_prefix(self, path: str) -> Tuple[str, bool]:
        for prefix in self.media_prefixes:
            position = path.find(prefix)
            if position >= 0:
                return path[position + len(prefix):], True
        return path, False

    def _under_library_root(self, path: str) -> bool:
        root = self.media_library_root.lower()
        lowered = path.lower()
        return lowered == root or lowered.startswith(root + '/')

    def _decode_name(self, path: str) -> str:
        for encoded, decoded in self.encode_name_replacements:
            path = path.replace(encoded, decoded)
        return path

    def to_media_path(self, target_path: str) -> str:
        """
        Normalise a stored target path to a media item path or id.

        Raises:
            InvalidArgumentError: target_path is None
            MediaPathError: the path is empty or cannot name an item
        """
        require_argument(target_path, 'target_path')
        path = target_path.strip().replace('&amp;', '&')
        path = path.split('#', 1)[0].split('?', 1)[0]
        if '://' in path:
            path = urlsplit(path).path
        path = unquote(path)

        if _ILLEGAL_PATH_CHARS.search(path):
            raise MediaPathError("Media path contains illegal characters", path=target_path)

        if self._under_library_root(path):
            relative = path[len(self.media_library_root):]
            from_served_url = False
        else:
            relative, from_served_url = self._strip_prefix(path)

        relative = relative.strip('/')
        head, _, last = relative.rpartition('/')
        last = _EXTENSION.sub('', last)
        relative = f"{head}/{last}" if head else last

        if not relative:
            raise MediaPathError("Media path does not name an item", path=target_path)

        item_id = normalize_item_id(relative)
        if item_id is not None:
            return item_id

        if from_served_url:
            relative = self._decode_name(relative)

        segments = [s for s in relative.split('/') if s]
        if any(s in ('.', '..') for s in segments):
            raise MediaPathError("Media path must not contain relative segments", path=target_path)
        return f"{self.media_library_root}/{'/'.join(segments)}"
