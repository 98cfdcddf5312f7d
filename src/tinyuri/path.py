import logging
import re
from enum import Enum, auto
from typing import List, Union, TYPE_CHECKING
from urllib.parse import quote, unquote

from .errors import malformed

if TYPE_CHECKING:
    from .uri import URI


logger = logging.getLogger(__name__)

_TEMPLATE_TOKEN = re.compile(r"(\{[^{}]*\})")
# sub-delims, ':' and '@' are allowed unescaped in a path segment
_SAFE = "!$&'()*+,;=:@{}"


def _escape(segment: str) -> str:
    # keeps existing %XX escapes and template tokens, escapes anything else not allowed in a segment
    parts = _TEMPLATE_TOKEN.split(segment)
    return "".join(part if i % 2 else quote(part, safe=_SAFE + "%") for (i, part) in enumerate(parts))


def _unescape(segment: str) -> str:
    parts = _TEMPLATE_TOKEN.split(segment)
    # odd indices are the template tokens captured by the split
    return "".join(part if i % 2 else unquote(part) for (i, part) in enumerate(parts))


class ReplaceType(Enum):
    """
    The call shapes accepted by Path.replace().
    """
    ALL = auto()
    INDEX = auto()
    BASENAME = auto()


def parse_replace_arg(index_or_base: Union[int, str, None]) -> ReplaceType:
    if index_or_base is None:
        return ReplaceType.ALL
    if isinstance(index_or_base, bool):
        raise TypeError("Path segment index must be an int, not bool.")
    if isinstance(index_or_base, int):
        return ReplaceType.INDEX
    if isinstance(index_or_base, str):
        return ReplaceType.BASENAME
    raise TypeError(f"Cannot replace path segment by {type(index_or_base).__name__}, expected an int or a string.")


class Path:
    """
    Class representing the URI path as a list of segments.

    Segments are held as they appear in the URI, so an unchanged path is written back exactly as it was parsed,
    and are percent-decoded by get(). URI-Template tokens ({name}) are never decoded or escaped. Values given to
    the replace methods are path text: existing %XX escapes are kept and any other character which is not allowed
    in a segment is escaped. Every mutating method returns the owning URI to allow chaining, e.g.
    uri.path.replace("x", 0).path.to_string().
    """

    _segments: List[str]
    rooted: bool
    trailing_slash: bool

    def __init__(self, path: str, uri: "URI", strict: bool = False):
        """
        Create the path from the path part of a URI.

        :param path: The path string, e.g. "/path/to/file.xml".
        :param uri: The URI which owns this path.
        :param strict: Raise on malformed template tokens instead of warning.
        """
        self._uri = uri
        self._strict = strict
        self._parse(path)

    def _parse(self, path: str) -> None:
        self.rooted = path.startswith("/")
        segments = path.split("/")
        if self.rooted:
            segments = segments[1:]
        self.trailing_slash = False
        if segments and segments[-1] == "":
            segments = segments[:-1]
            self.trailing_slash = len(segments) > 0
        for segment in segments:
            if segment.count("{") != segment.count("}"):
                malformed(f"Unbalanced template braces in path segment {segment!r}.", self._strict)
        self._segments = [_escape(segment) for segment in segments]

    def get(self) -> List[str]:
        """
        Return the percent-decoded path segments, in order.
        """
        return [_unescape(segment) for segment in self._segments]

    def replace_all(self, value: str) -> "URI":
        """
        Replace the whole path.

        :param value: The new path text, split on '/' into segments.
        :return: The owning URI.
        """
        self._parse(value)
        return self._uri

    def replace_segment(self, value: str, index: int) -> "URI":
        """
        Replace the segment at the given index.

        Negative indices count from the end of the path. An index outside the path leaves it unchanged.

        :param value: The new segment text.
        :param index: The index of the segment to replace.
        :return: The owning URI.
        """
        try:
            self._segments[index] = _escape(value)
        except IndexError:
            logger.debug("Segment index %d out of range for path of %d segments", index, len(self._segments))
        return self._uri

    def replace_basename(self, value: str, base: str) -> "URI":
        """
        Replace the last segment if its base name is the given one.

        e.g. replace_basename("file.json", "file") turns "path/to/file.xml" into "path/to/file.json".

        :param value: The new last segment text.
        :param base: The decoded base name (the segment without extension) of the current last segment.
        :return: The owning URI.
        """
        if self._segments:
            last = _unescape(self._segments[-1])
            if last == base or last.startswith(base + "."):
                self._segments[-1] = _escape(value)
            else:
                logger.debug("Last path segment %r does not have base name %r", last, base)
        return self._uri

    def replace(self, value: str, index_or_base: Union[int, str, None] = None) -> "URI":
        """
        Replace the path or a part of it.

        replace(value) replaces the whole path, replace(value, index) replaces a single segment and
        replace(value, base) replaces the last segment if its base name matches. In every form value is path text,
        so replace("a%20b") and replace("a%20b", 0) both give a segment which decodes to "a b".

        :return: The owning URI.
        """
        replace_type = parse_replace_arg(index_or_base)
        if replace_type == ReplaceType.ALL:
            return self.replace_all(value)
        elif replace_type == ReplaceType.INDEX:
            return self.replace_segment(value, index_or_base)
        else:
            return self.replace_basename(value, index_or_base)

    def delete(self) -> "URI":
        """
        Remove the last segment of the path.

        :return: The owning URI.
        """
        if self._segments:
            self._segments.pop()
        return self._uri

    def to_string(self, full: bool = False) -> str:
        """
        Return the path, without leading '/', or, if full is set, the whole URI as a string.
        """
        if full:
            return self._uri.to_string()
        path = "/".join(self._segments)
        if self._segments and self.trailing_slash:
            path += "/"
        return path

    def __str__(self):
        return self.to_string()

    def __len__(self):
        return len(self._segments)
