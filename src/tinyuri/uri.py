import logging
import re
from typing import Optional, Tuple, Union

from .config import Config
from .errors import malformed
from .path import Path
from .query import Query


logger = logging.getLogger(__name__)

_SCHEME = re.compile(r"([A-Za-z][A-Za-z0-9+.-]*):(?=//)")
# stops at the path, query, fragment or a {?...} / {&...} template expression
_AUTHORITY = re.compile(r"(?:[^/?#{]|\{(?![?&]))*")
_PORT = re.compile(r"[0-9]+")
_TEMPLATE_QUERY = re.compile(r"\{\?([^{}]*)\}$")
_TEMPLATE_CONTINUATION = re.compile(r"\{&([^{}]*)\}$")


class _Nothing:
    pass


NOTHING = _Nothing()


def _find_query(text: str) -> int:
    # first '?' which is not part of a {...} template expression
    depth = 0
    for i, c in enumerate(text):
        if c == "{":
            depth += 1
        elif c == "}":
            depth = max(depth - 1, 0)
        elif c == "?" and depth == 0:
            return i
    return -1


class URI:
    """
    Class for parsing, modifying and rebuilding a URI.

    The URI is split into scheme, authority (user, password, host and port), path, query and fragment. The path
    and query are exposed as mutable components:

        uri = URI("https://example.com/path/to/file.xml?a=1")
        uri.path.replace("file.json", "file").query.merge({"a": "2"}).to_string()

    Parsing is permissive: parts which are missing are left empty and parts which are malformed issue a
    MalformedInputWarning (or raise a MalformedInputError in strict mode) and are kept as best as possible.
    """

    path: Path
    query: Query

    def __init__(self, uri: Union[str, "URI", None] = None, *, strict: Optional[bool] = None,
                 config: Optional[Config] = None):
        """
        Create a URI object by either parsing a URI string or copying from an existing URI object.

        :param uri: A URI string, another URI to copy from or None for an empty URI.
        :param strict: Raise a MalformedInputError for malformed input rather than warning. Takes precedence over
            the parser.strict config option.
        :param config: Configuration to read the parser options from.
        """
        plus_as_space = False
        if isinstance(uri, URI):
            plus_as_space = uri._plus_as_space
            if strict is None:
                strict = uri._strict
        if config is not None:
            plus_as_space = config.plus_as_space
            if strict is None:
                strict = config.strict
        self._strict: bool = bool(strict)
        self._plus_as_space: bool = plus_as_space

        self._scheme: str = ""
        self._slashes: bool = False
        self._user: Optional[str] = None
        self._password: Optional[str] = None
        self._host: str = ""
        self._port: Optional[str] = None
        self._fragment: Optional[str] = None

        self._parse("" if uri is None else str(uri))

    def _parse(self, text: str) -> None:
        match = _SCHEME.match(text)
        if match:
            self._scheme = match.group(1)
            self._slashes = True
            text = text[match.end() + 2:]
        elif text.startswith("//"):
            self._slashes = True
            text = text[2:]

        authority = _AUTHORITY.match(text).group(0)
        self._parse_authority(authority)
        text = text[len(authority):]

        text, mark, fragment = text.partition("#")
        if mark:
            self._fragment = fragment

        index = _find_query(text)
        if index == -1:
            path, query = text, ""
        else:
            path, query = text[:index], text[index + 1:]

        path, template = self._split_template(path, _TEMPLATE_QUERY)
        if not template and query:
            query, template = self._split_template(query, _TEMPLATE_CONTINUATION)
            if not template and _TEMPLATE_QUERY.fullmatch(query):
                query, template = self._split_template(query, _TEMPLATE_QUERY)

        logger.debug("Parsed URI parts: scheme=%r, authority=%r, path=%r, query=%r, template=%r, fragment=%r",
                     self._scheme, authority, path, query, template, self._fragment)

        self.path = Path(path, self, strict=self._strict)
        self.query = Query(query, self, template=template, plus_as_space=self._plus_as_space)

    def _split_template(self, text: str, pattern: re.Pattern) -> Tuple[str, str]:
        match = pattern.search(text)
        if not match:
            return text, ""
        names = match.group(1)
        if not names.strip():
            malformed(f"Empty template query expression in {text!r}.", self._strict)
            return text, ""
        return text[:match.start()], names

    def _parse_authority(self, authority: str) -> None:
        userinfo, at, host = authority.rpartition("@")
        if at:
            user, colon, password = userinfo.partition(":")
            self._user = user
            self._password = password if colon else None
            if not host:
                malformed(f"User information without host in authority {authority!r}.", self._strict)

        if host.startswith("["):
            end = host.find("]")
            if end == -1:
                malformed(f"Unterminated IPv6 literal in authority {authority!r}.", self._strict)
            elif host[end + 1:end + 2] == ":" and _PORT.fullmatch(host[end + 2:]):
                host, self._port = host[:end + 1], host[end + 2:]
        elif host.count(":") > 1:
            malformed(f"IPv6 address in authority {authority!r} should be enclosed in brackets.", self._strict)
        else:
            name, colon, port = host.rpartition(":")
            if colon and _PORT.fullmatch(port):
                host, self._port = name, port
        self._host = host

    def scheme(self, value: Union[str, _Nothing, None] = NOTHING) -> Union[str, "URI"]:
        """
        Get or set the URI scheme.

        :param value: The new scheme. If not given the current scheme is returned.
        :return: The current scheme, or this URI when setting.
        """
        if value is NOTHING:
            return self._scheme
        self._scheme = value or ""
        return self

    def host(self, value: Union[str, _Nothing, None] = NOTHING) -> Union[str, "URI"]:
        """
        Get or set the URI host.

        :param value: The new host. If not given the current host is returned.
        :return: The current host, or this URI when setting.
        """
        if value is NOTHING:
            return self._host
        self._host = value or ""
        return self

    def port(self, value: Union[str, int, _Nothing, None] = NOTHING) -> Union[str, "URI"]:
        """
        Get or set the URI port.

        :param value: The new port, or None to remove it. If not given the current port is returned.
        :return: The current port ("" if none), or this URI when setting.
        """
        if value is NOTHING:
            return self._port or ""
        self._port = None if value is None or value == "" else str(value)
        return self

    def user(self, value: Union[str, _Nothing, None] = NOTHING) -> Union[str, "URI"]:
        if value is NOTHING:
            return self._user or ""
        self._user = value
        if value is None:
            self._password = None
        return self

    def password(self, value: Union[str, _Nothing, None] = NOTHING) -> Union[str, "URI"]:
        if value is NOTHING:
            return self._password or ""
        self._password = value
        return self

    def fragment(self, value: Union[str, _Nothing, None] = NOTHING) -> Union[str, "URI"]:
        if value is NOTHING:
            return self._fragment or ""
        self._fragment = value
        return self

    def authority(self) -> str:
        """
        Return the URI authority, i.e. user:password@host:port with the optional parts left out if not set.
        """
        authority = ""
        if self._user is not None:
            authority = self._user
            if self._password is not None:
                authority += f":{self._password}"
            authority += "@"
        authority += self._host
        if self._port is not None:
            authority += f":{self._port}"
        return authority

    def to_string(self) -> str:
        """
        Return the URI object as a URI string.

        :return: A string representation of the URI.
        """
        uri = ""
        if self._scheme:
            uri = f"{self._scheme}://"
        elif self._slashes:
            uri = "//"
        uri += self.authority()

        path = self.path.to_string()
        query = self.query.to_string()
        template = self.query.get_url_template_query()
        if path or (self.path.rooted and (query or template)):
            uri += f"/{path}"
        if query:
            uri += f"?{query}"
            if template:
                uri += f"{{&{template}}}"
        elif template:
            uri += f"{{?{template}}}"
        if self._fragment is not None:
            uri += f"#{self._fragment}"
        return uri

    def __repr__(self):
        return f"URI({self.to_string()})"

    def __str__(self):
        return self.to_string()

    def __eq__(self, other):
        if not isinstance(other, URI):
            return NotImplemented
        return self.to_string() == other.to_string()
