# -*- coding: utf-8 -*-
"""tinyuri.

tinyuri parses a URI string into its parts so that they can be inspected and rewritten, and then rebuilds the URI
string from the modified parts.

The URI is made up of:
    * The scheme and authority (user, password, host and port), read and set through accessor methods.
    * The path, a list of segments which can be replaced as a whole, by index or by file base name.
    * The query, an ordered list of key/value pairs supporting repeated keys, which can be added to, merged into,
      replaced or cleared.

Unexpanded URI-Template placeholders ({user} path segments and {?a,b,c} query expressions) are kept verbatim.
"""

from importlib import metadata
from typing import Tuple, cast

from .errors import MalformedInputWarning, MalformedInputError
from .config import Config
from .path import Path, ReplaceType
from .query import Query, QueryType
from .uri import URI

try:
    __version__: str = metadata.version("tinyuri")
except metadata.PackageNotFoundError:
    # When running from a source checkout which has not been installed
    __version__: str = "0.0.0"
__version_info__: Tuple[str, str, str] = cast(Tuple[str, str, str], tuple(__version__.split('.')))
