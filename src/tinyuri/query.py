import logging
import re
from enum import Enum, auto
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, TYPE_CHECKING
from urllib.parse import quote, quote_plus, unquote, unquote_plus

if TYPE_CHECKING:
    from .uri import URI


logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[&;]")
# left unescaped in new keys and values on top of the unreserved set, as encodeURIComponent does
_SAFE = "!*'()"


class QueryType(Enum):
    """
    The call shapes accepted by Query.set().
    """
    CLEAR = auto()
    ASSIGN = auto()
    LOAD = auto()
    KEY_VALUE = auto()


def parse_set_args(args: Tuple[Any, ...]) -> QueryType:
    if len(args) == 0:
        return QueryType.CLEAR
    if len(args) == 1:
        if isinstance(args[0], Mapping):
            return QueryType.ASSIGN
        if isinstance(args[0], str):
            return QueryType.LOAD
        raise TypeError(f"Cannot set query from {type(args[0]).__name__}, expected a mapping or a string.")
    if len(args) == 2:
        return QueryType.KEY_VALUE
    raise TypeError(f"set() takes at most 2 arguments ({len(args)} given)")


def _expand(mapping: Mapping[str, Any]) -> Iterator[Tuple[str, str]]:
    for key, value in mapping.items():
        if isinstance(value, (list, tuple)):
            for item in value:
                yield key, str(item)
        elif value:
            yield key, str(value)


class Query:
    """
    Class representing the URI query parameters.

    Parameters are held as parallel lists of keys and values so that insertion order is kept and keys may repeat.
    Parsed keys and values are kept as written and only decoded by get(), so an unchanged query is output exactly
    as it was parsed. Keys and values given to add(), merge() and set() are percent-encoded as encodeURIComponent
    does, which also escapes "+" as "%2B".
    A form-style URI-Template expression ({?a,b,c}) is held separately as the comma separated list of names.
    Every mutating method returns the owning URI to allow chaining, e.g. uri.query.add({...}).query.to_string().
    """

    _keys: List[str]
    _values: List[Optional[str]]
    _template: str

    def __init__(self, query: str, uri: "URI", template: str = "", plus_as_space: bool = False):
        """
        Create the query from the query part of a URI.

        :param query: The query string, without the leading '?'.
        :param uri: The URI which owns this query.
        :param template: The names of an unexpanded {?...} template expression.
        :param plus_as_space: Decode '+' as a space and encode spaces as '+'.
        """
        self._uri = uri
        self._plus_as_space = plus_as_space
        self._template = template
        self._keys, self._values = self._parse(query)

    def _decode(self, text: str) -> str:
        if self._plus_as_space:
            return unquote_plus(text)
        return unquote(text)

    def _encode(self, text: str) -> str:
        if self._plus_as_space:
            return quote_plus(text, safe=_SAFE)
        return quote(text, safe=_SAFE)

    @staticmethod
    def _parse(query: str) -> Tuple[List[str], List[Optional[str]]]:
        # keys and values are kept as written so that unchanged pairs are output verbatim
        keys = []
        values = []
        for pair in _SEPARATORS.split(query):
            if not pair:
                continue
            key, sep, value = pair.partition("=")
            keys.append(key)
            values.append(value if sep else None)
        return keys, values

    def _find(self, key: str) -> List[int]:
        return [i for (i, k) in enumerate(self._keys) if self._decode(k) == key]

    def _append(self, mapping: Mapping[str, Any]) -> None:
        for key, value in _expand(mapping):
            self._keys.append(self._encode(key))
            self._values.append(self._encode(value))

    def _remove(self, indices: List[int]) -> None:
        for i in reversed(indices):
            del self._keys[i]
            del self._values[i]

    def add(self, mapping: Mapping[str, Any]) -> "URI":
        """
        Append the given parameters to the query.

        List values add one parameter per item, other values are skipped if they are falsy.

        :param mapping: The parameters to add, e.g. {"name": "value"}.
        :return: The owning URI.
        """
        self._append(mapping)
        return self._uri

    def merge(self, mapping: Mapping[str, Any]) -> "URI":
        """
        Merge the given parameters into the query, replacing values for keys which already exist.

        The first occurrence of an existing key takes the new value (the first item for list values) and later
        occurrences are removed. A value of None removes every occurrence. Keys which do not exist yet are appended
        as with add().

        :param mapping: The parameters to merge, e.g. {"name": "value"}.
        :return: The owning URI.
        """
        missing = {}
        for key, value in mapping.items():
            indices = self._find(key)
            if not indices:
                missing[key] = value
                continue
            if isinstance(value, (list, tuple)):
                value = value[0] if value else None
            if value is None:
                self._remove(indices)
            else:
                self._values[indices[0]] = self._encode(str(value))
                self._remove(indices[1:])
        self._append(missing)
        return self._uri

    def clear(self) -> "URI":
        """
        Remove all the query parameters.

        :return: The owning URI.
        """
        self._keys = []
        self._values = []
        return self._uri

    def assign(self, mapping: Mapping[str, Any]) -> "URI":
        """
        Replace all the query parameters with the given ones.

        :param mapping: The new parameters, e.g. {"name": ["value1", "value2"]}.
        :return: The owning URI.
        """
        self.clear()
        self._append(mapping)
        return self._uri

    def load(self, query: str) -> "URI":
        """
        Replace all the query parameters with those parsed from a query string.

        :param query: The query string, e.g. "a=1&b=2".
        :return: The owning URI.
        """
        self._keys, self._values = self._parse(query)
        return self._uri

    def set_value(self, key: str, value: Any) -> "URI":
        """
        Set a single parameter, as merge({key: value}).

        :return: The owning URI.
        """
        return self.merge({key: value})

    def set(self, *args) -> "URI":
        """
        Set the query parameters.

        set() clears the query, set(mapping) and set(string) replace it, and set(key, value) merges a single value.

        :return: The owning URI.
        """
        query_type = parse_set_args(args)
        if query_type == QueryType.CLEAR:
            return self.clear()
        elif query_type == QueryType.ASSIGN:
            return self.assign(args[0])
        elif query_type == QueryType.LOAD:
            return self.load(args[0])
        else:
            return self.set_value(*args)

    def get(self) -> Dict[str, List[Optional[str]]]:
        """
        Return the decoded query parameters as a dictionary of key to list of values.

        A key given without "=" has the value None.
        """
        params: Dict[str, List[Optional[str]]] = {}
        for key, value in zip(self._keys, self._values):
            params.setdefault(self._decode(key), []).append(None if value is None else self._decode(value))
        return params

    def get_url_template_query(self) -> str:
        """
        Return the names of the unexpanded {?...} template expression, e.g. "a,b,c", or "" if there is none.
        """
        return self._template

    def set_url_template_query(self, names: str) -> "URI":
        """
        Set the names of the template expression, or remove it with "".

        :param names: Comma separated variable names, e.g. "a,b,c".
        :return: The owning URI.
        """
        self._template = names
        return self._uri

    def to_string(self, full: bool = False) -> str:
        """
        Return the query as a string or, if full is set, the whole URI as a string.
        """
        if full:
            return self._uri.to_string()
        pairs = []
        for key, value in zip(self._keys, self._values):
            if value is None:
                pairs.append(key)
            else:
                pairs.append(f"{key}={value}")
        return "&".join(pairs)

    def __str__(self):
        return self.to_string()

    def __bool__(self):
        return len(self._keys) > 0
