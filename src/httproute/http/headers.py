"""
=============================================================================
HEADER AND QUERY CONTAINERS
=============================================================================

Both requests and responses carry multi-valued string maps:

    Header bag (case-insensitive)         Query bag (case-sensitive)
    ─────────────────────────────         ───────────────────────────
    "Accept"  → ["text/html"]             "page" → ["1"]
    "accept"  → same entry                "Page" → different entry
    "Cookie"  → ["a=1", "b=2"]            "id"   → ["1", "2", "3"]

Header names are normalized to lowercase on every access, so
bag.get("Content-Type") and bag.get("content-type") are the same lookup.
The spelling used the first time a header was stored is kept for
serialization, which keeps outgoing headers readable.

Missing keys never raise: get() returns a single-element list holding the
default, get_one() returns the default itself.

=============================================================================
"""

from typing import Dict, Iterator, List, Tuple, Union


Values = Union[str, List[str]]


class QueryParamBag:
    """
    Multi-valued map with case-sensitive keys.

    Used for query parameters, where "?Page=1" and "?page=1" are distinct.
    """

    def __init__(self):
        self._map: Dict[str, List[str]] = {}

    def _key(self, key: str) -> str:
        return key

    def has(self, key: str) -> bool:
        """Check if a key is present (with any number of values)."""
        return self._key(key) in self._map

    def get(self, key: str, default: str = "") -> List[str]:
        """
        Get all values for a key.

        Returns:
            The stored values, or [default] when the key is absent.
        """
        values = self._map.get(self._key(key))
        if values is None:
            return [default]
        return list(values)

    def get_one(self, key: str, default: str = "") -> str:
        """Get the first value for a key, or default."""
        return self.get(key, default)[0]

    def set(self, key: str, value: Values) -> None:
        """Replace all values for a key."""
        values = [value] if isinstance(value, str) else list(value)
        self._map[self._key(key)] = values

    def append(self, key: str, value: Values) -> None:
        """Add one or more values after any existing ones."""
        values = [value] if isinstance(value, str) else list(value)
        self._map.setdefault(self._key(key), []).extend(values)

    def unset(self, key: str) -> None:
        """Remove a key and all its values. Missing keys are ignored."""
        self._map.pop(self._key(key), None)

    def items(self) -> Iterator[Tuple[str, List[str]]]:
        """Iterate (key, values) pairs."""
        for key, values in self._map.items():
            yield key, list(values)

    def to_dict(self) -> Dict[str, List[str]]:
        return {key: list(values) for key, values in self._map.items()}

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __len__(self) -> int:
        return len(self._map)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._map!r})"


class HeaderBag(QueryParamBag):
    """
    Multi-valued map with case-insensitive keys.

    Keys are stored lowercase; the original spelling of the first insert is
    remembered so responses go out as "Content-Type" rather than
    "content-type".
    """

    def __init__(self):
        super().__init__()
        self._names: Dict[str, str] = {}

    def _key(self, key: str) -> str:
        return key.lower()

    def set(self, key: str, value: Values) -> None:
        self._names.setdefault(key.lower(), key)
        super().set(key, value)

    def append(self, key: str, value: Values) -> None:
        self._names.setdefault(key.lower(), key)
        super().append(key, value)

    def unset(self, key: str) -> None:
        self._names.pop(key.lower(), None)
        super().unset(key)

    def lines(self) -> Iterator[Tuple[str, str]]:
        """
        Iterate (display-name, value) pairs, one per value.

        A header with two values yields two lines, which is how Set-Cookie
        has to be sent.
        """
        for key, values in self._map.items():
            name = self._names.get(key, key)
            for value in values:
                yield name, value
