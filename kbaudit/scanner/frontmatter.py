"""Header-block parser for knowledge documents (`---` delimited key: value)."""

from typing import Iterable, Iterator, Union

DELIMITER = "---"
REQUIRED_KEYS = ("title", "category", "tags", "summary")
_QUOTES = "\"'"

Value = Union[str, list[str]]


class _Missing:
    """Sentinel for keys absent from a header block."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


class Frontmatter:
    """Parsed header block with typed accessors."""

    def __init__(self, values: dict[str, Value]):
        self._values = dict(values)

    def get(self, key: str) -> Union[Value, _Missing]:
        return self._values.get(key, MISSING)

    def scalar(self, key: str, default: str = "") -> str:
        """Value as a string; lists are joined with ", "."""
        v = self._values.get(key)
        if v is None:
            return default
        if isinstance(v, list):
            return ", ".join(v)
        return v

    def as_list(self, key: str) -> list[str]:
        """Value as a list; a scalar becomes a one-element list, empty -> []."""
        v = self._values.get(key)
        if v is None:
            return []
        if isinstance(v, list):
            return list(v)
        return [v] if v else []

    def has(self, key: str) -> bool:
        """True when the key is present with a non-empty value."""
        return bool(self._values.get(key))

    def missing_keys(self, required: Iterable[str] = REQUIRED_KEYS) -> list[str]:
        return [k for k in required if not self.has(k)]

    def keys(self) -> list[str]:
        return list(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Frontmatter({self._values!r})"


def _strip_quotes(s: str) -> str:
    s = s.strip()
    if s[:1] in _QUOTES:
        s = s[1:]
    if s[-1:] in _QUOTES:
        s = s[:-1]
    return s


def _parse_value(raw: str) -> Value:
    raw = raw.strip()
    if raw.startswith("[") and raw.endswith("]"):
        items = (_strip_quotes(v) for v in raw[1:-1].split(","))
        return [v for v in items if v]
    return _strip_quotes(raw)


def has_frontmatter(text: str) -> bool:
    return text.lstrip().startswith(DELIMITER)


def parse_frontmatter(text: str) -> Frontmatter | None:
    """Return the header block, or None when there is none (or it never closes)."""
    body = text.lstrip()
    if not body.startswith(DELIMITER):
        return None
    end = body.find(DELIMITER, len(DELIMITER))
    if end == -1:
        return None
    values: dict[str, Value] = {}
    for line in body[len(DELIMITER):end].splitlines():
        if ":" not in line:
            continue
        key, _, raw = line.partition(":")
        key = key.strip()
        if not key:
            continue
        values[key] = _parse_value(raw)
    return Frontmatter(values)
