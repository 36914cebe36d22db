from __future__ import annotations

import re
from typing import Dict, Hashable, Tuple

FALLBACK_IDENTIFIER = "variable"

_CYRILLIC_TO_LATIN: Dict[str, str] = {
    "а": "a", "б": "b", "в": "v", "г": "g", "д": "d", "е": "e", "ё": "yo",
    "ж": "zh", "з": "z", "и": "i", "й": "y", "к": "k", "л": "l", "м": "m",
    "н": "n", "о": "o", "п": "p", "р": "r", "с": "s", "т": "t", "у": "u",
    "ф": "f", "х": "h", "ц": "ts", "ч": "ch", "ш": "sh", "щ": "shch",
    "ъ": "", "ы": "y", "ь": "", "э": "e", "ю": "yu", "я": "ya",
    "А": "A", "Б": "B", "В": "V", "Г": "G", "Д": "D", "Е": "E", "Ё": "Yo",
    "Ж": "Zh", "З": "Z", "И": "I", "Й": "Y", "К": "K", "Л": "L", "М": "M",
    "Н": "N", "О": "O", "П": "P", "Р": "R", "С": "S", "Т": "T", "У": "U",
    "Ф": "F", "Х": "H", "Ц": "Ts", "Ч": "Ch", "Ш": "Sh", "Щ": "Shch",
    "Ъ": "", "Ы": "Y", "Ь": "", "Э": "E", "Ю": "Yu", "Я": "Ya",
}

_SEPARATORS_RE = re.compile(r"[\s-]+")
_INVALID_RE = re.compile(r"[^a-zA-Z0-9_]")
_UNDERSCORES_RE = re.compile(r"_+")


def transliterate(text: str) -> str:
    return "".join(_CYRILLIC_TO_LATIN.get(ch, ch) for ch in str(text or ""))


def normalize_identifier(label: str) -> str:
    """
    Convert a human-readable label into a snake_case machine identifier.

      - Cyrillic letters are transliterated, anything else passes through
      - whitespace and hyphens -> underscores
      - characters outside [A-Za-z0-9_] are dropped
      - repeated underscores collapse, the result is lowercased and trimmed

    Never returns an empty string: `"variable"` is used when nothing survives.

    >>> normalize_identifier("Имя Клиента")
    'imya_klienta'
    """
    t = transliterate(label)
    t = _SEPARATORS_RE.sub("_", t)
    t = _INVALID_RE.sub("", t)
    t = _UNDERSCORES_RE.sub("_", t)
    t = t.lower().strip("_")
    return t or FALLBACK_IDENTIFIER


def sanitize_variable_name(value: str) -> str:
    """Manual override path: every character outside [A-Za-z0-9_] becomes `_`."""
    return _INVALID_RE.sub("_", str(value or ""))


def is_valid_identifier(value: str) -> bool:
    return bool(value) and _INVALID_RE.search(value) is None


class IdentifierLedger:
    """
    Per-pass uniqueness ledger.

    The first owner of a base identifier keeps it; other owners get `base_2`, `base_3`, ...
    Claiming again with the same (base, owner) pair returns the identifier handed out before.
    """

    def __init__(self, *, disambiguate: bool = True) -> None:
        self.disambiguate = disambiguate
        self._owners: Dict[str, Hashable] = {}
        self._claims: Dict[Tuple[str, Hashable], str] = {}

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._owners

    def claim(self, base: str, owner: Hashable) -> str:
        key = (base, owner)
        if key in self._claims:
            return self._claims[key]
        ident = base
        if self.disambiguate:
            n = 2
            while ident in self._owners and self._owners[ident] != owner:
                ident = f"{base}_{n}"
                n += 1
        self._owners.setdefault(ident, owner)
        self._claims[key] = ident
        return ident


class SequentialIds:
    """Monotonic in-session id source (`block-1`, `block-2`, `col-1`, ...)."""

    def __init__(self) -> None:
        self._counters: Dict[str, int] = {}

    def next(self, prefix: str, *, sep: str = "-") -> str:
        n = self._counters.get(prefix, 0) + 1
        self._counters[prefix] = n
        return f"{prefix}{sep}{n}"


__all__ = [
    "FALLBACK_IDENTIFIER",
    "IdentifierLedger",
    "SequentialIds",
    "is_valid_identifier",
    "normalize_identifier",
    "sanitize_variable_name",
    "transliterate",
]
