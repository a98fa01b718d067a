"""
Localized text records.

Reference data stores names as a mapping of locale to text, e.g.
{"en": "French", "fr": "Français", "de": "Französisch"}. LocalizedText wraps
such a record and resolves it for a locale with a fallback chain.
"""

from typing import Dict, Iterable, Mapping, Optional


class LocalizedText:
    """A {locale: text} record with fallback resolution."""

    def __init__(self, values: Optional[Mapping[str, str]] = None, fallback: str = "en"):
        self._values: Dict[str, str] = {
            locale: text for locale, text in (values or {}).items() if text
        }
        self._fallback = fallback

    @classmethod
    def from_document(cls, value, fallback: str = "en") -> "LocalizedText":
        """Build from a stored field; a bare string counts as the fallback locale."""
        if isinstance(value, LocalizedText):
            return value
        if isinstance(value, str):
            return cls({fallback: value}, fallback=fallback)
        if isinstance(value, Mapping):
            return cls(value, fallback=fallback)
        return cls({}, fallback=fallback)

    def resolve(self, locale: Optional[str], fallbacks: Iterable[str] = ()) -> Optional[str]:
        """
        Resolve the text for a locale.

        Order: exact locale, its base language ("fr" for "fr-CA"), the
        extra fallbacks given, the record's fallback locale, then any value.
        """
        chain = []
        if locale:
            chain.append(locale)
            base = locale.split("-")[0]
            if base != locale:
                chain.append(base)
        chain.extend(fallbacks)
        chain.append(self._fallback)

        for candidate in chain:
            if candidate in self._values:
                return self._values[candidate]

        return next(iter(self._values.values()), None)

    def merge(self, updates: Mapping[str, str]) -> "LocalizedText":
        """Return a copy with the given locales replaced."""
        values = dict(self._values)
        values.update({locale: text for locale, text in updates.items() if text})
        return LocalizedText(values, fallback=self._fallback)

    def locales(self) -> list:
        return sorted(self._values)

    def to_dict(self) -> Dict[str, str]:
        return dict(self._values)

    def __bool__(self) -> bool:
        return bool(self._values)

    def __eq__(self, other) -> bool:
        if isinstance(other, LocalizedText):
            return self._values == other._values
        if isinstance(other, Mapping):
            return self._values == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"LocalizedText({self._values!r})"
