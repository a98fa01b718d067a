"""
Generic internationalization (i18n) service.

Provides translation loading and lookup with support for:
- Multiple languages with fallback to a default language
- Nested translation keys (dot notation, first part is the file name)
- Variable interpolation
- Accept-Language negotiation

Translations are loaded at startup from JSON files.

Example:
    # Directory structure:
    # locales/
    #   en/
    #     errors.json
    #   fr/
    #     errors.json

    from common.i18n import I18nService

    i18n = I18nService(locales_dir="./locales", default_language="en")

    message = i18n.t("errors.GROUP_NOT_FOUND", language="fr")
    greeting = i18n.t("common.greeting", language="fr", name="Lea")
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Any

logger = logging.getLogger(__name__)


class I18nService:
    """
    Generic internationalization service.

    Loads translations from JSON files at startup and provides
    fast lookup with fallback to default language.
    """

    def __init__(
        self,
        locales_dir: str,
        default_language: str = "en",
        supported_languages: Optional[List[str]] = None,
    ):
        """
        Initialize i18n service.

        Args:
            locales_dir: Path to the locales directory
            default_language: Default language code for fallback
            supported_languages: List of supported language codes.
                If None, auto-detects from directory structure.
        """
        self.locales_dir = Path(locales_dir)
        self.default_language = default_language
        self.translations: Dict[str, Dict[str, Any]] = {}

        if supported_languages:
            self.supported_languages = supported_languages
        else:
            self.supported_languages = self._detect_languages()

        self._load_translations()

    def _detect_languages(self) -> List[str]:
        """Detect available languages from directory structure."""
        if not self.locales_dir.exists():
            return [self.default_language]

        languages = sorted(
            path.name
            for path in self.locales_dir.iterdir()
            if path.is_dir() and not path.name.startswith(".")
        )
        return languages if languages else [self.default_language]

    def _load_translations(self) -> None:
        """Load all translation files at startup."""
        for lang in self.supported_languages:
            self.translations[lang] = {}
            lang_dir = self.locales_dir / lang

            if not lang_dir.exists():
                logger.warning(f"No locale directory for language '{lang}': {lang_dir}")
                continue

            for file_path in lang_dir.glob("*.json"):
                try:
                    with open(file_path, "r", encoding="utf-8") as f:
                        self.translations[lang][file_path.stem] = json.load(f)
                except (json.JSONDecodeError, OSError) as e:
                    logger.warning(f"Failed to load {file_path}: {e}")

        logger.info(f"Loaded translations for languages: {', '.join(self.supported_languages)}")

    def _lookup(self, language: str, key: str) -> Optional[Any]:
        parts = key.split(".")
        if len(parts) < 2:
            return None

        current: Any = self.translations.get(language, {}).get(parts[0], {})
        for part in parts[1:]:
            if not isinstance(current, dict) or part not in current:
                return None
            current = current[part]
        return current

    def t(
        self,
        key: str,
        language: Optional[str] = None,
        **options: Any,
    ) -> str:
        """
        Get translation by dot-notation key.

        Args:
            key: Dot notation key (e.g., 'errors.GROUP_NOT_FOUND')
            language: Language code (falls back to default if not supported)
            **options: Interpolation values. The special key 'default' is
                returned when the key is missing in every language.

        Returns:
            Translated string, the default, or the key itself
        """
        lang = self.resolve_language(language)

        value = self._lookup(lang, key)
        if value is None and lang != self.default_language:
            value = self._lookup(self.default_language, key)

        if value is None:
            return options.get("default", key)

        result = str(value)
        for var_name, var_value in options.items():
            if var_name == "default":
                continue
            result = result.replace(f"{{{{{var_name}}}}}", str(var_value))
            result = result.replace(f"{{{var_name}}}", str(var_value))

        return result

    def has(self, key: str, language: Optional[str] = None) -> bool:
        """Check if a translation key exists for the language."""
        return self._lookup(self.resolve_language(language), key) is not None

    def is_supported(self, language: Optional[str]) -> bool:
        """Check if a language is supported."""
        return language in self.supported_languages

    def resolve_language(self, language: Optional[str]) -> str:
        """Return the language if supported, else the default language."""
        return language if self.is_supported(language) else self.default_language

    def negotiate(self, accept_language: Optional[str]) -> str:
        """
        Pick the best supported language from an Accept-Language header.

        Args:
            accept_language: Header value, e.g. "fr-FR,fr;q=0.9,en;q=0.8"

        Returns:
            Supported language code, or the default language
        """
        if not accept_language:
            return self.default_language

        candidates = []
        for index, part in enumerate(accept_language.split(",")):
            pieces = part.strip().split(";")
            tag = pieces[0].strip().split("-")[0].lower()
            if not tag or tag == "*":
                continue

            quality = 1.0
            for param in pieces[1:]:
                param = param.strip()
                if param.startswith("q="):
                    try:
                        quality = float(param[2:])
                    except ValueError:
                        quality = 0.0

            candidates.append((-quality, index, tag))

        for _, _, tag in sorted(candidates):
            if self.is_supported(tag):
                return tag

        return self.default_language

    def reload(self) -> None:
        """Reload all translations from disk."""
        self.translations.clear()
        self._load_translations()
