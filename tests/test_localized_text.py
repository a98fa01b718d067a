"""Unit tests for localized text records, the i18n service and catalog localization."""

from pathlib import Path

import pytest
from bson import ObjectId

from common.i18n import I18nService, LocalizedText
from common.utils.exceptions import BadRequestException, ConflictException, NotFoundException
from tripmates.catalog.services.catalog_service import CatalogService


LOCALES_DIR = Path(__file__).resolve().parent.parent / "tripmates" / "locales"


class TestLocalizedText:

    def test_exact_locale(self):
        text = LocalizedText({"en": "French", "fr": "Français"})

        assert text.resolve("fr") == "Français"

    def test_region_falls_back_to_base_language(self):
        text = LocalizedText({"en": "French", "fr": "Français"})

        assert text.resolve("fr-CA") == "Français"

    def test_missing_locale_falls_back_to_default(self):
        text = LocalizedText({"en": "French", "fr": "Français"})

        assert text.resolve("de") == "French"

    def test_any_value_when_default_missing(self):
        text = LocalizedText({"es": "Francés"})

        assert text.resolve("de") == "Francés"

    def test_bare_string_document(self):
        text = LocalizedText.from_document("Hiking")

        assert text.resolve("fr") == "Hiking"
        assert text.to_dict() == {"en": "Hiking"}

    def test_merge_keeps_other_locales(self):
        text = LocalizedText({"en": "Train", "fr": "Train"})

        merged = text.merge({"de": "Zug", "fr": ""})

        assert merged == {"en": "Train", "fr": "Train", "de": "Zug"}
        assert merged.locales() == ["de", "en", "fr"]

    def test_empty_record(self):
        assert not LocalizedText({"en": ""})
        assert LocalizedText({}).resolve("en") is None


class TestI18nService:

    @pytest.fixture
    def i18n(self):
        return I18nService(locales_dir=str(LOCALES_DIR), default_language="en", supported_languages=["en", "fr"])

    def test_translates_error_code(self, i18n):
        assert i18n.t("errors.GROUP_NOT_FOUND", "fr") == "Groupe introuvable."

    def test_interpolates(self, i18n):
        assert i18n.t("errors.USER_TOO_YOUNG", "en", minAge=16) == "You must be at least 16 years old."

    def test_unsupported_language_uses_default(self, i18n):
        assert i18n.t("errors.GROUP_NOT_FOUND", "de") == "Group not found."

    def test_missing_key_returns_default(self, i18n):
        assert i18n.t("errors.NOPE", "fr", default="fallback") == "fallback"

    @pytest.mark.parametrize("header, expected", [
        ("fr-FR,fr;q=0.9,en;q=0.8", "fr"),
        ("de-DE,en;q=0.5", "en"),
        ("de,es", "en"),
        ("en;q=0.2,fr;q=0.8", "fr"),
        (None, "en"),
    ])
    def test_negotiate(self, i18n, header, expected):
        assert i18n.negotiate(header) == expected

    def test_every_english_error_has_a_french_translation(self, i18n):
        english = set(i18n.translations["en"]["errors"])
        french = set(i18n.translations["fr"]["errors"])

        assert english == french


class TestCatalogService:

    @pytest.fixture
    def service(self, fake_db):
        return CatalogService(fake_db)

    @pytest.mark.asyncio
    async def test_list_is_localized_and_sorted(self, service, seed_catalog):
        entries = await service.list_entries("languages", "fr")

        assert [entry["name"] for entry in entries] == ["Anglais", "Espagnol", "Français", "German"]

    @pytest.mark.asyncio
    async def test_unknown_catalog(self, service):
        with pytest.raises(NotFoundException) as exc_info:
            await service.list_entries("planets")

        assert exc_info.value.code == "CATALOG_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_create_and_merge_translations(self, service):
        entry = await service.create_entry("transports", {"en": "Ferry"}, code="ferry")

        updated = await service.update_entry("transports", entry["_id"], name={"fr": "Ferry"})

        assert updated["name"] == {"en": "Ferry", "fr": "Ferry"}
        assert updated["code"] == "ferry"

    @pytest.mark.asyncio
    async def test_duplicate_code(self, service):
        await service.create_entry("transports", {"en": "Ferry"}, code="ferry")

        with pytest.raises(ConflictException):
            await service.create_entry("transports", {"en": "Boat"}, code="ferry")

    @pytest.mark.asyncio
    async def test_name_required(self, service):
        with pytest.raises(BadRequestException) as exc_info:
            await service.create_entry("transports", {"en": ""})

        assert exc_info.value.code == "CATALOG_NAME_REQUIRED"

    @pytest.mark.asyncio
    async def test_ensure_exists_reports_missing_ids(self, service, seed_catalog):
        missing = ObjectId()

        with pytest.raises(BadRequestException) as exc_info:
            await service.ensure_exists("languages", [str(seed_catalog.english), str(missing)])

        assert exc_info.value.details == {"field": "languages", "ids": [str(missing)]}
