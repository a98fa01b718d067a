"""
i18n module - JSON locale catalogues and localized text records.
"""

from common.i18n.service import I18nService
from common.i18n.localized import LocalizedText

__all__ = ["I18nService", "LocalizedText"]
