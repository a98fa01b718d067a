"""
i18n middleware for request-scoped language detection and translation.

Attaches language and translation helper to requests.
"""

import logging
from typing import Callable

from fastapi import Request

from common.i18n import I18nService

logger = logging.getLogger(__name__)


class I18nMiddleware:
    """
    FastAPI middleware for request-scoped i18n.
    Attaches request.state.language and request.state.t to all requests.
    """

    def __init__(self, i18n_service: I18nService):
        """
        Initialize I18nMiddleware.

        Args:
            i18n_service: Translation service instance
        """
        self._i18n_service = i18n_service

    async def __call__(self, request: Request, call_next: Callable):
        """
        Middleware function that attaches language to request.

        Attaches:
            - request.state.language: negotiated language code
            - request.state.t: translation function
        """
        language = self.get_language_from_request(request)
        request.state.language = language

        def translate(key: str, **options) -> str:
            return self._i18n_service.t(key, language, **options)

        request.state.t = translate

        response = await call_next(request)
        response.headers["Content-Language"] = language
        return response

    def get_language_from_request(self, request: Request) -> str:
        """
        Detect the preferred language of a request.

        Priority:
            1. ?lang= query parameter, when supported
            2. Accept-Language header, by q-value
            3. Default language
        """
        requested = request.query_params.get("lang")
        if requested and self._i18n_service.is_supported(requested.lower()):
            return requested.lower()

        return self._i18n_service.negotiate(request.headers.get("Accept-Language"))
