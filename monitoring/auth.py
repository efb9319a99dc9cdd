"""Access token providers for the Cloud Monitoring API"""
import abc
import asyncio
import threading
from typing import Optional, Sequence

import google.auth
from google.auth.transport.requests import Request

from logging_config import get_logger

MONITORING_READ_SCOPE = "https://www.googleapis.com/auth/monitoring.read"

logger = get_logger(__name__)


class TokenProvider(abc.ABC):
    """Supplies bearer tokens for API requests"""

    @abc.abstractmethod
    async def get_token(self) -> str:
        pass


class StaticTokenProvider(TokenProvider):
    """Always returns the configured token"""

    def __init__(self, token: str):
        self._token = token

    async def get_token(self) -> str:
        return self._token


class GoogleDefaultTokenProvider(TokenProvider):
    """Tokens from Google application default credentials, refreshed when expired"""

    def __init__(self, scopes: Sequence[str] = (MONITORING_READ_SCOPE,)):
        self._scopes = list(scopes)
        self._credentials = None
        self._lock = threading.Lock()

    async def get_token(self) -> str:
        if self._credentials is None or not self._credentials.valid:
            # google-auth refreshes over blocking HTTP
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._refresh)
        return self._credentials.token

    def _refresh(self) -> None:
        with self._lock:
            if self._credentials is None:
                self._credentials, project = google.auth.default(scopes=self._scopes)
                logger.info("Loaded Google default credentials", project=project)
            if not self._credentials.valid:
                self._credentials.refresh(Request())
                logger.debug("Refreshed Google access token")


def create_token_provider(access_token: Optional[str]) -> TokenProvider:
    if access_token:
        return StaticTokenProvider(access_token)
    return GoogleDefaultTokenProvider()
