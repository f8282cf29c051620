"""
Process-wide provider credential cache.

Credentials are loaded at most once per process and never invalidated.
Concurrent first access is single-flight: one task runs the loader while
the others wait on the same lock and then read the cached value.
"""
import asyncio
import json
import logging
import os
from typing import Awaitable, Callable, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

SECRETS_JSON_ENV = "APP_SECRETS_JSON"
CREDENTIAL_KEYS = ("OPENAI_API_KEY", "UNSPLASH_ACCESS_KEY")

CredentialLoader = Callable[[], Awaitable[Mapping[str, str]]]


class CredentialError(RuntimeError):
    """Raised when provider credentials cannot be loaded."""


async def load_credentials_from_env() -> Dict[str, str]:
    """
    Read credentials from the environment.

    ``APP_SECRETS_JSON`` may hold a JSON object (the shape a secrets manager
    returns); individual env vars such as ``OPENAI_API_KEY`` override it.
    """
    credentials: Dict[str, str] = {}

    raw = os.getenv(SECRETS_JSON_ENV)
    if raw:
        try:
            parsed = json.loads(raw)
        except ValueError as e:
            raise CredentialError(f"{SECRETS_JSON_ENV} is not valid JSON") from e
        if not isinstance(parsed, dict):
            raise CredentialError(f"{SECRETS_JSON_ENV} must be a JSON object")
        credentials.update({str(k): str(v) for k, v in parsed.items() if v is not None})

    for key in CREDENTIAL_KEYS:
        value = os.getenv(key)
        if value:
            credentials[key] = value

    return credentials


class CredentialStore:
    """Lazily-initialized credential singleton with single-flight loading."""

    _instance: Optional["CredentialStore"] = None

    def __init__(self, loader: CredentialLoader = load_credentials_from_env):
        self._loader = loader
        self._credentials: Optional[Dict[str, str]] = None
        self._lock = asyncio.Lock()

    @classmethod
    def instance(cls) -> "CredentialStore":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls, loader: Optional[CredentialLoader] = None) -> "CredentialStore":
        """Replace the singleton. Only tests should need this."""
        cls._instance = cls(loader) if loader is not None else cls()
        return cls._instance

    async def get(self) -> Mapping[str, str]:
        if self._credentials is not None:
            return self._credentials

        async with self._lock:
            # Another task may have finished loading while we waited
            if self._credentials is None:
                logger.info("Loading provider credentials")
                loaded = await self._loader()
                self._credentials = dict(loaded)
        return self._credentials


async def get_credentials() -> Mapping[str, str]:
    """Credentials for upstream providers, loaded once per process."""
    return await CredentialStore.instance().get()
