"""Session-token storage and the get-or-prompt credential provider."""

import json
import logging
import os
from pathlib import Path
from typing import Callable

from cursor_meter.errors import NoCredentialError

logger = logging.getLogger(__name__)

TOKEN_STORAGE_KEY = "cursor.workosToken"

Prompt = Callable[[], str | None]


class SecretStore:
    """Small JSON key/value file readable only by the current user."""

    def __init__(self, path: Path):
        self._path = Path(path)

    def _load(self) -> dict:
        try:
            with open(self._path) as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            logger.warning("Failed to read secrets file %s: %s", self._path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict):
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            json.dump(data, f)
        os.replace(tmp_path, self._path)

    def get(self, key: str) -> str | None:
        value = self._load().get(key)
        return value if isinstance(value, str) and value else None

    def store(self, key: str, value: str):
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str):
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)


class CredentialProvider:
    """Owns the session token: reads it, prompts for it, and forgets it on auth failure."""

    def __init__(self, store: SecretStore, prompt: Prompt, key: str = TOKEN_STORAGE_KEY):
        self._store = store
        self._prompt = prompt
        self._key = key

    @property
    def has_token(self) -> bool:
        return self._store.get(self._key) is not None

    def get_token(self) -> str | None:
        token = self._store.get(self._key)
        if token:
            return token
        logger.info("No token found, prompting user...")
        return self.set_token()

    def require_token(self) -> str:
        token = self.get_token()
        if not token:
            raise NoCredentialError("No session token available")
        return token

    def set_token(self) -> str | None:
        """Always prompt, even if a token is already stored."""
        entered = self._prompt()
        token = entered.strip() if entered else ""
        if not token:
            return None
        try:
            self._store.store(self._key, token)
        except OSError as exc:
            logger.error("Failed to save token: %s", exc)
            return None
        logger.info("Token stored securely")
        return token

    def clear_token(self):
        try:
            self._store.delete(self._key)
        except OSError as exc:
            logger.error("Failed to clear token: %s", exc)
            return
        logger.info("Stored token cleared")
