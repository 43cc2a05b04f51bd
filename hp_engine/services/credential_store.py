"""
Durable storage for the analysis API key.

A small JSON file holding one named entry.  Read once at startup, written
whenever a new key is saved.  No encryption, no expiry.
"""
from __future__ import annotations

import json
import logging
import os
from typing import Optional

import aiofiles

from hp_engine.config import settings

logger = logging.getLogger(__name__)


class CredentialStore:
    """Load/save a single credential entry in a JSON file."""

    def __init__(self, path: Optional[str] = None, key_name: Optional[str] = None) -> None:
        self.path = path or settings.CREDENTIAL_FILE
        self.key_name = key_name or settings.CREDENTIAL_KEY_NAME

    async def load(self) -> str:
        """Return the stored credential, or "" when none is stored."""
        if not os.path.exists(self.path):
            return ""
        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as fh:
                data = json.loads(await fh.read() or "{}")
        except (OSError, ValueError) as exc:
            logger.warning("Could not read credential file %s: %s", self.path, exc)
            return ""
        value = data.get(self.key_name, "") if isinstance(data, dict) else ""
        return str(value or "")

    async def save(self, credential: str) -> None:
        """Persist *credential*, replacing any previous value."""
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        async with aiofiles.open(self.path, "w", encoding="utf-8") as fh:
            await fh.write(json.dumps({self.key_name: credential}))
        logger.info("Credential saved to %s", self.path)
