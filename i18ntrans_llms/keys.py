"""
API key management for i18ntrans-llms.

Provides retrieval and storage of API keys using:
1. Environment variables (preferred for CI/production)
2. OS keychain via keyring (secure local storage)
3. Local config file (fallback)

Usage:
    from i18ntrans_llms.keys import KeyManager

    km = KeyManager()
    km.set_key("openai", "sk-...")
    key = km.get_key("openai")
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Optional

from i18ntrans_llms.config import CONFIG_DIR
from i18ntrans_llms.errors import MissingCredentialError

logger = logging.getLogger(__name__)


# Supported services and their env var names
SERVICES = {
    "openai": "OPENAI_API_KEY",
}

# Optional organization id sent along with the OpenAI key
ORGANIZATION_ENV = "OPENAI_ORG_ID"


@dataclass
class KeyInfo:
    """Information about an API key."""
    service: str
    is_set: bool
    source: str  # 'env', 'keyring', 'config', 'none'
    masked_value: str  # e.g., "sk-...abc"


class KeyManager:
    """Manage API keys.

    Priority order for key retrieval:
    1. Environment variable
    2. OS keychain (via keyring)
    3. Local config file (~/.i18ntrans/keys.json)
    """

    SERVICE_NAME = "i18ntrans-llms"
    CONFIG_DIR = CONFIG_DIR
    CONFIG_FILE = CONFIG_DIR / "keys.json"

    def __init__(self):
        self._keyring_available = self._check_keyring()

    def _check_keyring(self) -> bool:
        """Check if a usable keyring backend is configured."""
        try:
            import keyring
            from keyring.backends.fail import Keyring as FailKeyring
            return not isinstance(keyring.get_keyring(), FailKeyring)
        except Exception as e:
            logger.debug("Keyring unavailable: %s", e)
            return False

    def _env_var(self, service: str) -> str:
        return SERVICES.get(service, f"{service.upper()}_API_KEY")

    def _read_config(self) -> dict:
        if not self.CONFIG_FILE.exists():
            return {}
        try:
            return json.loads(self.CONFIG_FILE.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable key file %s: %s", self.CONFIG_FILE, e)
            return {}

    def _lookup(self, service: str) -> tuple[Optional[str], str]:
        """Return (key, source) for a service."""
        service = service.lower()

        # 1. Check environment variable
        if env_val := os.getenv(self._env_var(service)):
            return env_val, "env"

        # 2. Check keyring
        if self._keyring_available:
            try:
                import keyring
                if key := keyring.get_password(self.SERVICE_NAME, service):
                    return key, "keyring"
            except Exception as e:
                logger.debug("Keyring lookup failed for %s: %s", service, e)

        # 3. Check config file
        if key := self._read_config().get(service):
            return key, "config"

        return None, "none"

    def get_key(self, service: str) -> Optional[str]:
        """Get API key for a service.

        Returns:
            API key string or None if not found
        """
        return self._lookup(service)[0]

    def set_key(self, service: str, key: str, use_keyring: bool = True) -> str:
        """Store API key for a service.

        Returns:
            Storage location used ('keyring' or 'config')
        """
        service = service.lower()

        if use_keyring and self._keyring_available:
            try:
                import keyring
                keyring.set_password(self.SERVICE_NAME, service, key)
                return "keyring"
            except Exception as e:
                logger.warning("Keyring write failed, using config file: %s", e)

        self.CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        config = self._read_config()
        config[service] = key
        self.CONFIG_FILE.write_text(json.dumps(config, indent=2), encoding="utf-8")
        self.CONFIG_FILE.chmod(0o600)  # Restrict permissions

        return "config"

    def delete_key(self, service: str) -> bool:
        """Delete stored API key for a service."""
        service = service.lower()
        deleted = False

        if self._keyring_available:
            try:
                import keyring
                keyring.delete_password(self.SERVICE_NAME, service)
                deleted = True
            except Exception as e:
                logger.debug("Nothing deleted from keyring for %s: %s", service, e)

        config = self._read_config()
        if service in config:
            del config[service]
            self.CONFIG_FILE.write_text(json.dumps(config, indent=2), encoding="utf-8")
            deleted = True

        return deleted

    def get_key_info(self, service: str) -> KeyInfo:
        """Get information about a stored key."""
        key, source = self._lookup(service)
        return KeyInfo(
            service=service.lower(),
            is_set=key is not None,
            source=source,
            masked_value=self.mask_key(key) if key else "",
        )

    def list_keys(self) -> list[KeyInfo]:
        """List all configured services and their key status."""
        return [self.get_key_info(service) for service in SERVICES]

    @staticmethod
    def mask_key(key: str) -> str:
        """Mask a key for display (show first 4 and last 4 chars)."""
        if len(key) <= 12:
            return "*" * len(key)
        return f"{key[:4]}...{key[-4:]}"


def get_key(service: str) -> Optional[str]:
    """Convenience function to get an API key."""
    return KeyManager().get_key(service)


def require_key(service: str) -> str:
    """Get API key or raise MissingCredentialError if not found."""
    key = get_key(service)
    if not key:
        raise MissingCredentialError(
            f"{SERVICES.get(service, service.upper() + '_API_KEY')} environment "
            f"variable is required (or run: i18ntrans keys set {service})"
        )
    return key


def get_organization() -> Optional[str]:
    """Organization id for the OpenAI client, if configured."""
    return os.getenv(ORGANIZATION_ENV) or None
