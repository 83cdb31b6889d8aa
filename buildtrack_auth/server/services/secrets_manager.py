"""
Secrets Manager.

Makes sure the signing secrets and the encryption key exist before the service
starts handing out tokens. Missing secrets are generated with a CSPRNG,
written to the ``.env`` file through python-dotenv (an existing key line is
updated in place, never duplicated) and exported to the process environment.

A process-wide instance is available through :func:`get_secrets_manager`.
"""

from __future__ import annotations

import os
import secrets
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from dotenv import dotenv_values, load_dotenv, set_key

from buildtrack_auth.core.logging_config import get_logger
from buildtrack_auth.core.models.io import RequiredSecret, SecretsCheck, SecretsReport, SecretStatus
from buildtrack_auth.server.core.config import get_settings

logger = get_logger(__name__)

DEFAULT_REQUIRED_SECRETS = (
    RequiredSecret(name="JWT_ACCESS_SECRET", description="HMAC secret for access tokens"),
    RequiredSecret(name="JWT_REFRESH_SECRET", description="HMAC secret for refresh tokens"),
    RequiredSecret(name="ENCRYPTION_KEY", description="Key for sensitive data encryption and code hashing"),
)

# 64 random bytes -> 128 hex characters
SECRET_NUM_BYTES = 64


class SecretsManager:
    """Checks, provisions and reloads required secrets."""

    def __init__(
        self,
        env_file_path: str | Path | None = None,
        required_secrets: Optional[Iterable[RequiredSecret]] = None,
    ) -> None:
        self.env_file_path = Path(env_file_path or get_settings().env_file_path)
        self._required: Dict[str, RequiredSecret] = {
            s.name: s for s in (required_secrets if required_secrets is not None else DEFAULT_REQUIRED_SECRETS)
        }

    @property
    def required_secrets(self) -> List[RequiredSecret]:
        return list(self._required.values())

    @staticmethod
    def generate_secret_value() -> str:
        return secrets.token_hex(SECRET_NUM_BYTES)

    def check_required_secrets(self) -> SecretsCheck:
        """Split required secrets into missing and existing, based on the process environment."""
        check = SecretsCheck()
        for name in self._required:
            if os.environ.get(name):
                check.existing.append(name)
            else:
                check.missing.append(name)
        return check

    def _file_values(self) -> Dict[str, Optional[str]]:
        if not self.env_file_path.exists():
            return {}
        return dotenv_values(self.env_file_path)

    def auto_add_missing_secrets(self) -> SecretsReport:
        """Provision every missing secret into ``.env`` and the environment.

        A secret already present in ``.env`` but not exported is loaded from the
        file instead of being regenerated.

        Returns:
            SecretsReport listing added, failed and already existing secrets
        """
        check = self.check_required_secrets()
        report = SecretsReport(existing=list(check.existing))
        if not check.missing:
            return report

        file_values = self._file_values()
        for name in check.missing:
            from_file = file_values.get(name)
            if from_file:
                os.environ[name] = from_file
                report.existing.append(name)
                logger.info(f"Loaded secret {name} from {self.env_file_path}")
                continue

            required = self._required[name]
            value = required.default_value or self.generate_secret_value()
            try:
                self.env_file_path.parent.mkdir(parents=True, exist_ok=True)
                self.env_file_path.touch(exist_ok=True)
                written, _, _ = set_key(str(self.env_file_path), name, value)
            except OSError as e:
                logger.error(f"Failed to write secret {name} to {self.env_file_path}: {e}")
                report.failed.append(name)
                continue
            if not written:
                logger.error(f"Failed to write secret {name} to {self.env_file_path}")
                report.failed.append(name)
                continue

            os.environ[name] = value
            report.added.append(name)
            logger.info(f"Generated secret {name} and saved it to {self.env_file_path}")

        return report

    def initialize_secrets(self) -> bool:
        """Ensure all required secrets exist.

        Returns:
            False if any secret could not be provisioned
        """
        report = self.auto_add_missing_secrets()
        if report.added:
            logger.info(f"Provisioned secrets: {', '.join(report.added)}")
        if report.failed:
            logger.error(f"Could not provision secrets: {', '.join(report.failed)}")
            return False
        logger.info("All required secrets are available")
        return True

    def reload_secrets(self) -> bool:
        """Re-read ``.env`` into the process environment, overriding current values."""
        if not self.env_file_path.exists():
            logger.warning(f"Cannot reload secrets, {self.env_file_path} does not exist")
            return False
        return load_dotenv(self.env_file_path, override=True)

    def get_secrets_status(self) -> List[SecretStatus]:
        return [
            SecretStatus(name=s.name, exists=bool(os.environ.get(s.name)), description=s.description)
            for s in self._required.values()
        ]

    def add_required_secret(self, name: str, description: str = "", default_value: Optional[str] = None) -> None:
        """Register (or replace) a required secret."""
        self._required[name] = RequiredSecret(name=name, description=description, default_value=default_value)

    def remove_required_secret(self, name: str) -> bool:
        return self._required.pop(name, None) is not None


_secrets_manager: Optional[SecretsManager] = None


def get_secrets_manager() -> SecretsManager:
    """Get the process-wide secrets manager instance."""
    global _secrets_manager
    if _secrets_manager is None:
        _secrets_manager = SecretsManager()
    return _secrets_manager
