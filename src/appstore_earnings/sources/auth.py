"""
App Store Connect API authentication.

Every request carries a short-lived ES256 JWT signed with the team's
.p8 private key. A fresh token is signed on each call.
"""

import time
import logging
from pathlib import Path
from typing import Callable, Optional

import jwt

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

AUDIENCE = "appstoreconnect-v1"
ALGORITHM = "ES256"

# Apple rejects tokens that live longer than 20 minutes
TOKEN_LIFETIME_SECONDS = 20 * 60


class AppStoreTokenProvider:
    """Callable returning a signed bearer token for one API key."""

    def __init__(self, issuer_id: str, key_id: str, private_key_path: str,
                 lifetime_seconds: int = TOKEN_LIFETIME_SECONDS,
                 clock: Callable[[], float] = time.time):
        self.issuer_id = issuer_id
        self.key_id = key_id
        self.private_key_path = Path(private_key_path).expanduser()
        self.lifetime_seconds = lifetime_seconds
        self._clock = clock
        self._private_key: Optional[str] = None

    def _load_private_key(self) -> str:
        if self._private_key is None:
            try:
                self._private_key = self.private_key_path.read_text(encoding="utf-8")
            except OSError as e:
                raise ConfigurationError(f"Cannot read private key {self.private_key_path}: {e}") from e
            logger.debug(f"Loaded private key for key id {self.key_id}")
        return self._private_key

    def __call__(self) -> str:
        """
        Sign a new token.

        Raises:
            ConfigurationError: If the key file is unreadable or not a valid EC key
        """
        now = int(self._clock())
        payload = {
            "iss": self.issuer_id,
            "iat": now,
            "exp": now + self.lifetime_seconds,
            "aud": AUDIENCE,
        }
        try:
            return jwt.encode(
                payload,
                self._load_private_key(),
                algorithm=ALGORITHM,
                headers={"kid": self.key_id, "typ": "JWT"},
            )
        except (ValueError, TypeError, jwt.PyJWTError) as e:
            raise ConfigurationError(f"Cannot sign API token with {self.private_key_path}: {e}") from e
