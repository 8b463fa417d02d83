"""
Ed25519 signing service with an explicit lifecycle.

``init()`` loads the configured private key or, when none is configured,
generates a key that lives only as long as the process. In that mode reports
from earlier runs can only be checked against the public key embedded in the
report itself, not against a stable key.
"""

import base64
import logging
from pathlib import Path
from typing import Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from ..exceptions import SigningServiceError

logger = logging.getLogger(__name__)


def encode_public_key(key: Ed25519PublicKey) -> str:
    raw = key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )
    return base64.b64encode(raw).decode("ascii")


def verify_signature(public_key_b64: str, signature_b64: str, data: bytes) -> bool:
    """
    Check an Ed25519 signature.

    Raises:
        ValueError: if the key or signature is not valid base64 or has the
            wrong length
    """
    try:
        public_bytes = base64.b64decode(public_key_b64, validate=True)
        signature = base64.b64decode(signature_b64, validate=True)
    except (ValueError, TypeError) as exc:
        raise ValueError("Signature or public key is not valid base64") from exc

    public_key = Ed25519PublicKey.from_public_bytes(public_bytes)
    try:
        public_key.verify(signature, data)
    except InvalidSignature:
        return False
    return True


class SigningService:
    """Holds the process signing key between ``init()`` and ``shutdown()``."""

    def __init__(self, key_path: Optional[Path] = None):
        self.key_path = key_path
        self._private_key: Optional[Ed25519PrivateKey] = None
        self._public_key_b64: Optional[str] = None

    @property
    def is_initialized(self) -> bool:
        return self._private_key is not None

    def init(self) -> None:
        """Load or generate the keypair. Calling it twice keeps the first key."""
        if self._private_key is not None:
            return

        if self.key_path is not None and self.key_path.exists():
            self._private_key = self._load_key(self.key_path)
            logger.info("Loaded signing key from %s", self.key_path)
        else:
            self._private_key = Ed25519PrivateKey.generate()
            logger.info("Generated process-lifetime signing key")

        self._public_key_b64 = encode_public_key(self._private_key.public_key())

    def shutdown(self) -> None:
        """Discard the in-memory private key."""
        self._private_key = None
        self._public_key_b64 = None

    @staticmethod
    def _load_key(path: Path) -> Ed25519PrivateKey:
        try:
            key = serialization.load_pem_private_key(path.read_bytes(), password=None)
        except (OSError, ValueError, TypeError) as exc:
            raise SigningServiceError(f"Cannot load signing key {path}: {exc}") from exc
        if not isinstance(key, Ed25519PrivateKey):
            raise SigningServiceError(f"Signing key {path} is not an Ed25519 key")
        return key

    @property
    def public_key_b64(self) -> str:
        if self._public_key_b64 is None:
            raise SigningServiceError("Signing service is not initialized")
        return self._public_key_b64

    def sign(self, data: bytes) -> str:
        """Sign ``data`` and return the base64 signature."""
        if self._private_key is None:
            raise SigningServiceError("Signing service is not initialized")
        return base64.b64encode(self._private_key.sign(data)).decode("ascii")
