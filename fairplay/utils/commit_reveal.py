"""Cryptographic commit-reveal mechanism for fair rounds.

A commitment is an HMAC over the single choice byte, keyed by the player's
secret salt (optionally prefixed with a shared secret key). The choice space
has only three values, so a bare hash of choice+salt would only be as strong
as the salt's secrecy; keying the MAC by the salt keeps the digest hiding and
binding until the salt is disclosed at reveal time.
"""

import hashlib
import hmac
import secrets
from typing import Any, Callable

from fairplay.constants import DEFAULT_SALT_BYTES, MIN_SALT_BYTES, VALID_CHOICES, Choice
from fairplay.errors import ConfigurationError


def validate_choice(choice: Any) -> Choice:
    """Return ``choice`` as a :class:`Choice`, rejecting anything outside 1..3.

    Raises:
        ConfigurationError: If the value is not Rock, Paper or Scissors
    """
    if isinstance(choice, bool) or not isinstance(choice, int):
        raise ConfigurationError(f"Invalid choice: {choice!r}")
    if choice not in VALID_CHOICES:
        raise ConfigurationError(f"Invalid choice: {choice!r}")
    return Choice(choice)


def is_empty_commitment(digest: bytes) -> bool:
    """True for the "not yet committed" sentinel (empty or all zero bytes)."""
    return not digest or not any(digest)


class CommitmentScheme:
    """Produces and verifies salted commitments.

    The random source and hash function are injected so tests can run with a
    deterministic byte stream.
    """

    def __init__(
        self,
        random_bytes: Callable[[int], bytes] = secrets.token_bytes,
        digestmod: Any = hashlib.sha512,
        secret_key: bytes = b"",
    ):
        self.random_bytes = random_bytes
        self.digestmod = digestmod
        self.secret_key = secret_key

    @property
    def digest_size(self) -> int:
        return hmac.new(b"\x00", b"", self.digestmod).digest_size

    def generate_salt(self, length: int = DEFAULT_SALT_BYTES) -> bytes:
        """Generate a fresh salt.

        Args:
            length: Number of random bytes (at least 16)

        Returns:
            Salt bytes from the injected random source
        """
        if length < MIN_SALT_BYTES:
            raise ConfigurationError(f"Salt must be at least {MIN_SALT_BYTES} bytes, got {length}")
        salt = self.random_bytes(length)
        if len(salt) != length:
            raise ConfigurationError("Random source returned the wrong number of bytes")
        return salt

    def commit(self, choice: int, salt: bytes) -> bytes:
        """Create the commitment digest for ``choice`` under ``salt``.

        Args:
            choice: 1 (Rock), 2 (Paper) or 3 (Scissors)
            salt: Secret salt, revealed later

        Returns:
            The MAC digest bytes
        """
        choice = validate_choice(choice)
        if not salt:
            raise ConfigurationError("Salt must not be empty")
        mac = hmac.new(self.secret_key + bytes(salt), bytes([int(choice)]), self.digestmod)
        return mac.digest()

    def verify(self, choice: int, salt: bytes, digest: bytes) -> bool:
        """Check that ``(choice, salt)`` re-derives ``digest`` exactly."""
        if is_empty_commitment(digest):
            return False
        expected = self.commit(choice, salt)
        return hmac.compare_digest(expected, bytes(digest))
