"""Credential hashing using passlib.

One salted, deliberately slow primitive for passwords, refresh tokens and
password-reset tokens. New digests use ``bcrypt_sha256`` so inputs longer
than bcrypt's 72-byte limit (JWTs share long common prefixes) are hashed in
full. Plain ``bcrypt`` digests still verify.
"""

from passlib.context import CryptContext

DEFAULT_ROUNDS = 12


class CredentialHasher:
    """Hash and verify secrets with a fixed bcrypt work factor."""

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        self.rounds = rounds
        self._context = CryptContext(
            schemes=["bcrypt_sha256", "bcrypt"],
            deprecated="auto",
            bcrypt_sha256__rounds=rounds,
            bcrypt__rounds=rounds,
        )

    def hash(self, secret: str) -> str:
        """Generate a salted digest of a secret.

        Args:
            secret: The plaintext password or token.

        Returns:
            An opaque digest string.
        """
        return self._context.hash(secret)

    def verify(self, secret: str, digest: str | None) -> bool:
        """Verify a secret against a stored digest.

        Args:
            secret: The plaintext to check.
            digest: A digest produced by ``hash`` (or a legacy bcrypt digest).

        Returns:
            True if the secret matches. Malformed or missing digests verify
            False instead of raising.
        """
        if not digest:
            self._context.dummy_verify()
            return False
        try:
            return self._context.verify(secret, digest)
        except (ValueError, TypeError):
            return False

    def dummy_verify(self) -> None:
        """Spend the time of a real verification without a stored digest."""
        self._context.dummy_verify()
