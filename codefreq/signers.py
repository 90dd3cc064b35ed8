"""
Cryptographic signers for GitHub App authentication.

GitHub App JWTs are signed with RS256 (RSASSA-PKCS1-v1_5 over SHA-256).
"""

from abc import ABC, abstractmethod
from pathlib import Path

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa


class Signer(ABC):
    """Abstract base class for JWT signers."""

    algorithm: str

    @abstractmethod
    def sign(self, message: bytes) -> bytes:
        """Sign a message and return the signature bytes."""
        pass

    @classmethod
    @abstractmethod
    def from_pem_file(cls, path: str | Path) -> "Signer":
        """Load a signer from a PEM file."""
        pass

    @classmethod
    @abstractmethod
    def from_pem(cls, pem_string: str) -> "Signer":
        """Load a signer from a PEM string."""
        pass


class RsaSigner(Signer):
    """RS256 signer backed by an RSA private key."""

    algorithm = "RS256"

    def __init__(self, private_key: rsa.RSAPrivateKey) -> None:
        """
        Initialize with an RSA private key.

        Args:
            private_key: RSA private key from cryptography library
        """
        self._private_key = private_key
        self._public_key = private_key.public_key()

    def sign(self, message: bytes) -> bytes:
        """
        Sign a message using PKCS#1 v1.5 with SHA-256.

        Args:
            message: The message bytes to sign

        Returns:
            Raw RSA signature bytes
        """
        return self._private_key.sign(message, padding.PKCS1v15(), hashes.SHA256())

    def public_key_pem(self) -> str:
        """Return the public key in PEM format."""
        return self._public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        ).decode()

    def private_key_pem(self) -> str:
        """Return the private key in PEM format (for storage)."""
        return self._private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode()

    @classmethod
    def from_pem_file(cls, path: str | Path) -> "RsaSigner":
        """
        Load an RSA signer from a PEM file.

        Args:
            path: Path to the GitHub App private key (.pem)

        Returns:
            RsaSigner instance
        """
        return cls.from_pem(Path(path).read_text())

    @classmethod
    def from_pem(cls, pem_string: str) -> "RsaSigner":
        """
        Load an RSA signer from a PEM string.

        Both PKCS#1 ("BEGIN RSA PRIVATE KEY", as downloaded from GitHub) and
        PKCS#8 encodings are accepted. Escaped newlines are restored so keys
        passed through single-line environment variables still load.

        Args:
            pem_string: PEM-encoded RSA private key

        Returns:
            RsaSigner instance
        """
        pem_string = pem_string.strip().replace("\\n", "\n")
        private_key = serialization.load_pem_private_key(
            pem_string.encode(), password=None
        )

        if not isinstance(private_key, rsa.RSAPrivateKey):
            raise TypeError(f"Expected RSA private key, got {type(private_key).__name__}")

        return cls(private_key)

    @classmethod
    def generate(cls, key_size: int = 2048) -> "RsaSigner":
        """Generate a new RSA keypair (for testing)."""
        return cls(rsa.generate_private_key(public_exponent=65537, key_size=key_size))

    def verify(self, signature: bytes, message: bytes) -> bool:
        """
        Verify a signature (for testing purposes).

        Args:
            signature: The signature to verify
            message: The original message

        Returns:
            True if valid, False otherwise
        """
        try:
            self._public_key.verify(signature, message, padding.PKCS1v15(), hashes.SHA256())
            return True
        except Exception:
            return False
