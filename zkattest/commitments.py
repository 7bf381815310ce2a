"""
zkattest Commitment Builder

Binds identities (sender, owner, organization) into attestations as
SHA-256 digests, so committed output never carries the plaintext identity.
Fingerprints of encoded records use the "sha256:<hex>" form.
"""

import hashlib
import hmac
from typing import Optional, Union

from .errors import IdentityMismatch

DIGEST_LENGTH = 32


def _to_bytes(value: Union[bytes, str]) -> bytes:
    if isinstance(value, str):
        return value.encode('utf-8')
    return bytes(value)


def hash_identity(value: Union[bytes, str]) -> bytes:
    """
    Commit to an identity.

    Strings are hashed as their UTF-8 bytes, so hash_identity("org-42") and
    hash_identity(b"org-42") agree.

    Returns:
        32-byte SHA-256 digest
    """
    return hashlib.sha256(_to_bytes(value)).digest()


def identity_matches(digest: bytes, value: Union[bytes, str]) -> bool:
    """Check a plaintext identity against a committed digest in constant time."""
    return hmac.compare_digest(bytes(digest), hash_identity(value))


def require_identity(digest: bytes, value: Union[bytes, str], field: Optional[str] = None) -> None:
    """
    Require a plaintext identity to match its committed digest.

    Raises:
        IdentityMismatch: when the digest was not produced from value
    """
    if not identity_matches(digest, value):
        raise IdentityMismatch(
            "Identity does not match its commitment",
            field=field,
            required="0x" + bytes(digest).hex()
        )


def sha256_hash(data: Union[bytes, str]) -> str:
    """
    Fingerprint arbitrary bytes.

    Returns:
        Hash string in format "sha256:abcdef..."
    """
    digest = hashlib.sha256(_to_bytes(data)).hexdigest().lower()
    return f"sha256:{digest}"


def verify_hash(declared_hash: str, data: Union[bytes, str]) -> bool:
    """Recompute a fingerprint and compare it with a declared one."""
    if not declared_hash.startswith("sha256:"):
        return False
    return hmac.compare_digest(sha256_hash(data), declared_hash)
