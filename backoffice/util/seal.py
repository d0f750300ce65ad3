"""Authenticated encryption of small records into cookie-safe strings.

A sealed value is a Fernet token (AES-128-CBC with an HMAC-SHA256 tag,
checked in constant time) with its base64 padding removed, so it only
contains ``[A-Za-z0-9_-]`` and can be used directly as a cookie value.
The Fernet key is derived from the server secret with HKDF-SHA256.
"""

import base64
import binascii
from typing import TypeVar

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from pydantic import BaseModel, ValidationError

from backoffice.util.error import SealError

# Browsers cap a cookie (name, value and attributes) at about 4096 bytes
MAX_SEALED_LENGTH = 3800

MIN_SECRET_LENGTH = 32

_KEY_INFO = b"backoffice-session-seal-v1"

M = TypeVar("M", bound=BaseModel)


def derive_key(secret: str) -> bytes:
    """Derive a Fernet key from the server secret.

    Args:
        secret: Server-held sealing secret

    Returns:
        URL-safe base64 encoded 32-byte key
    """
    hkdf = HKDF(algorithm=hashes.SHA256(), length=32, salt=None, info=_KEY_INFO)
    return base64.urlsafe_b64encode(hkdf.derive(secret.encode("utf-8")))


def seal(record: BaseModel, secret: str) -> str:
    """Seal a record into an opaque, authenticated string.

    Args:
        record: Pydantic model to seal
        secret: Server-held sealing secret

    Returns:
        Cookie-safe sealed value

    Raises:
        SealError: If the record cannot be serialized or is too large for a cookie
    """
    try:
        payload = record.model_dump_json().encode("utf-8")
    except (ValueError, TypeError) as e:
        raise SealError(f"Record could not be serialized: {e}") from e

    token = Fernet(derive_key(secret)).encrypt(payload)
    sealed = token.rstrip(b"=").decode("ascii")

    if len(sealed) > MAX_SEALED_LENGTH:
        raise SealError(
            f"Sealed value is {len(sealed)} characters, limit is {MAX_SEALED_LENGTH}"
        )
    return sealed


def unseal(
    value: str, model: type[M], secret: str, max_age: int | None = None
) -> M:
    """Verify, decrypt and parse a sealed value.

    Args:
        value: Sealed value as produced by ``seal``
        model: Pydantic model class to parse the payload into
        secret: Server-held sealing secret
        max_age: Optional maximum age in seconds since sealing

    Returns:
        The parsed record

    Raises:
        SealError: If the value is malformed, tampered, sealed with another
            secret, older than ``max_age``, or does not match ``model``
    """
    token = _decode_canonical(value)

    try:
        payload = Fernet(derive_key(secret)).decrypt(token, ttl=max_age)
    except InvalidToken as e:
        raise SealError("Sealed value failed authentication") from e

    try:
        return model.model_validate_json(payload)
    except ValidationError as e:
        raise SealError("Sealed payload has an unexpected shape") from e


def _decode_canonical(value: str) -> bytes:
    """Restore padding and reject anything but the canonical encoding.

    The standard decoder silently skips foreign characters and ignores the
    unused low bits of the final character, so a mutated value could
    otherwise decode to the original token.
    """
    try:
        raw_value = value.encode("ascii")
    except UnicodeEncodeError as e:
        raise SealError("Sealed value is not ASCII") from e

    padded = raw_value + b"=" * (-len(raw_value) % 4)
    try:
        decoded = base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as e:
        raise SealError("Sealed value is not valid base64") from e

    canonical = base64.urlsafe_b64encode(decoded)
    if canonical.rstrip(b"=") != raw_value:
        raise SealError("Sealed value is not canonically encoded")
    return canonical
