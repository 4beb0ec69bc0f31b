"""
Security helpers for password hashing and JWT authentication.

This module implements a lightweight JSON Web Token (JWT) mechanism
using HMAC‑SHA256 signatures and base64url encoding.  Tokens embed the
user id as ``sub`` and an expiration timestamp (``exp``).  Passwords are
hashed with PBKDF2‑HMAC‑SHA256 and a random salt.

``resolve_identity`` maps a bearer token onto an ``Identity``.  It never
raises: a missing, malformed or expired token, or one whose user no
longer exists or has been disabled, resolves to ``None`` and the
permission gate decides what anonymous callers may do.
"""

import base64
import hashlib
import hmac
import json
import os
import secrets
import time
from typing import Any, Dict, Optional, Tuple

from .config import settings
from .permissions import Identity, Role
from .store import USERS, DocumentStore

PBKDF2_ITERATIONS = 100_000


def _b64_url_encode(data: bytes) -> str:
    """Base64‑url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64‑url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    """Compute HMAC‑SHA256 signature of a message using the given secret."""
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def create_access_token(data: Dict[str, Any], expires_delta: Optional[int] = None) -> str:
    """Create a signed JWT token with the given payload.

    Parameters
    ----------
    data : dict
        Claims to embed in the token (e.g. ``{"sub": "<user id>"}``).
    expires_delta : Optional[int]
        Lifetime of the token in seconds.  Defaults to
        ``settings.access_token_expire_minutes * 60``.

    Returns
    -------
    str
        A signed token of the form ``header.payload.signature``.
    """
    to_encode = data.copy()
    exp_seconds = expires_delta or settings.access_token_expire_minutes * 60
    to_encode["exp"] = int(time.time()) + exp_seconds
    header = {"alg": settings.algorithm, "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(to_encode, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature_b64 = _b64_url_encode(_sign(signing_input, settings.secret_key))
    return f"{header_b64}.{payload_b64}.{signature_b64}"


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Verify and decode a JWT token.

    Returns the payload when the signature matches and the token has
    not expired, otherwise ``None``.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return None
    header_b64, payload_b64, signature_b64 = parts
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    try:
        actual_sig = _b64_url_decode(signature_b64)
        # Constant‑time comparison to prevent timing attacks
        if not hmac.compare_digest(_sign(signing_input, settings.secret_key), actual_sig):
            return None
        data = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        return None
    if not isinstance(data, dict):
        return None
    try:
        if data.get("exp") is None or int(data["exp"]) < int(time.time()):
            return None
    except (TypeError, ValueError):
        return None
    return data


def hash_password(password: str) -> str:
    """Hash a password using PBKDF2‑HMAC with SHA‑256.

    The result contains the hex salt and hex digest separated by ``$``.
    """
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a plain password against a stored ``salt$hash`` string."""
    if not hashed_password or "$" not in hashed_password:
        return False
    salt_hex, hash_hex = hashed_password.split("$", 1)
    try:
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
    except ValueError:
        return False
    dk = hashlib.pbkdf2_hmac("sha256", plain_password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return hmac.compare_digest(dk, stored_hash)


def hash_token(token: str) -> str:
    """SHA‑256 hex digest used to store password reset tokens."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_reset_token() -> Tuple[str, str]:
    """Return ``(token, hashed_token)``; only the hash is persisted."""
    token = secrets.token_hex(20)
    return token, hash_token(token)


def resolve_identity(token: Optional[str], store: DocumentStore) -> Optional[Identity]:
    """Map a bearer token onto the identity of an active user."""
    if not token:
        return None
    payload = decode_access_token(token)
    if not payload or not payload.get("sub"):
        return None
    user = store.get_by_id(USERS, str(payload["sub"]), projection=("id", "role", "disabled"))
    if not user or user.get("disabled"):
        return None
    try:
        role = Role(user.get("role"))
    except ValueError:
        return None
    return Identity(id=user["id"], role=role)
