"""Public-key signatures over heartbeat timestamps."""

from signing.codec import canonical_message, sign_timestamp, verify_timestamp
from signing.keys import load_signing_key, load_verification_key

__all__ = [
    "canonical_message",
    "load_signing_key",
    "load_verification_key",
    "sign_timestamp",
    "verify_timestamp",
]
