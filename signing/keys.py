"""PEM key loading for heartbeat signing and verification.

Any problem with a key is a startup ``ConfigurationError``: an agent that
cannot sign must not start sending unsigned heartbeats.
"""

from pathlib import Path

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import dsa, ec, ed25519, rsa

from core.errors import ConfigurationError

SIGNING_KEY_TYPES = (
    rsa.RSAPrivateKey,
    ec.EllipticCurvePrivateKey,
    dsa.DSAPrivateKey,
    ed25519.Ed25519PrivateKey,
)
VERIFICATION_KEY_TYPES = (
    rsa.RSAPublicKey,
    ec.EllipticCurvePublicKey,
    dsa.DSAPublicKey,
    ed25519.Ed25519PublicKey,
)


def _read_pem(path, label):
    key_path = Path(path)
    if not key_path.exists():
        raise ConfigurationError(f"{label} file does not exist: {key_path}")
    try:
        data = key_path.read_bytes()
    except OSError as e:
        raise ConfigurationError(f"Failed to read {label.lower()} file {key_path}: {e}") from e
    if not data.strip():
        raise ConfigurationError(f"{label} file is empty: {key_path}")
    return data


def load_signing_key(path, passphrase=None):
    """Load a PEM private key and check that it can produce signatures."""
    data = _read_pem(path, "Private key")
    password = passphrase.encode("utf-8") if passphrase else None
    try:
        key = serialization.load_pem_private_key(data, password=password)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise ConfigurationError(f"Invalid PEM private key in {path}: {e}") from e
    if not isinstance(key, SIGNING_KEY_TYPES):
        raise ConfigurationError(
            f"Private key is not a signing key ({type(key).__name__} is not supported)"
        )
    return key


def load_verification_key(path):
    """Load a PEM public key usable for verifying heartbeat signatures."""
    data = _read_pem(path, "Public key")
    try:
        key = serialization.load_pem_public_key(data)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise ConfigurationError(f"Invalid PEM public key in {path}: {e}") from e
    if not isinstance(key, VERIFICATION_KEY_TYPES):
        raise ConfigurationError(
            f"Public key cannot verify signatures ({type(key).__name__} is not supported)"
        )
    return key
