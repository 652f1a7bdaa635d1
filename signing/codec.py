"""
Signature codec for liveness assertions.

The signed message is the ASCII decimal encoding of the timestamp. A signature
travels as an ordered list of hex strings, one per signature component:

- RSA (PKCS#1 v1.5): one component, the raw signature bytes (modulus length)
- ECDSA / DSA: two components, ``r`` and ``s`` as big-endian unsigned integers
- Ed25519: one component, the 64-byte signature (digest is not used)
"""

import string

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import dsa, ec, ed25519, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

from core.errors import AuthenticationError, ConfigurationError, ValidationError

_DIGESTS = {
    "sha1": hashes.SHA1,
    "sha224": hashes.SHA224,
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
}

ED25519_SIGNATURE_LENGTH = 64


def resolve_digest(name):
    """Map a digest name such as ``"sha256"`` to a cryptography hash instance."""
    try:
        return _DIGESTS[str(name or "").strip().lower()]()
    except KeyError as e:
        raise ConfigurationError(f"Unsupported digest algorithm: {name!r}") from e


def canonical_message(timestamp):
    return str(int(timestamp)).encode("ascii")


def _int_to_hex(value):
    length = max(1, (value.bit_length() + 7) // 8)
    return value.to_bytes(length, "big").hex()


def _decode_components(components, expected):
    if not isinstance(components, (list, tuple)) or len(components) != expected:
        count = len(components) if isinstance(components, (list, tuple)) else "no"
        raise ValidationError(f"Expected {expected} signature component(s), got {count}")
    decoded = []
    for component in components:
        text = str(component)
        # bytes.fromhex tolerates whitespace between byte pairs; the wire format does not.
        if not all(c in string.hexdigits for c in text):
            raise ValidationError("Signature component is not valid hex")
        try:
            raw = bytes.fromhex(text)
        except ValueError as e:
            raise ValidationError(f"Signature component is not valid hex: {e}") from e
        if not raw:
            raise ValidationError("Signature component is empty")
        decoded.append(raw)
    return decoded


def sign_timestamp(private_key, timestamp, digest="sha256"):
    """Sign ``timestamp`` and return the signature as hex components."""
    message = canonical_message(timestamp)
    if isinstance(private_key, ed25519.Ed25519PrivateKey):
        return [private_key.sign(message).hex()]
    algorithm = resolve_digest(digest)
    if isinstance(private_key, rsa.RSAPrivateKey):
        return [private_key.sign(message, padding.PKCS1v15(), algorithm).hex()]
    if isinstance(private_key, ec.EllipticCurvePrivateKey):
        der = private_key.sign(message, ec.ECDSA(algorithm))
    elif isinstance(private_key, dsa.DSAPrivateKey):
        der = private_key.sign(message, algorithm)
    else:
        raise ConfigurationError(f"Unsupported signing key type: {type(private_key).__name__}")
    r, s = decode_dss_signature(der)
    return [_int_to_hex(r), _int_to_hex(s)]


def verify_timestamp(public_key, timestamp, components, digest="sha256"):
    """Verify hex signature components over ``timestamp``.

    Raises ``AuthenticationError`` for a signature that does not verify and
    ``ValidationError`` for components that cannot form a signature at all:
    non-hex text, wrong component count, or a signature of the wrong length
    for the key (RSA, Ed25519).
    """
    message = canonical_message(timestamp)
    try:
        if isinstance(public_key, ed25519.Ed25519PublicKey):
            (signature,) = _decode_components(components, 1)
            if len(signature) != ED25519_SIGNATURE_LENGTH:
                raise ValidationError(
                    f"Ed25519 signature must be {ED25519_SIGNATURE_LENGTH} bytes, got {len(signature)}"
                )
            public_key.verify(signature, message)
            return
        algorithm = resolve_digest(digest)
        if isinstance(public_key, rsa.RSAPublicKey):
            (signature,) = _decode_components(components, 1)
            expected = (public_key.key_size + 7) // 8
            if len(signature) != expected:
                raise ValidationError(f"RSA signature must be {expected} bytes, got {len(signature)}")
            public_key.verify(signature, message, padding.PKCS1v15(), algorithm)
            return
        if isinstance(public_key, (ec.EllipticCurvePublicKey, dsa.DSAPublicKey)):
            r_raw, s_raw = _decode_components(components, 2)
            der = encode_dss_signature(
                int.from_bytes(r_raw, "big"), int.from_bytes(s_raw, "big")
            )
            if isinstance(public_key, ec.EllipticCurvePublicKey):
                public_key.verify(der, message, ec.ECDSA(algorithm))
            else:
                public_key.verify(der, message, algorithm)
            return
    except InvalidSignature as e:
        raise AuthenticationError("Signature verification failed") from e
    raise ValidationError(f"Unsupported verification key type: {type(public_key).__name__}")
