"""
identity.py — Participant Identities (owner / guest)

Implements:
  - secp256k1 keypair generation
  - Transportable secret encoding (URL-safe base64, hex accepted on input)
  - x-only public identifiers (32-byte x-coordinate, lowercase hex)
  - ECDH shared secret between two participants
  - Signing and verification over 32-byte event ids

Dependencies:
  - cryptography >= 41.0 (pip install cryptography)

Security model:
  - The guest secret is shared on purpose: possession of it IS access.
  - The owner secret is private by convention only.
  - A public identifier names the even-y point with that x-coordinate. The
    signing scalar is negated when needed so signatures verify against it.
    ECDH only consumes the x-coordinate, so it is unaffected by the sign.
"""

from __future__ import annotations
import base64
import binascii
from dataclasses import dataclass

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed

from .errors import InvalidSecretError

SECRET_LENGTH_BYTES = 32
PUBLIC_ID_LENGTH_BYTES = 32

# Order of the secp256k1 group.
CURVE_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

_CURVE = ec.SECP256K1()
_SIGNATURE_ALGORITHM = ec.ECDSA(Prehashed(hashes.SHA256()))


# ---------------------------------------------------------------------------
# Secret encoding
# ---------------------------------------------------------------------------

def encode_secret(raw: bytes) -> str:
    """Encode raw secret bytes as unpadded URL-safe base64 (link-safe)."""
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _decode_hex(data: str) -> bytes:
    try:
        return bytes.fromhex(data)
    except ValueError as err:
        raise ValueError(f"Invalid hex encoding: {err}") from err


def _decode_base64(data: str) -> bytes:
    """Decode URL-safe or standard base64, accepting omitted padding."""
    padding = "=" * (-len(data) % 4)
    normalized = data.replace("+", "-").replace("/", "_") + padding
    try:
        return base64.urlsafe_b64decode(normalized)
    except (binascii.Error, ValueError) as err:
        raise ValueError(f"Invalid base64 encoding: {err}") from err


def decode_secret(encoded: str) -> bytes:
    """
    Decode a transportable secret into 32 raw bytes.

    Accepts 64-char hex or (URL-safe) base64. Raises InvalidSecretError when
    no decoding yields a valid secp256k1 scalar.
    """
    if not isinstance(encoded, str):
        raise InvalidSecretError("secret must be a string")
    cleaned = encoded.strip()
    if not cleaned:
        raise InvalidSecretError("secret is empty")

    decoders = [_decode_base64]
    if len(cleaned) == SECRET_LENGTH_BYTES * 2:
        decoders.insert(0, _decode_hex)

    errors = []
    for decoder in decoders:
        try:
            raw = decoder(cleaned)
        except ValueError as err:
            errors.append(str(err))
            continue
        if len(raw) != SECRET_LENGTH_BYTES:
            errors.append(f"secret must be {SECRET_LENGTH_BYTES} bytes, got {len(raw)}")
            continue
        if not _valid_scalar(raw):
            errors.append("secret is outside the secp256k1 scalar range")
            continue
        return raw
    raise InvalidSecretError("; ".join(errors))


def _valid_scalar(raw: bytes) -> bool:
    value = int.from_bytes(raw, "big")
    return 0 < value < CURVE_ORDER


# ---------------------------------------------------------------------------
# Public identifiers
# ---------------------------------------------------------------------------

def load_public_id(public_id: str) -> ec.EllipticCurvePublicKey:
    """
    Lift an x-only public identifier to its even-y curve point.

    Raises ValueError if the identifier is malformed or not on the curve.
    """
    raw = bytes.fromhex(public_id)
    if len(raw) != PUBLIC_ID_LENGTH_BYTES:
        raise ValueError(f"public id must be {PUBLIC_ID_LENGTH_BYTES} bytes, got {len(raw)}")
    return ec.EllipticCurvePublicKey.from_encoded_point(_CURVE, b"\x02" + raw)


def verify_signature(public_id: str, digest: bytes, signature_hex: str) -> bool:
    """Verify a hex DER signature over a 32-byte digest. Never raises."""
    try:
        public_key = load_public_id(public_id)
        public_key.verify(bytes.fromhex(signature_hex), digest, _SIGNATURE_ALGORITHM)
        return True
    except (InvalidSignature, ValueError, TypeError):
        return False


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Identity:
    """A participant keypair: the owner or the guest of a list."""
    secret: bytes
    public_id: str

    @classmethod
    def generate(cls) -> "Identity":
        """Generate a fresh secp256k1 identity."""
        private_key = ec.generate_private_key(_CURVE)
        value = private_key.private_numbers().private_value
        return cls.from_secret_bytes(value.to_bytes(SECRET_LENGTH_BYTES, "big"))

    @classmethod
    def from_secret_bytes(cls, raw: bytes) -> "Identity":
        if len(raw) != SECRET_LENGTH_BYTES or not _valid_scalar(raw):
            raise InvalidSecretError("secret is not a valid secp256k1 scalar")
        private_key = ec.derive_private_key(int.from_bytes(raw, "big"), _CURVE)
        x = private_key.public_key().public_numbers().x
        return cls(secret=bytes(raw), public_id=x.to_bytes(PUBLIC_ID_LENGTH_BYTES, "big").hex())

    @classmethod
    def from_secret(cls, encoded: str) -> "Identity":
        """Build an identity from its transportable secret form."""
        return cls.from_secret_bytes(decode_secret(encoded))

    def secret_encoded(self) -> str:
        """Transportable secret. Anyone holding it acts as this participant."""
        return encode_secret(self.secret)

    def _private_key(self) -> ec.EllipticCurvePrivateKey:
        return ec.derive_private_key(int.from_bytes(self.secret, "big"), _CURVE)

    def _signing_key(self) -> ec.EllipticCurvePrivateKey:
        private_key = self._private_key()
        if private_key.public_key().public_numbers().y % 2 == 0:
            return private_key
        # Negate so the signing point is the even-y lift of public_id.
        negated = CURVE_ORDER - int.from_bytes(self.secret, "big")
        return ec.derive_private_key(negated, _CURVE)

    def shared_secret(self, peer_public_id: str) -> bytes:
        """
        ECDH x-coordinate with a peer.

        Symmetric: A.shared_secret(B.public_id) == B.shared_secret(A.public_id).
        Raises ValueError for an invalid peer identifier.
        """
        peer = load_public_id(peer_public_id)
        return self._private_key().exchange(ec.ECDH(), peer)

    def sign_digest(self, digest: bytes) -> str:
        """Sign a 32-byte digest; returns the hex DER signature."""
        return self._signing_key().sign(digest, _SIGNATURE_ALGORITHM).hex()

    def __repr__(self) -> str:
        return f"Identity(public_id={self.public_id!r})"
