"""
test_identity.py — participant identities, secret encoding, ECDH and signing
"""

import hashlib

import pytest

from supportlist.errors import InvalidSecretError
from supportlist.identity import (
    CURVE_ORDER,
    Identity,
    decode_secret,
    encode_secret,
    load_public_id,
    verify_signature,
)


def test_generate_produces_xonly_public_id():
    ident = Identity.generate()
    assert len(ident.secret) == 32
    assert len(ident.public_id) == 64
    assert ident.public_id == ident.public_id.lower()
    bytes.fromhex(ident.public_id)


def test_secret_roundtrip_through_transport_form():
    ident = Identity.generate()
    encoded = ident.secret_encoded()
    assert "=" not in encoded
    assert Identity.from_secret(encoded) == ident


def test_decode_accepts_hex():
    ident = Identity.generate()
    assert decode_secret(ident.secret.hex()) == ident.secret


def test_decode_accepts_padded_standard_base64():
    import base64
    ident = Identity.generate()
    encoded = base64.b64encode(ident.secret).decode("ascii")
    assert decode_secret(encoded) == ident.secret


@pytest.mark.parametrize("bad", ["", "   ", "not a key!", "abcd", "00" * 31])
def test_decode_rejects_garbage(bad):
    with pytest.raises(InvalidSecretError):
        decode_secret(bad)


def test_decode_rejects_zero_and_out_of_range_scalars():
    with pytest.raises(InvalidSecretError):
        decode_secret("00" * 32)
    with pytest.raises(InvalidSecretError):
        decode_secret(CURVE_ORDER.to_bytes(32, "big").hex())


def test_from_secret_bytes_rejects_wrong_length():
    with pytest.raises(InvalidSecretError):
        Identity.from_secret_bytes(b"\x01" * 31)


def test_known_secret_maps_to_generator_x():
    # Secret 1 gives the curve generator.
    ident = Identity.from_secret_bytes((1).to_bytes(32, "big"))
    assert ident.public_id == "79be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"


def test_shared_secret_is_symmetric():
    owner = Identity.generate()
    guest = Identity.generate()
    assert owner.shared_secret(guest.public_id) == guest.shared_secret(owner.public_id)


def test_shared_secret_differs_per_pair():
    a, b, c = Identity.generate(), Identity.generate(), Identity.generate()
    assert a.shared_secret(b.public_id) != a.shared_secret(c.public_id)


def test_shared_secret_rejects_invalid_peer():
    ident = Identity.generate()
    with pytest.raises(ValueError):
        ident.shared_secret("zz" * 32)
    with pytest.raises(ValueError):
        ident.shared_secret("ab" * 16)


def test_load_public_id_lifts_even_point():
    ident = Identity.generate()
    point = load_public_id(ident.public_id)
    numbers = point.public_numbers()
    assert numbers.y % 2 == 0
    assert numbers.x.to_bytes(32, "big").hex() == ident.public_id


def test_sign_and_verify_digest():
    # Several identities so both y parities of the raw key are exercised.
    for _ in range(8):
        ident = Identity.generate()
        digest = hashlib.sha256(b"snapshot").digest()
        sig = ident.sign_digest(digest)
        assert verify_signature(ident.public_id, digest, sig)


def test_verify_rejects_wrong_key_and_digest():
    ident = Identity.generate()
    other = Identity.generate()
    digest = hashlib.sha256(b"a").digest()
    sig = ident.sign_digest(digest)
    assert not verify_signature(other.public_id, digest, sig)
    assert not verify_signature(ident.public_id, hashlib.sha256(b"b").digest(), sig)


def test_verify_never_raises_on_garbage():
    digest = hashlib.sha256(b"a").digest()
    assert verify_signature("nothex", digest, "00") is False
    assert verify_signature(Identity.generate().public_id, digest, "zz") is False


def test_repr_hides_secret():
    ident = Identity.generate()
    assert ident.secret.hex() not in repr(ident)
    assert encode_secret(ident.secret) not in repr(ident)
