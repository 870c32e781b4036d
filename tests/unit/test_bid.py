"""
Tests for the Bid model.

Tests cover:
1. Value range enforcement at construction
2. Decryption correctness
3. Canonical digest identity
4. Fixed-width and dict encodings
"""

import random

import pytest
from blindbid.core.bid import Bid, generate_prover_id, hash_secret
from blindbid.core.config import BlindBidConfig, V_RAW_MAX, V_RAW_MIN
from blindbid.crypto import GENERATOR, SecretSpendKey, pedersen_commit, random_field_element, random_scalar
from blindbid.crypto.poseidon import FIELD_PRIME
from blindbid.errors import (
    DecodingError,
    MaximumBidValueExceeded,
    MinimumBidValueUnreached,
    WrongSecretProvided,
)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def rng():
    return random.Random(2024)


@pytest.fixture
def spend_key(rng):
    return SecretSpendKey.random(rng)


@pytest.fixture
def stealth_address(rng, spend_key):
    return spend_key.public_spend_key().gen_stealth_address(random_scalar(rng))


@pytest.fixture
def secret(rng):
    return GENERATOR.mul(random_scalar(rng))


@pytest.fixture
def secret_k(rng):
    return random_field_element(rng)


@pytest.fixture
def bid(rng, stealth_address, secret, secret_k):
    return Bid.new(rng, stealth_address, 100_000, secret, secret_k, 10, 20)


# =============================================================================
# Construction
# =============================================================================


class TestBidConstruction:
    """Value range enforcement."""

    def test_value_above_maximum(self, rng, stealth_address, secret, secret_k):
        with pytest.raises(MaximumBidValueExceeded) as exc_info:
            Bid.new(rng, stealth_address, V_RAW_MAX + 1, secret, secret_k, 10, 20)
        assert exc_info.value.max_val == V_RAW_MAX
        assert exc_info.value.found == V_RAW_MAX + 1

    def test_value_below_minimum(self, rng, stealth_address, secret, secret_k):
        with pytest.raises(MinimumBidValueUnreached) as exc_info:
            Bid.new(rng, stealth_address, V_RAW_MIN - 1, secret, secret_k, 10, 20)
        assert exc_info.value.min_val == V_RAW_MIN
        assert exc_info.value.found == V_RAW_MIN - 1

    @pytest.mark.parametrize("value", [V_RAW_MIN, V_RAW_MAX])
    def test_bounds_are_inclusive(self, rng, stealth_address, secret, secret_k, value):
        bid = Bid.new(rng, stealth_address, value, secret, secret_k, 10, 20)
        assert bid.decrypt_data(secret)[0] == value

    def test_custom_config_bounds(self, rng, stealth_address, secret, secret_k):
        config = BlindBidConfig(v_min=10, v_max=20)
        bid = Bid.new(rng, stealth_address, 15, secret, secret_k, 1, 2, config=config)
        assert bid.decrypt_data(secret)[0] == 15

        with pytest.raises(MaximumBidValueExceeded):
            Bid.new(rng, stealth_address, 100_000, secret, secret_k, 1, 2, config=config)

    def test_window_must_be_u64(self, rng, stealth_address, secret, secret_k):
        with pytest.raises(ValueError):
            Bid.new(rng, stealth_address, 100_000, secret, secret_k, -1, 20)
        with pytest.raises(ValueError):
            Bid.new(rng, stealth_address, 100_000, secret, secret_k, 10, 2**64)

    def test_hashed_secret(self, bid, secret_k):
        assert bid.hashed_secret == hash_secret(secret_k)

    def test_fresh_randomness_per_bid(self, rng, stealth_address, secret, secret_k):
        b1 = Bid.new(rng, stealth_address, 100_000, secret, secret_k, 10, 20)
        b2 = Bid.new(rng, stealth_address, 100_000, secret, secret_k, 10, 20)
        assert b1.nonce != b2.nonce
        assert b1.c != b2.c
        assert b1 != b2

    def test_deterministic_with_seeded_rng(self, stealth_address, secret, secret_k):
        b1 = Bid.new(random.Random(1), stealth_address, 100_000, secret, secret_k, 10, 20)
        b2 = Bid.new(random.Random(1), stealth_address, 100_000, secret, secret_k, 10, 20)
        assert b1 == b2


class TestBidDecryption:
    def test_decrypt_recovers_commitment_opening(self, bid, secret):
        value, blinder = bid.decrypt_data(secret)
        assert value == 100_000
        assert pedersen_commit(value, blinder) == bid.commitment

    def test_wrong_secret(self, bid, secret):
        with pytest.raises(WrongSecretProvided):
            bid.decrypt_data(secret.double())

    def test_ownership(self, bid, spend_key, rng):
        assert bid.is_owned_by(spend_key)
        assert not bid.is_owned_by(SecretSpendKey.random(rng))


class TestProverId:
    def test_deterministic(self, bid, secret_k):
        assert bid.generate_prover_id(secret_k, 5, 15, 2) == bid.generate_prover_id(secret_k, 5, 15, 2)

    def test_changes_per_round(self, secret_k):
        assert generate_prover_id(secret_k, 5, 15, 2) != generate_prover_id(secret_k, 5, 16, 2)
        assert generate_prover_id(secret_k, 5, 15, 2) != generate_prover_id(secret_k, 5, 15, 3)

    def test_in_field(self, secret_k):
        assert 0 <= generate_prover_id(secret_k, 1, 1, 1) < FIELD_PRIME


# =============================================================================
# Identity and encoding
# =============================================================================


class TestBidIdentity:
    def test_digest_excludes_pos(self, bid):
        digest = bid.digest()
        bid.pos = 12
        assert bid.digest() == digest

    def test_digest_covers_fields(self, bid):
        digest = bid.digest()
        bid.expiration += 1
        assert bid.digest() != digest

    def test_hash_follows_digest(self, bid):
        assert hash(bid) == hash(bid.digest())
        assert len({bid, Bid.from_bytes(bid.to_bytes())}) == 1

    def test_hash_inputs_length(self, bid):
        assert len(bid.hash_inputs()) == 13


class TestBidEncoding:
    def test_size(self, bid):
        assert Bid.SIZE == 280
        assert len(bid.to_bytes()) == 280

    def test_roundtrip(self, bid):
        bid.pos = 3
        decoded = Bid.from_bytes(bid.to_bytes())
        assert decoded == bid
        assert decoded.pos == 3
        assert decoded.to_bytes() == bid.to_bytes()

    def test_layout(self, bid):
        data = bid.to_bytes()
        assert data[:96] == bid.encrypted_data.to_bytes()
        assert data[128:192] == bid.stealth_address.to_bytes()
        assert int.from_bytes(data[256:264], "little") == bid.eligibility
        assert int.from_bytes(data[264:272], "little") == bid.expiration

    def test_truncated(self, bid):
        with pytest.raises(DecodingError):
            Bid.from_bytes(bid.to_bytes()[:-1])

    def test_invalid_commitment(self, bid):
        data = bytearray(bid.to_bytes())
        # y = p - 1 with x = 0 is the order-2 point
        data[224:256] = (FIELD_PRIME - 1).to_bytes(32, "little")
        with pytest.raises(DecodingError):
            Bid.from_bytes(bytes(data))

    def test_non_canonical_nonce(self, bid):
        data = bytearray(bid.to_bytes())
        data[96:128] = FIELD_PRIME.to_bytes(32, "little")
        with pytest.raises(DecodingError):
            Bid.from_bytes(bytes(data))

    def test_dict_roundtrip(self, bid):
        bid.pos = 5
        decoded = Bid.from_dict(bid.to_dict())
        assert decoded == bid
        assert decoded.pos == 5

    def test_dict_missing_field(self, bid):
        data = bid.to_dict()
        del data["nonce"]
        with pytest.raises(DecodingError):
            Bid.from_dict(data)
