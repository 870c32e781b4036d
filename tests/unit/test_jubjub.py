"""
Tests for Baby Jubjub arithmetic and encodings.
"""

import random

import pytest
from blindbid.crypto.poseidon import FIELD_PRIME
from blindbid.crypto.jubjub import (
    GENERATOR,
    GENERATOR_NUMS,
    SUBGROUP_ORDER,
    JubJubAffine,
    fixed_base_table,
    hash_to_curve,
    pedersen_commit,
    random_scalar,
    recover_x,
    scalar_from_bytes,
    scalar_to_bytes,
    sqrt_mod,
)
from blindbid.errors import DecodingError


@pytest.fixture
def rng():
    return random.Random(1234)


class TestCurve:
    """Group law tests."""

    def test_generators_on_curve(self):
        assert GENERATOR.is_on_curve()
        assert GENERATOR_NUMS.is_on_curve()

    def test_generators_in_subgroup(self):
        assert GENERATOR.is_torsion_free()
        assert GENERATOR_NUMS.is_torsion_free()

    def test_generators_independent(self):
        assert GENERATOR != GENERATOR_NUMS

    def test_identity(self):
        identity = JubJubAffine.identity()
        assert identity.is_identity
        assert GENERATOR + identity == GENERATOR

    def test_negation(self):
        assert (GENERATOR + (-GENERATOR)).is_identity
        assert (GENERATOR - GENERATOR).is_identity

    def test_scalar_mul_distributes(self):
        assert GENERATOR.mul(5) == GENERATOR.mul(2) + GENERATOR.mul(3)
        assert 7 * GENERATOR == GENERATOR * 7

    def test_order(self):
        assert GENERATOR.mul(SUBGROUP_ORDER).is_identity
        assert GENERATOR.mul(SUBGROUP_ORDER + 1) == GENERATOR

    def test_fixed_base_table(self):
        table = fixed_base_table(GENERATOR, 4)
        assert table == [GENERATOR.mul(1), GENERATOR.mul(2), GENERATOR.mul(4), GENERATOR.mul(8)]

    def test_hash_to_curve_deterministic(self):
        assert hash_to_curve(b"seed") == hash_to_curve(b"seed")
        assert hash_to_curve(b"seed").is_torsion_free()


class TestSqrt:
    def test_sqrt_of_square(self):
        for x in [2, 3, 12345, FIELD_PRIME - 7]:
            root = sqrt_mod(x * x)
            assert root * root % FIELD_PRIME == x * x % FIELD_PRIME

    def test_non_residue(self):
        # 5 is the smallest quadratic non-residue of the BN254 scalar field
        assert sqrt_mod(5) is None

    def test_recover_x(self):
        x = recover_x(GENERATOR.y)
        assert x in (GENERATOR.x, FIELD_PRIME - GENERATOR.x)


class TestEncoding:
    """Point and scalar encodings."""

    def test_point_roundtrip(self, rng):
        for _ in range(3):
            point = GENERATOR.mul(random_scalar(rng))
            assert JubJubAffine.from_bytes(point.to_bytes()) == point

    def test_identity_roundtrip(self):
        identity = JubJubAffine.identity()
        assert JubJubAffine.from_bytes(identity.to_bytes()) == identity

    def test_point_wrong_length(self):
        with pytest.raises(DecodingError):
            JubJubAffine.from_bytes(bytes(31))

    def test_point_non_canonical_y(self):
        data = FIELD_PRIME.to_bytes(32, "little")
        with pytest.raises(DecodingError):
            JubJubAffine.from_bytes(data)

    def test_point_off_curve(self):
        # first ordinate with no matching x
        y = 2
        while recover_x(y) is not None:
            y += 1
        with pytest.raises(DecodingError):
            JubJubAffine.from_bytes(y.to_bytes(32, "little"))

    def test_point_small_order(self):
        # (0, -1) has order 2
        data = (FIELD_PRIME - 1).to_bytes(32, "little")
        with pytest.raises(DecodingError):
            JubJubAffine.from_bytes(data)

    def test_decoding_error_is_value_error(self):
        with pytest.raises(ValueError):
            JubJubAffine.from_bytes(b"")

    def test_scalar_roundtrip(self, rng):
        s = random_scalar(rng)
        assert scalar_from_bytes(scalar_to_bytes(s)) == s

    def test_scalar_out_of_range(self):
        with pytest.raises(DecodingError):
            scalar_from_bytes(SUBGROUP_ORDER.to_bytes(32, "little"))


class TestPedersen:
    def test_commitment_is_homomorphic(self):
        c1 = pedersen_commit(10, 20)
        c2 = pedersen_commit(5, 7)
        assert c1 + c2 == pedersen_commit(15, 27)

    def test_blinder_hides_value(self):
        assert pedersen_commit(10, 1) != pedersen_commit(10, 2)
