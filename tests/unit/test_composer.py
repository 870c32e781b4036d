"""
Tests for the StandardComposer.
"""

import pytest
from blindbid.crypto.poseidon import FIELD_PRIME
from blindbid.plonk.composer import StandardComposer


class TestArithmetic:
    def test_zero_wire(self):
        composer = StandardComposer()
        assert composer.value(composer.zero) == 0
        assert composer.is_satisfied()

    def test_add_mul(self):
        composer = StandardComposer()
        a = composer.add_input(3)
        b = composer.add_input(4)

        assert composer.value(composer.add(a, b)) == 7
        assert composer.value(composer.mul(a, b)) == 12
        assert composer.value(composer.sub(a, b)) == FIELD_PRIME - 1
        assert composer.is_satisfied()

    def test_linear_combination(self):
        composer = StandardComposer()
        a, b, c = (composer.add_input(v) for v in (1, 2, 3))
        out = composer.linear_combination([(2, a), (3, b), (4, c)], 5)
        assert composer.value(out) == 2 + 6 + 12 + 5
        assert composer.is_satisfied()

    def test_linear_combination_too_many_terms(self):
        composer = StandardComposer()
        a = composer.add_input(1)
        with pytest.raises(ValueError):
            composer.linear_combination([(1, a)] * 4)

    def test_constant(self):
        composer = StandardComposer()
        c = composer.constant(99)
        assert composer.is_satisfied()
        composer.witness[c.index] = 98
        assert not composer.is_satisfied()

    def test_assert_equal(self):
        composer = StandardComposer()
        a = composer.add_input(5)
        b = composer.add_input(6)
        composer.assert_equal(a, b)
        assert composer.unsatisfied_gates() == [composer.circuit_size() - 1]

    def test_assert_equal_constant(self):
        composer = StandardComposer()
        a = composer.add_input(5)
        composer.assert_equal_constant(a, 5)
        assert composer.is_satisfied()

    def test_conditional_select(self):
        composer = StandardComposer()
        a = composer.add_input(10)
        b = composer.add_input(20)
        one = composer.add_input(1)
        zero = composer.add_input(0)
        composer.boolean_gate(one)
        composer.boolean_gate(zero)

        assert composer.value(composer.conditional_select(one, a, b)) == 10
        assert composer.value(composer.conditional_select(zero, a, b)) == 20
        assert composer.is_satisfied()


class TestRangeAndBoolean:
    def test_boolean_gate(self):
        composer = StandardComposer()
        composer.boolean_gate(composer.add_input(2))
        assert not composer.is_satisfied()

    def test_range_gate_in_range(self):
        composer = StandardComposer()
        bits = composer.range_gate(composer.add_input(0b1011), 4)
        assert [composer.value(b) for b in bits] == [1, 1, 0, 1]
        assert composer.is_satisfied()

    def test_range_gate_out_of_range(self):
        composer = StandardComposer()
        composer.range_gate(composer.add_input(16), 4)
        assert not composer.is_satisfied()

    def test_range_gate_negative(self):
        composer = StandardComposer()
        composer.range_gate(composer.add_input(-1), 64)
        assert not composer.is_satisfied()


class TestPublicInputs:
    def test_public_inputize(self):
        composer = StandardComposer()
        a = composer.add_input(42)
        position = composer.public_inputize(a)

        assert composer.public_input_positions() == [position]
        assert composer.public_input_values() == [42]
        assert composer.is_satisfied()

    def test_wrong_public_input_value(self):
        composer = StandardComposer()
        position = composer.public_inputize(composer.add_input(42))
        assert composer.unsatisfied_gates({position: 43}) == [position]


class TestShape:
    def build(self, x, y):
        composer = StandardComposer()
        a = composer.add_input(x)
        b = composer.add_input(y)
        composer.public_inputize(composer.mul(a, b))
        return composer

    def test_digest_ignores_witness(self):
        assert self.build(2, 3).circuit_digest() == self.build(5, 7).circuit_digest()

    def test_digest_tracks_gates(self):
        composer = self.build(2, 3)
        other = self.build(2, 3)
        other.boolean_gate(other.zero)
        assert composer.circuit_digest() != other.circuit_digest()

    def test_padded_size(self):
        composer = self.build(2, 3)
        assert composer.circuit_size() == len(composer) == 3
        assert composer.padded_size() == 4
