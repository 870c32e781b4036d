"""
Unit tests for polynomial arithmetic over the scalar field.
"""

import random

import pytest

from blindbid.plonk.polynomial import (
    R,
    batch_inverse,
    blind,
    coset_fft,
    coset_ifft,
    divide_by_linear,
    domain_elements,
    evaluate,
    fft,
    ifft,
    multiplicative_generator,
    root_of_unity,
)


@pytest.fixture
def poly():
    rng = random.Random(3)
    return [rng.randrange(R) for _ in range(6)]


class TestDomain:
    def test_generator_is_non_residue(self):
        g = multiplicative_generator()
        assert pow(g, (R - 1) // 2, R) == R - 1

    def test_root_order(self):
        omega = root_of_unity(16)
        assert pow(omega, 16, R) == 1
        assert pow(omega, 8, R) != 1

    def test_invalid_sizes(self):
        for size in (0, 6, 1 << 29):
            with pytest.raises(ValueError):
                root_of_unity(size)

    def test_elements(self):
        elements = domain_elements(8)
        assert elements[0] == 1
        assert len(set(elements)) == 8
        assert elements[1] == root_of_unity(8)

    def test_batch_inverse(self):
        values = [3, 5, R - 1, 123456789]
        for value, inverse in zip(values, batch_inverse(values)):
            assert value * inverse % R == 1


class TestTransforms:
    def test_fft_evaluates_on_domain(self, poly):
        evals = fft(poly, 8)
        for x, y in zip(domain_elements(8), evals):
            assert evaluate(poly, x) == y

    def test_ifft_interpolates(self, poly):
        assert ifft(fft(poly, 8)) == poly + [0, 0]

    def test_coset_fft_evaluates_on_coset(self, poly):
        g = multiplicative_generator()
        evals = coset_fft(poly, 8)
        for x, y in zip(domain_elements(8), evals):
            assert evaluate(poly, g * x % R) == y
        assert coset_ifft(evals)[:6] == poly

    def test_polynomial_too_long(self, poly):
        with pytest.raises(ValueError):
            fft(poly, 4)


class TestCoefficientHelpers:
    def test_divide_by_linear(self, poly):
        point, x = 17, 99
        quotient = divide_by_linear(poly, point)
        assert len(quotient) == len(poly) - 1
        lhs = (evaluate(poly, x) - evaluate(poly, point)) % R
        assert lhs == evaluate(quotient, x) * (x - point) % R

    def test_divide_constant(self):
        assert divide_by_linear([5], 3) == [0]

    def test_blind_keeps_domain_values(self):
        coeffs = ifft([1, 2, 3, 4])
        blinded = blind(coeffs, [7, 11], 4)
        assert len(blinded) == 6
        assert blinded != coeffs + [0, 0]
        for x, y in zip(domain_elements(4), [1, 2, 3, 4]):
            assert evaluate(blinded, x) == y
