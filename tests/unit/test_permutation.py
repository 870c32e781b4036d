"""
Unit tests for copy constraints.
"""

from blindbid.plonk.composer import StandardComposer
from blindbid.plonk.permutation import K, compute_sigmas, grand_product, wire_columns
from blindbid.plonk.polynomial import R, domain_elements

BETA = 1234567
GAMMA = 7654321


def build() -> StandardComposer:
    composer = StandardComposer()
    a = composer.add_input(3)
    b = composer.add_input(4)
    product = composer.mul(a, b)
    composer.add(product, a)
    return composer


def wire_values(composer, n):
    return [[composer.witness[var] for var in column] for column in wire_columns(composer.gates, n)]


def closing_ratio(wires, sigmas, domain):
    """z(omega^(n-1)) times the last step of the product; 1 when copies agree."""
    z = grand_product(wires, sigmas, domain, BETA, GAMMA)
    i = len(domain) - 1
    num = den = 1
    for j in range(len(wires)):
        num = num * (wires[j][i] + BETA * K[j] * domain[i] + GAMMA) % R
        den = den * (wires[j][i] + BETA * sigmas[j][i] + GAMMA) % R
    return z[i] * num * pow(den, -1, R) % R


class TestSigmas:
    def test_is_a_permutation_of_labels(self):
        composer = build()
        domain = domain_elements(8)
        sigmas = compute_sigmas(composer.gates, 8, domain)
        labels = [K[j] * x % R for j in range(4) for x in domain]
        assert sorted(v for column in sigmas for v in column) == sorted(labels)

    def test_padding_rows_use_zero_wire(self):
        columns = wire_columns(build().gates, 8)
        assert all(column[7] == 0 for column in columns)


class TestGrandProduct:
    def test_closes_when_copies_agree(self):
        composer = build()
        domain = domain_elements(8)
        sigmas = compute_sigmas(composer.gates, 8, domain)
        wires = wire_values(composer, 8)

        assert grand_product(wires, sigmas, domain, BETA, GAMMA)[0] == 1
        assert closing_ratio(wires, sigmas, domain) == 1

    def test_broken_copy(self):
        composer = build()
        domain = domain_elements(8)
        sigmas = compute_sigmas(composer.gates, 8, domain)
        wires = wire_values(composer, 8)
        # The product wire is reused by the add gate; change one copy only
        wires[2][1] = (wires[2][1] + 1) % R

        assert closing_ratio(wires, sigmas, domain) != 1
