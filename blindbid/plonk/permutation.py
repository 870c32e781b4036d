"""
Copy constraints of the width-4 composer.

Each wire slot (column j, row i) is labelled K[j] * omega^i. Slots holding
the same witness variable form a cycle; sigma maps every slot to the next one
in its cycle. The grand product z accumulates

    prod_j (w_j + beta*K[j]*omega^i + gamma) / (w_j + beta*sigma_j(omega^i) + gamma)

and returns to 1 after a full pass exactly when the copies agree.
"""

from typing import Dict, List, Sequence

from blindbid.plonk.composer import Gate
from blindbid.plonk.polynomial import R, batch_inverse

# Coset representatives separating the four wire columns
K = (1, 7, 13, 17)

NUM_WIRES = 4


def wire_columns(gates: Sequence[Gate], n: int) -> List[List[int]]:
    """Variable index in each slot; padding rows use the zero wire."""
    columns = [[0] * n for _ in range(NUM_WIRES)]
    for i, gate in enumerate(gates):
        for j in range(NUM_WIRES):
            columns[j][i] = gate[j]
    return columns


def compute_sigmas(gates: Sequence[Gate], n: int, domain: Sequence[int]) -> List[List[int]]:
    """
    Evaluations of sigma_1..sigma_4 over the domain.

    Args:
        gates: Gate list (at most n)
        n: Domain size
        domain: omega^0 .. omega^(n-1)
    """
    columns = wire_columns(gates, n)

    cycles: Dict[int, List[int]] = {}
    for j, column in enumerate(columns):
        for i, var in enumerate(column):
            cycles.setdefault(var, []).append(j * n + i)

    sigma = [0] * (NUM_WIRES * n)
    for slots in cycles.values():
        for k, slot in enumerate(slots):
            sigma[slot] = slots[(k + 1) % len(slots)]

    return [
        [K[target // n] * domain[target % n] % R for target in sigma[j * n:(j + 1) * n]]
        for j in range(NUM_WIRES)
    ]


def grand_product(
    wires: Sequence[Sequence[int]],
    sigmas: Sequence[Sequence[int]],
    domain: Sequence[int],
    beta: int,
    gamma: int,
) -> List[int]:
    """
    Evaluations of the permutation accumulator z over the domain.

    Raises:
        ZeroDivisionError: If a denominator vanishes (negligible for random
            beta, gamma)
    """
    n = len(domain)
    numerators = []
    denominators = []
    for i in range(n):
        num = 1
        den = 1
        x = domain[i]
        for j in range(NUM_WIRES):
            w = wires[j][i]
            num = num * (w + beta * K[j] * x + gamma) % R
            den = den * (w + beta * sigmas[j][i] + gamma) % R
        numerators.append(num)
        denominators.append(den)

    if 0 in denominators:
        raise ZeroDivisionError("Permutation denominator vanishes")
    inverses = batch_inverse(denominators)

    z = [1] * n
    for i in range(n - 1):
        z[i + 1] = z[i] * numerators[i] % R * inverses[i] % R
    return z
