"""
Polynomial arithmetic over the BN254 scalar field.

Polynomials are plain coefficient lists, lowest degree first. Evaluation
domains are the multiplicative subgroups of size 2^k (k <= 28) and their
cosets, reached through an iterative radix-2 NTT.
"""

from functools import lru_cache
from typing import List, Sequence

from blindbid.crypto.poseidon import FIELD_PRIME

R = FIELD_PRIME

# r - 1 = 2^28 * odd
TWO_ADICITY = 28


@lru_cache(maxsize=None)
def multiplicative_generator() -> int:
    """Smallest quadratic non-residue; it generates the full 2-adic subgroup."""
    g = 2
    while pow(g, (R - 1) // 2, R) != R - 1:
        g += 1
    return g


@lru_cache(maxsize=None)
def root_of_unity(size: int) -> int:
    """
    Primitive root of unity of order ``size``.

    Raises:
        ValueError: If size is not a power of two up to 2^28
    """
    if size < 1 or size & (size - 1) or size > (1 << TWO_ADICITY):
        raise ValueError(f"No evaluation domain of size {size}")
    return pow(multiplicative_generator(), (R - 1) // size, R)


def domain_elements(size: int) -> List[int]:
    omega = root_of_unity(size)
    elements = [1] * size
    for i in range(1, size):
        elements[i] = elements[i - 1] * omega % R
    return elements


def batch_inverse(values: Sequence[int], modulus: int = R) -> List[int]:
    """Invert every (non-zero) value with a single modular inversion."""
    prefix = []
    acc = 1
    for value in values:
        prefix.append(acc)
        acc = acc * value % modulus
    inv = pow(acc, -1, modulus)

    out = [0] * len(values)
    for i in range(len(values) - 1, -1, -1):
        out[i] = inv * prefix[i] % modulus
        inv = inv * values[i] % modulus
    return out


# =============================================================================
# NTT
# =============================================================================


def _ntt(values: Sequence[int], root: int) -> List[int]:
    n = len(values)
    a = [v % R for v in values]
    if n == 1:
        return a

    j = 0
    for i in range(1, n):
        bit = n >> 1
        while j & bit:
            j ^= bit
            bit >>= 1
        j |= bit
        if i < j:
            a[i], a[j] = a[j], a[i]

    length = 2
    while length <= n:
        half = length >> 1
        w_len = pow(root, n // length, R)
        twiddles = [1] * half
        for k in range(1, half):
            twiddles[k] = twiddles[k - 1] * w_len % R
        for start in range(0, n, length):
            for k in range(half):
                u = a[start + k]
                v = a[start + k + half] * twiddles[k] % R
                a[start + k] = (u + v) % R
                a[start + k + half] = (u - v) % R
        length <<= 1
    return a


def fft(coeffs: Sequence[int], size: int) -> List[int]:
    """Evaluate a polynomial on the subgroup of the given size."""
    if len(coeffs) > size:
        raise ValueError(f"Polynomial of {len(coeffs)} coefficients does not fit domain {size}")
    padded = list(coeffs) + [0] * (size - len(coeffs))
    return _ntt(padded, root_of_unity(size))


def ifft(evals: Sequence[int]) -> List[int]:
    """Interpolate evaluations over the subgroup of size len(evals)."""
    size = len(evals)
    coeffs = _ntt(evals, pow(root_of_unity(size), -1, R))
    size_inv = pow(size, -1, R)
    return [c * size_inv % R for c in coeffs]


def coset_fft(coeffs: Sequence[int], size: int) -> List[int]:
    """Evaluate on g * H where g is the multiplicative generator."""
    g = multiplicative_generator()
    shifted = []
    power = 1
    for c in coeffs:
        shifted.append(c * power % R)
        power = power * g % R
    return fft(shifted, size)


def coset_ifft(evals: Sequence[int]) -> List[int]:
    g_inv = pow(multiplicative_generator(), -1, R)
    coeffs = ifft(evals)
    power = 1
    for i in range(len(coeffs)):
        coeffs[i] = coeffs[i] * power % R
        power = power * g_inv % R
    return coeffs


# =============================================================================
# Coefficient-form helpers
# =============================================================================


def evaluate(coeffs: Sequence[int], x: int) -> int:
    """Horner evaluation."""
    acc = 0
    for c in reversed(coeffs):
        acc = (acc * x + c) % R
    return acc


def add_scaled(acc: List[int], coeffs: Sequence[int], scalar: int) -> List[int]:
    """acc += scalar * coeffs, growing acc as needed."""
    if len(coeffs) > len(acc):
        acc.extend([0] * (len(coeffs) - len(acc)))
    for i, c in enumerate(coeffs):
        acc[i] = (acc[i] + scalar * c) % R
    return acc


def divide_by_linear(coeffs: Sequence[int], point: int) -> List[int]:
    """
    Quotient of p(x) - p(point) by (x - point).

    Synthetic division; the remainder p(point) is dropped.
    """
    n = len(coeffs)
    if n <= 1:
        return [0]
    quotient = [0] * (n - 1)
    carry = 0
    for i in range(n - 1, 0, -1):
        carry = (coeffs[i] + carry * point) % R
        quotient[i - 1] = carry
    return quotient


def blind(coeffs: Sequence[int], blinders: Sequence[int], n: int) -> List[int]:
    """
    Add (b_0 + b_1*x + ...) * (x^n - 1) to a polynomial of degree < n.

    The result agrees with the input on the size-n subgroup.
    """
    out = list(coeffs) + [0] * (n + len(blinders) - len(coeffs))
    for i, b in enumerate(blinders):
        out[i] = (out[i] - b) % R
        out[n + i] = (out[n + i] + b) % R
    return out
