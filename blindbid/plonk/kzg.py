"""
KZG commitments over BN254 G1.

A commitment to p(x) = sum c_i x^i is sum c_i * [tau^i]G1, computed against
the powers of tau published by the setup. Openings are checked with py_ecc's
optimal ate pairing.

py_ecc offers single scalar multiplication only, and committing to
polynomials with tens of thousands of coefficients needs a multi-scalar
multiplication. This module therefore keeps G1 points as plain integer
coordinates (affine tuples, Jacobian triples internally) and implements
bucket (Pippenger) MSM and fixed-base tables on them. Points are handed back
to py_ecc for pairings.
"""

from typing import List, Optional, Sequence, Tuple

from py_ecc.optimized_bn128 import FQ, G1, curve_order, field_modulus, normalize

Q = field_modulus
R = curve_order

# y^2 = x^3 + 3
CURVE_B = 3

# Affine point; None is the point at infinity
Point = Optional[Tuple[int, int]]

G1_AFFINE: Tuple[int, int] = tuple(coord.n for coord in normalize(G1))

_INF = (1, 1, 0)

# Bits per window of the fixed-base tables used by the setup
FIXED_BASE_WINDOW = 8


def is_on_curve(point: Point) -> bool:
    if point is None:
        return True
    x, y = point
    if not (0 <= x < Q and 0 <= y < Q):
        return False
    return (y * y - x * x * x - CURVE_B) % Q == 0


def neg(point: Point) -> Point:
    if point is None:
        return None
    x, y = point
    return (x, (-y) % Q)


def to_py_ecc(point: Point):
    """Projective py_ecc point for pairings."""
    if point is None:
        return (FQ(1), FQ(1), FQ(0))
    return (FQ(point[0]), FQ(point[1]), FQ(1))


def encode_point(point: Point) -> bytes:
    """64 bytes, x || y big-endian; the point at infinity is all zeros."""
    if point is None:
        return bytes(64)
    return point[0].to_bytes(32, "big") + point[1].to_bytes(32, "big")


def decode_point(data: bytes) -> Point:
    """
    Inverse of encode_point.

    Raises:
        ValueError: If the bytes are not a point on the curve
    """
    if len(data) != 64:
        raise ValueError(f"expected 64 bytes, got {len(data)}")
    if data == bytes(64):
        return None
    point = (int.from_bytes(data[:32], "big"), int.from_bytes(data[32:], "big"))
    if not is_on_curve(point):
        raise ValueError("point not on curve")
    return point


# =============================================================================
# Jacobian arithmetic
# =============================================================================


def _double(p):
    X1, Y1, Z1 = p
    if Z1 == 0 or Y1 == 0:
        return _INF
    A = X1 * X1 % Q
    B = Y1 * Y1 % Q
    C = B * B % Q
    D = 2 * ((X1 + B) * (X1 + B) - A - C) % Q
    E = 3 * A % Q
    F = E * E % Q
    X3 = (F - 2 * D) % Q
    Y3 = (E * (D - X3) - 8 * C) % Q
    Z3 = 2 * Y1 * Z1 % Q
    return (X3, Y3, Z3)


def _add(p, q):
    X1, Y1, Z1 = p
    X2, Y2, Z2 = q
    if Z1 == 0:
        return q
    if Z2 == 0:
        return p
    Z1Z1 = Z1 * Z1 % Q
    Z2Z2 = Z2 * Z2 % Q
    U1 = X1 * Z2Z2 % Q
    U2 = X2 * Z1Z1 % Q
    S1 = Y1 * Z2 * Z2Z2 % Q
    S2 = Y2 * Z1 * Z1Z1 % Q
    H = (U2 - U1) % Q
    r = 2 * (S2 - S1) % Q
    if H == 0:
        return _double(p) if r == 0 else _INF
    I = 4 * H * H % Q
    J = H * I % Q
    V = U1 * I % Q
    X3 = (r * r - J - 2 * V) % Q
    Y3 = (r * (V - X3) - 2 * S1 * J) % Q
    Z3 = 2 * Z1 * Z2 * H % Q
    return (X3, Y3, Z3)


def _add_affine(p, q: Tuple[int, int]):
    """Jacobian p plus affine q."""
    X1, Y1, Z1 = p
    x2, y2 = q
    if Z1 == 0:
        return (x2, y2, 1)
    Z1Z1 = Z1 * Z1 % Q
    U2 = x2 * Z1Z1 % Q
    S2 = y2 * Z1 * Z1Z1 % Q
    H = (U2 - X1) % Q
    r = 2 * (S2 - Y1) % Q
    if H == 0:
        return _double(p) if r == 0 else _INF
    I = 4 * H * H % Q
    J = H * I % Q
    V = X1 * I % Q
    X3 = (r * r - J - 2 * V) % Q
    Y3 = (r * (V - X3) - 2 * Y1 * J) % Q
    Z3 = 2 * Z1 * H % Q
    return (X3, Y3, Z3)


def _to_affine(p) -> Point:
    X, Y, Z = p
    if Z == 0:
        return None
    z_inv = pow(Z, -1, Q)
    z_inv2 = z_inv * z_inv % Q
    return (X * z_inv2 % Q, Y * z_inv2 * z_inv % Q)


def _batch_to_affine(points) -> List[Point]:
    finite = [i for i, p in enumerate(points) if p[2] != 0]
    out: List[Point] = [None] * len(points)
    if not finite:
        return out

    # Montgomery batch inversion over the base field
    prefix = []
    acc = 1
    for i in finite:
        prefix.append(acc)
        acc = acc * points[i][2] % Q
    inv = pow(acc, -1, Q)
    for k in range(len(finite) - 1, -1, -1):
        i = finite[k]
        X, Y, Z = points[i]
        z_inv = inv * prefix[k] % Q
        inv = inv * Z % Q
        z_inv2 = z_inv * z_inv % Q
        out[i] = (X * z_inv2 % Q, Y * z_inv2 * z_inv % Q)
    return out


# =============================================================================
# Multiplication
# =============================================================================


def _window_bits(count: int) -> int:
    return max(1, min(12, count.bit_length() - 2))


def msm(points: Sequence[Point], scalars: Sequence[int]) -> Point:
    """sum scalars[i] * points[i] (bucket method)."""
    pairs = []
    for point, scalar in zip(points, scalars):
        scalar %= R
        if point is not None and scalar:
            pairs.append((point, scalar))
    if not pairs:
        return None

    c = _window_bits(len(pairs))
    mask = (1 << c) - 1
    num_windows = (R.bit_length() + c - 1) // c

    result = _INF
    for w in range(num_windows - 1, -1, -1):
        for _ in range(c):
            result = _double(result)

        shift = w * c
        buckets = [None] * (mask + 1)
        for point, scalar in pairs:
            idx = (scalar >> shift) & mask
            if idx:
                bucket = buckets[idx]
                buckets[idx] = (point[0], point[1], 1) if bucket is None else _add_affine(bucket, point)

        running = _INF
        window_sum = _INF
        for idx in range(mask, 0, -1):
            bucket = buckets[idx]
            if bucket is not None:
                running = _add(running, bucket)
            window_sum = _add(window_sum, running)
        result = _add(result, window_sum)

    return _to_affine(result)


def fixed_base_msm(base: Tuple[int, int], scalars: Sequence[int]) -> List[Point]:
    """[s * base for s in scalars], sharing one windowed table."""
    window = FIXED_BASE_WINDOW
    mask = (1 << window) - 1
    num_windows = (R.bit_length() + window - 1) // window

    rows = []
    start = (base[0], base[1], 1)
    for _ in range(num_windows):
        row = [start]
        for _ in range(mask - 1):
            row.append(_add(row[-1], start))
        rows.append(row)
        start = _add(row[-1], start)

    flat = _batch_to_affine([p for row in rows for p in row])
    table = [flat[j * mask:(j + 1) * mask] for j in range(num_windows)]

    results = []
    for scalar in scalars:
        scalar %= R
        acc = _INF
        j = 0
        while scalar:
            digit = scalar & mask
            if digit:
                entry = table[j][digit - 1]
                if entry is not None:
                    acc = _add_affine(acc, entry)
            scalar >>= window
            j += 1
        results.append(acc)
    return _batch_to_affine(results)


def add_points(*points: Point) -> Point:
    acc = _INF
    for point in points:
        if point is not None:
            acc = _add_affine(acc, point)
    return _to_affine(acc)


# =============================================================================
# Commitments
# =============================================================================


def commit(coeffs: Sequence[int], powers: Sequence[Point]) -> Point:
    """
    KZG commitment to a coefficient list.

    Raises:
        ValueError: If the polynomial exceeds the available powers of tau
    """
    if len(coeffs) > len(powers):
        raise ValueError(
            f"Polynomial with {len(coeffs)} coefficients exceeds {len(powers)} powers of tau"
        )
    return msm(powers[:len(coeffs)], coeffs)
