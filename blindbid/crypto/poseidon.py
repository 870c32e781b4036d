"""
Poseidon Hash Function for blindbid.

This module provides ZK-friendly hashing using the Poseidon permutation,
which is cheap to express in arithmetic circuits.

The same permutation drives three constructions:
- ``poseidon2``: 2-to-1 compression used by the bid tree
- ``sponge_hash``: variable-length hashing (bid digest, hashed secret,
  prover-id, score randomness, stealth-address derivation)
- the duplex cipher in ``blindbid.crypto.cipher``

The circuit gadgets in ``blindbid.plonk.gadgets`` replay exactly these round
constants and MDS matrix, so native and in-circuit hashes agree.

References:
- Poseidon paper: https://eprint.iacr.org/2019/458

Parameters (BN254 scalar field):
- t=3 (rate 2 + capacity 1)
- rounds_f=8 (full rounds)
- rounds_p=57 (partial rounds)
- alpha=5 (S-box exponent)
"""

import hashlib
from typing import List, Optional, Sequence, Tuple

from py_ecc.bn128 import curve_order

# BN254 scalar field prime
FIELD_PRIME = curve_order

# Permutation parameters
WIDTH = 3
RATE = 2
ROUNDS_F = 8
ROUNDS_P = 57

# Domain separators (capacity element of the sponge)
DOMAIN_MERKLE = 0x00
DOMAIN_BID = 0x01
DOMAIN_SECRET = 0x02
DOMAIN_PROVER_ID = 0x03
DOMAIN_SCORE = 0x04
DOMAIN_CIPHER = 0x05
DOMAIN_STEALTH = 0x06

# Input length is folded into the capacity element above the domain bits
LENGTH_SHIFT = 64


# =============================================================================
# Round Constants
# =============================================================================

def _generate_round_constants(t: int, rounds_f: int, rounds_p: int, seed: bytes = b"poseidon") -> List[int]:
    """
    Generate Poseidon round constants using a deterministic PRNG.

    SHAKE256 over a fixed seed, 32 bytes per constant, reduced mod p.
    """
    total_rounds = rounds_f + rounds_p
    constants = []

    h = hashlib.shake_256(seed)
    digest = h.digest((total_rounds * t) * 32)

    for i in range(total_rounds * t):
        chunk = digest[i * 32:(i + 1) * 32]
        constants.append(int.from_bytes(chunk, byteorder="big") % FIELD_PRIME)

    return constants


def _generate_mds_matrix(t: int) -> List[List[int]]:
    """
    Generate MDS (Maximum Distance Separable) matrix for Poseidon.

    Uses a Cauchy matrix construction which is guaranteed to be MDS.
    """
    x = [(i + 1) % FIELD_PRIME for i in range(t)]
    y = [(t + i + 1) % FIELD_PRIME for i in range(t)]

    matrix = []
    for i in range(t):
        row = []
        for j in range(t):
            # M[i][j] = 1 / (x[i] + y[j]) mod p
            denom = (x[i] + y[j]) % FIELD_PRIME
            row.append(pow(denom, FIELD_PRIME - 2, FIELD_PRIME))
        matrix.append(row)

    return matrix


_ROUND_CONSTANTS_T3: Optional[List[int]] = None
_MDS_MATRIX_T3: Optional[List[List[int]]] = None


def get_poseidon_constants() -> Tuple[List[int], List[List[int]]]:
    """Get or compute (round_constants, mds_matrix) for t=3."""
    global _ROUND_CONSTANTS_T3, _MDS_MATRIX_T3

    if _ROUND_CONSTANTS_T3 is None:
        _ROUND_CONSTANTS_T3 = _generate_round_constants(t=WIDTH, rounds_f=ROUNDS_F, rounds_p=ROUNDS_P)
    if _MDS_MATRIX_T3 is None:
        _MDS_MATRIX_T3 = _generate_mds_matrix(t=WIDTH)

    return _ROUND_CONSTANTS_T3, _MDS_MATRIX_T3


def is_full_round(round_idx: int) -> bool:
    """Full rounds open and close the permutation; the middle is partial."""
    half_f = ROUNDS_F // 2
    return round_idx < half_f or round_idx >= half_f + ROUNDS_P


# =============================================================================
# Poseidon Core Implementation
# =============================================================================

def _sbox(x: int) -> int:
    """Apply S-box: x^5 mod p."""
    return pow(x, 5, FIELD_PRIME)


def _mds_multiply(state: List[int], matrix: List[List[int]]) -> List[int]:
    """Multiply state by MDS matrix."""
    t = len(state)
    result = []
    for i in range(t):
        acc = 0
        for j in range(t):
            acc = (acc + matrix[i][j] * state[j]) % FIELD_PRIME
        result.append(acc)
    return result


def _add_round_constants(state: List[int], constants: List[int], round_idx: int) -> List[int]:
    """Add round constants to state."""
    t = len(state)
    offset = round_idx * t
    return [(state[i] + constants[offset + i]) % FIELD_PRIME for i in range(t)]


def _full_round(state: List[int], constants: List[int], matrix: List[List[int]], round_idx: int) -> List[int]:
    """Execute a full round (S-box on all elements)."""
    state = _add_round_constants(state, constants, round_idx)
    state = [_sbox(x) for x in state]
    return _mds_multiply(state, matrix)


def _partial_round(state: List[int], constants: List[int], matrix: List[List[int]], round_idx: int) -> List[int]:
    """Execute a partial round (S-box on first element only)."""
    state = _add_round_constants(state, constants, round_idx)
    state[0] = _sbox(state[0])
    return _mds_multiply(state, matrix)


def poseidon_permutation(state: Sequence[int]) -> List[int]:
    """
    Apply the Poseidon permutation to a width-3 state.

    Args:
        state: [capacity, rate0, rate1] field elements

    Returns:
        The permuted state
    """
    if len(state) != WIDTH:
        raise ValueError(f"Poseidon state must have {WIDTH} elements, got {len(state)}")

    constants, matrix = get_poseidon_constants()
    state = [x % FIELD_PRIME for x in state]

    for round_idx in range(ROUNDS_F + ROUNDS_P):
        if is_full_round(round_idx):
            state = _full_round(state, constants, matrix, round_idx)
        else:
            state = _partial_round(state, constants, matrix, round_idx)

    return state


def poseidon_hash(inputs: List[int], domain_sep: int = 0) -> int:
    """
    Compute Poseidon hash of at most two inputs.

    Args:
        inputs: List of field elements (integers < FIELD_PRIME)
        domain_sep: Optional domain separator (for different use cases)

    Returns:
        Hash as a field element (integer)

    Raises:
        ValueError: If inputs are out of range or wrong count
    """
    if len(inputs) > RATE:
        raise ValueError(f"This implementation supports max {RATE} inputs, got {len(inputs)}")

    for i, val in enumerate(inputs):
        if not (0 <= val < FIELD_PRIME):
            raise ValueError(f"Input {i} out of field range: {val}")

    padded = list(inputs) + [0] * (RATE - len(inputs))

    # Capacity element contains domain separator
    state = [domain_sep % FIELD_PRIME, padded[0], padded[1]]

    # Output is the second element (index 1)
    return poseidon_permutation(state)[1]


def sponge_capacity(domain_sep: int, length: int) -> int:
    """Initial capacity element for a sponge over ``length`` inputs."""
    return (domain_sep + (length << LENGTH_SHIFT)) % FIELD_PRIME


def sponge_hash(inputs: Sequence[int], domain_sep: int = 0) -> int:
    """
    Hash any number of field elements with the Poseidon sponge.

    Absorbs two elements per permutation; the input length is bound into the
    capacity element so inputs of different lengths never collide.

    Raises:
        ValueError: If an input is outside the field
    """
    for i, val in enumerate(inputs):
        if not (0 <= val < FIELD_PRIME):
            raise ValueError(f"Input {i} out of field range: {val}")

    state = [sponge_capacity(domain_sep, len(inputs)), 0, 0]
    if not inputs:
        return poseidon_permutation(state)[1]

    for i in range(0, len(inputs), RATE):
        chunk = inputs[i:i + RATE]
        for j, val in enumerate(chunk):
            state[1 + j] = (state[1 + j] + val) % FIELD_PRIME
        state = poseidon_permutation(state)

    return state[1]


# =============================================================================
# Convenience Functions
# =============================================================================

def poseidon2(a: int, b: int, domain_sep: int = 0) -> int:
    """Hash two field elements."""
    return poseidon_hash([a, b], domain_sep)


def poseidon1(a: int, domain_sep: int = 0) -> int:
    """Hash one field element."""
    return poseidon_hash([a], domain_sep)


def field_to_bytes(val: int) -> bytes:
    """Encode a field element as 32 little-endian bytes."""
    return (val % FIELD_PRIME).to_bytes(32, byteorder="little")


def field_from_bytes(data: bytes) -> int:
    """
    Decode 32 little-endian bytes into a canonical field element.

    Raises:
        ValueError: On wrong length or a value >= FIELD_PRIME
    """
    if len(data) != 32:
        raise ValueError(f"Expected 32 bytes, got {len(data)}")
    val = int.from_bytes(data, byteorder="little")
    if val >= FIELD_PRIME:
        raise ValueError(f"Value {val} exceeds field prime")
    return val
