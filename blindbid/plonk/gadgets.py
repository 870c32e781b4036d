"""
Circuit gadgets over the StandardComposer.

Each gadget replays a native primitive gate by gate so that the values it
produces are bit-for-bit those of the native code:

- Poseidon permutation and sponge   (blindbid.crypto.poseidon)
- Poseidon cipher decryption        (blindbid.crypto.cipher)
- Baby Jubjub addition and fixed-base multiplication (blindbid.crypto.jubjub)
- Merkle opening                    (blindbid.core.tree.bid_tree)

Gate layout never depends on witness values; only the wire values do.
"""

from typing import List, Sequence, Tuple

from blindbid.crypto.cipher import MESSAGE_CAPACITY
from blindbid.crypto.jubjub import JUBJUB_A, JUBJUB_D, JubJubAffine, fixed_base_table
from blindbid.crypto.poseidon import (
    DOMAIN_CIPHER,
    FIELD_PRIME,
    RATE,
    ROUNDS_F,
    ROUNDS_P,
    WIDTH,
    get_poseidon_constants,
    is_full_round,
    sponge_capacity,
)
from blindbid.plonk.composer import StandardComposer, Variable


Point = Tuple[Variable, Variable]


def _inv_or_zero(x: int) -> int:
    x %= FIELD_PRIME
    return pow(x, FIELD_PRIME - 2, FIELD_PRIME) if x else 0


# =============================================================================
# Poseidon
# =============================================================================


def _pow5(composer: StandardComposer, x: Variable) -> Variable:
    x2 = composer.mul(x, x)
    x4 = composer.mul(x2, x2)
    return composer.mul(x4, x)


def poseidon_permutation_gadget(composer: StandardComposer, state: Sequence[Variable]) -> List[Variable]:
    """
    Constrain the width-3 Poseidon permutation.

    Round constants of round r+1 are folded into the MDS gate of round r,
    so each round costs its S-boxes plus three linear gates.
    """
    if len(state) != WIDTH:
        raise ValueError(f"Poseidon state must have {WIDTH} elements, got {len(state)}")

    constants, matrix = get_poseidon_constants()
    total_rounds = ROUNDS_F + ROUNDS_P

    state = [
        composer.linear_combination([(1, var)], constants[i])
        for i, var in enumerate(state)
    ]

    for round_idx in range(total_rounds):
        if is_full_round(round_idx):
            state = [_pow5(composer, var) for var in state]
        else:
            state = [_pow5(composer, state[0])] + state[1:]

        last = round_idx == total_rounds - 1
        next_offset = (round_idx + 1) * WIDTH
        state = [
            composer.linear_combination(
                [(matrix[i][j], state[j]) for j in range(WIDTH)],
                0 if last else constants[next_offset + i],
            )
            for i in range(WIDTH)
        ]

    return state


def sponge_hash_gadget(
    composer: StandardComposer,
    inputs: Sequence[Variable],
    domain_sep: int = 0,
) -> Variable:
    """Constrain ``sponge_hash(inputs, domain_sep)``."""
    capacity = composer.constant(sponge_capacity(domain_sep, len(inputs)))
    state = [capacity, composer.zero, composer.zero]
    if not inputs:
        return poseidon_permutation_gadget(composer, state)[1]

    first = True
    for i in range(0, len(inputs), RATE):
        chunk = inputs[i:i + RATE]
        for j, var in enumerate(chunk):
            state[1 + j] = var if first else composer.add(state[1 + j], var)
        state = poseidon_permutation_gadget(composer, state)
        first = False

    return state[1]


def poseidon2_gadget(composer: StandardComposer, left: Variable, right: Variable) -> Variable:
    """Constrain ``poseidon2(left, right)`` with the default (zero) domain."""
    return poseidon_permutation_gadget(composer, [composer.zero, left, right])[1]


# =============================================================================
# Cipher
# =============================================================================


def cipher_decrypt_gadget(
    composer: StandardComposer,
    secret: Point,
    nonce: Variable,
    cipher: Sequence[Variable],
) -> Tuple[Variable, Variable]:
    """
    Constrain ``PoseidonCipher.decrypt`` and its authentication tag.

    Returns:
        The two plaintext wires (value, blinder)
    """
    c0, c1, tag = cipher
    capacity = composer.constant(sponge_capacity(DOMAIN_CIPHER, MESSAGE_CAPACITY))
    state = poseidon_permutation_gadget(composer, [capacity, secret[0], secret[1]])
    state[1] = composer.add(state[1], nonce)
    state = poseidon_permutation_gadget(composer, state)

    m0 = composer.sub(c0, state[1])
    m1 = composer.sub(c1, state[2])

    computed_tag = poseidon_permutation_gadget(composer, [state[0], c0, c1])[1]
    composer.assert_equal(computed_tag, tag)
    return m0, m1


# =============================================================================
# Baby Jubjub
# =============================================================================


def point_gadget(composer: StandardComposer, point: JubJubAffine) -> Point:
    """Allocate a point as two private wires."""
    return composer.add_input(point.x), composer.add_input(point.y)


def edwards_add_gadget(composer: StandardComposer, p: Point, q: Point) -> Point:
    """Constrain twisted Edwards addition (7 gates)."""
    x1, y1 = p
    x2, y2 = q
    t1 = composer.mul(x1, y2)
    t2 = composer.mul(y1, x2)
    t3 = composer.mul(y1, y2)
    t4 = composer.mul(x1, x2)
    t5 = composer.mul(t3, t4)

    v = composer.value
    dt5 = JUBJUB_D * v(t5)
    x3 = composer.add_input((v(t1) + v(t2)) * _inv_or_zero(1 + dt5))
    y3 = composer.add_input((v(t3) - JUBJUB_A * v(t4)) * _inv_or_zero(1 - dt5))

    # x3 * (1 + d*t5) = t1 + t2
    composer.append_gate(x3, t5, t2, t1, q_m=JUBJUB_D, q_l=1, q_o=-1, q_4=-1)
    # y3 * (1 - d*t5) = t3 - a*t4
    composer.append_gate(y3, t5, t4, t3, q_m=-JUBJUB_D, q_l=1, q_o=JUBJUB_A, q_4=-1)
    return x3, y3


def fixed_base_mul_gadget(
    composer: StandardComposer,
    bits: Sequence[Variable],
    base: JubJubAffine,
) -> Point:
    """
    Constrain ``sum(bit_i * 2^i) * base`` for boolean-constrained bits.

    Each bit selects either 2^i*base or the identity, then adds it into the
    accumulator.
    """
    table = fixed_base_table(base, len(bits))
    acc = (composer.zero, composer.constant(1))
    for bit, point in zip(bits, table):
        x = composer.linear_combination([(point.x, bit)])
        y = composer.linear_combination([(point.y - 1, bit)], 1)
        acc = edwards_add_gadget(composer, acc, (x, y))
    return acc


def assert_point_equal(composer: StandardComposer, p: Point, q: Point) -> None:
    composer.assert_equal(p[0], q[0])
    composer.assert_equal(p[1], q[1])


# =============================================================================
# Merkle
# =============================================================================


def merkle_opening_gadget(
    composer: StandardComposer,
    leaf: Variable,
    index_bits: Sequence[Variable],
    path: Sequence[Variable],
) -> Variable:
    """
    Recompute a root from a leaf and its authentication path.

    ``index_bits`` are little-endian and boolean-constrained; a set bit puts
    the current node on the right.
    """
    if len(index_bits) != len(path):
        raise ValueError("index bits and path must have the same length")

    current = leaf
    for bit, sibling in zip(index_bits, path):
        diff = composer.sub(sibling, current)
        shift = composer.mul(bit, diff)
        left = composer.add(current, shift)
        right = composer.sub(sibling, shift)
        current = poseidon2_gadget(composer, left, right)
    return current
