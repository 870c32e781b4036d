"""
Standard Composer - width-4 arithmetic constraint system.

Every gate enforces

    q_m*a*b + q_l*a + q_r*b + q_o*c + q_4*d + q_c - PI = 0

over the BN254 scalar field, where a, b, c, d are wires (indices into the
witness vector) and PI is non-zero only on gates registered as public
inputs.

The selectors and the wiring depend only on how a circuit is laid out, never
on witness values. Two composers built by the same gadget code therefore
share the same ``circuit_digest`` whatever witness they carry, which is what
lets keys be compiled once per circuit shape.
"""

from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

from blindbid.crypto import keccak256
from blindbid.crypto.poseidon import FIELD_PRIME


@dataclass(frozen=True)
class Variable:
    """Handle to a witness wire."""
    index: int


class Gate(NamedTuple):
    a: int
    b: int
    c: int
    d: int
    q_m: int
    q_l: int
    q_r: int
    q_o: int
    q_4: int
    q_c: int


def _encode_selector(value: int) -> bytes:
    return (value % FIELD_PRIME).to_bytes(32, byteorder="big")


class StandardComposer:
    """
    Collects witness values and gates for one circuit instance.

    Attributes:
        witness: Wire values (field elements)
        gates: Gate list in insertion order
        public_inputs: Gate index -> public input value
    """

    def __init__(self):
        self.witness: List[int] = []
        self.gates: List[Gate] = []
        self.public_inputs: Dict[int, int] = {}

        # Wire 0 is constrained to zero and used for unused slots
        self.zero = self.add_input(0)
        self.append_gate(self.zero, self.zero, self.zero, q_l=1)

    # =========================================================================
    # Wires and raw gates
    # =========================================================================

    def add_input(self, value: int) -> Variable:
        """Allocate a new witness wire."""
        self.witness.append(value % FIELD_PRIME)
        return Variable(len(self.witness) - 1)

    def value(self, var: Variable) -> int:
        return self.witness[var.index]

    def append_gate(
        self,
        a: Variable,
        b: Variable,
        c: Variable,
        d: Optional[Variable] = None,
        q_m: int = 0,
        q_l: int = 0,
        q_r: int = 0,
        q_o: int = 0,
        q_4: int = 0,
        q_c: int = 0,
    ) -> int:
        """Append a gate and return its index."""
        d = d if d is not None else self.zero
        self.gates.append(Gate(
            a.index, b.index, c.index, d.index,
            q_m % FIELD_PRIME, q_l % FIELD_PRIME, q_r % FIELD_PRIME,
            q_o % FIELD_PRIME, q_4 % FIELD_PRIME, q_c % FIELD_PRIME,
        ))
        return len(self.gates) - 1

    def public_inputize(self, var: Variable) -> int:
        """
        Expose a wire as a public input.

        Returns:
            Position (gate index) of the public input
        """
        position = self.append_gate(var, self.zero, self.zero, q_l=1)
        self.public_inputs[position] = self.value(var)
        return position

    # =========================================================================
    # Arithmetic helpers
    # =========================================================================

    def constant(self, value: int) -> Variable:
        """A wire fixed to a constant by a selector."""
        var = self.add_input(value)
        self.append_gate(var, self.zero, self.zero, q_l=1, q_c=-value)
        return var

    def linear_combination(
        self,
        terms: Sequence[Tuple[int, Variable]],
        constant: int = 0,
    ) -> Variable:
        """
        Return a wire equal to sum(coeff * var) + constant.

        At most three terms fit a single gate.
        """
        if len(terms) > 3:
            raise ValueError(f"A gate holds at most 3 linear terms, got {len(terms)}")

        padded = list(terms) + [(0, self.zero)] * (3 - len(terms))
        out_value = constant
        for coeff, var in padded:
            out_value += coeff * self.value(var)
        out = self.add_input(out_value)

        (q_l, a), (q_r, b), (q_4, d) = padded
        self.append_gate(a, b, out, d, q_l=q_l, q_r=q_r, q_4=q_4, q_o=-1, q_c=constant)
        return out

    def add(self, a: Variable, b: Variable, q_l: int = 1, q_r: int = 1, q_c: int = 0) -> Variable:
        return self.linear_combination([(q_l, a), (q_r, b)], q_c)

    def sub(self, a: Variable, b: Variable) -> Variable:
        return self.linear_combination([(1, a), (-1, b)])

    def mul(self, a: Variable, b: Variable, q_m: int = 1) -> Variable:
        out = self.add_input(q_m * self.value(a) * self.value(b))
        self.append_gate(a, b, out, q_m=q_m, q_o=-1)
        return out

    def assert_equal(self, a: Variable, b: Variable) -> None:
        self.append_gate(a, b, self.zero, q_l=1, q_r=-1)

    def assert_equal_constant(self, a: Variable, constant: int) -> None:
        self.append_gate(a, self.zero, self.zero, q_l=1, q_c=-constant)

    def boolean_gate(self, a: Variable) -> None:
        """Constrain a wire to {0, 1}."""
        self.append_gate(a, a, self.zero, q_m=1, q_l=-1)

    def range_gate(self, var: Variable, num_bits: int) -> List[Variable]:
        """
        Constrain var < 2^num_bits.

        Returns:
            The little-endian bit wires of var
        """
        value = self.value(var)
        bits = [self.add_input((value >> i) & 1) for i in range(num_bits)]
        for bit in bits:
            self.boolean_gate(bit)

        acc = bits[0]
        for i in range(1, num_bits):
            acc = self.linear_combination([(1, acc), (1 << i, bits[i])])

        self.assert_equal(acc, var)
        return bits

    def conditional_select(self, bit: Variable, a: Variable, b: Variable) -> Variable:
        """Return bit ? a : b (bit must already be boolean-constrained)."""
        diff = self.sub(a, b)
        chosen = self.mul(bit, diff)
        return self.add(b, chosen)

    # =========================================================================
    # Shape and satisfiability
    # =========================================================================

    def circuit_size(self) -> int:
        """Number of gates before padding."""
        return len(self.gates)

    def padded_size(self) -> int:
        """Gate count rounded up to the next power of two."""
        n = len(self.gates)
        return 1 << (n - 1).bit_length() if n > 1 else 1

    def public_input_positions(self) -> List[int]:
        return sorted(self.public_inputs)

    def public_input_values(self) -> List[int]:
        return [self.public_inputs[pos] for pos in self.public_input_positions()]

    def circuit_digest(self) -> bytes:
        """
        Digest of selectors, wiring and public input positions.

        Witness values are not part of the digest.
        """
        parts = [
            len(self.witness).to_bytes(8, "big"),
            len(self.gates).to_bytes(8, "big"),
        ]
        for gate in self.gates:
            parts.append(b"".join(wire.to_bytes(4, "big") for wire in gate[:4]))
            parts.append(b"".join(_encode_selector(q) for q in gate[4:]))
        for position in self.public_input_positions():
            parts.append(position.to_bytes(8, "big"))
        return keccak256(b"".join(parts))

    def unsatisfied_gates(self, public_inputs: Optional[Dict[int, int]] = None) -> List[int]:
        """Indices of gates the witness does not satisfy."""
        pi = self.public_inputs if public_inputs is None else public_inputs
        w = self.witness
        failing = []
        for i, (a, b, c, d, q_m, q_l, q_r, q_o, q_4, q_c) in enumerate(self.gates):
            va, vb = w[a], w[b]
            total = q_m * va * vb + q_l * va + q_r * vb + q_o * w[c] + q_4 * w[d] + q_c - pi.get(i, 0)
            if total % FIELD_PRIME:
                failing.append(i)
        return failing

    def is_satisfied(self) -> bool:
        return not self.unsatisfied_gates()

    def __len__(self) -> int:
        return len(self.gates)
