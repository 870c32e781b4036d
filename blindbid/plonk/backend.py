"""
Proving Backend - KZG PLONK over BN254 for StandardComposer circuits.

1. ``PublicParameters.setup`` publishes [tau^i]G1 and [tau]G2; tau itself is
   discarded before the call returns
2. ``compile_circuit`` interpolates the selectors and copy permutation of a
   circuit shape and commits to them (ProverKey / VerifierKey)
3. ``prove`` runs the five PLONK rounds:

   - Round 1: commit to the blinded wire polynomials a, b, c, d
   - Round 2: commit to the blinded permutation accumulator z
   - Round 3: commit to the quotient t, split into five pieces
   - Round 4: open every committed polynomial at zeta, and z at zeta*omega
   - Round 5: batch the openings into two KZG witnesses

4. ``verify`` recomputes the challenges, checks the constraint identity at
   zeta and checks both openings with a single pairing equation

Design Notes:
-------------
Selectors and permutation polynomials are opened at zeta next to the wires
instead of being linearized. The proof is larger (12 points, 21 scalars),
and the verifier evaluates the gate and permutation identity directly from
the opened values.
"""

import secrets
import time
from dataclasses import dataclass, field
from typing import List, NamedTuple, Sequence, Tuple

from py_ecc.optimized_bn128 import G2, multiply, pairing

from blindbid.crypto import bytes_to_hex, hex_to_bytes
from blindbid.errors import CircuitCompilationError, DecodingError, ProofGenerationError
from blindbid.plonk.composer import StandardComposer
from blindbid.plonk.kzg import (
    G1_AFFINE,
    Point,
    commit,
    decode_point,
    encode_point,
    fixed_base_msm,
    is_on_curve,
    msm,
    to_py_ecc,
)
from blindbid.plonk.permutation import K, NUM_WIRES, compute_sigmas, grand_product, wire_columns
from blindbid.plonk.polynomial import (
    R,
    add_scaled,
    batch_inverse,
    blind,
    coset_fft,
    coset_ifft,
    divide_by_linear,
    domain_elements,
    evaluate,
    ifft,
    multiplicative_generator,
    root_of_unity,
)
from blindbid.plonk.transcript import Transcript
from blindbid.utils.logger import get_logger

logger = get_logger("backend")


# =============================================================================
# Constants
# =============================================================================

# z carries three blinding coefficients, so its degree is n + 2
BLINDING_DEGREE = 2

# Smallest domain for which the 8n coset holds the quotient numerator
MIN_CIRCUIT_SIZE = 4

QUOTIENT_EXTENSION = 8
NUM_QUOTIENT_PIECES = 5
# Coefficients of the last quotient piece (deg t <= 4n + 6)
QUOTIENT_TAIL = 7

SELECTOR_NAMES = ("q_m", "q_l", "q_r", "q_o", "q_4", "q_c")

WIRE_TAGS = (b"a", b"b", b"c", b"d")
QUOTIENT_TAGS = tuple(b"t%d" % i for i in range(NUM_QUOTIENT_PIECES))
SELECTOR_TAGS = tuple(name.encode() for name in SELECTOR_NAMES)
SIGMA_TAGS = tuple(b"s%d" % (j + 1) for j in range(NUM_WIRES))

# Order in which polynomials are opened at zeta
OPENING_TAGS = WIRE_TAGS + (b"z",) + QUOTIENT_TAGS + SELECTOR_TAGS + SIGMA_TAGS


# =============================================================================
# Public Parameters
# =============================================================================


@dataclass(frozen=True)
class PublicParameters:
    """
    Universal setup output (structured reference string).

    Attributes:
        max_degree: Highest power of tau available in G1
        g1_powers: [tau^0]G1 .. [tau^max_degree]G1 as affine points
        g2_tau: [tau]G2 (py_ecc point)
    """
    max_degree: int
    g1_powers: Tuple[Point, ...] = field(repr=False)
    g2_tau: tuple = field(repr=False)

    @classmethod
    def setup(cls, max_degree: int, rng) -> "PublicParameters":
        """
        Run a single-party trusted setup.

        Args:
            max_degree: Highest supported polynomial degree
            rng: random.Random-compatible source for tau
        """
        if max_degree < 1:
            raise ValueError(f"max_degree must be positive, got {max_degree}")

        start_time = time.time()
        tau = rng.randrange(1, R)

        scalars = [1] * (max_degree + 1)
        for i in range(1, max_degree + 1):
            scalars[i] = scalars[i - 1] * tau % R

        params = cls(
            max_degree=max_degree,
            g1_powers=tuple(fixed_base_msm(G1_AFFINE, scalars)),
            g2_tau=multiply(G2, tau),
        )

        elapsed_ms = int((time.time() - start_time) * 1000)
        logger.info(f"Public parameters generated: max_degree={max_degree} in {elapsed_ms}ms")
        return params


# =============================================================================
# Keys
# =============================================================================


def _points_to_hex(points: Sequence[Point]) -> List[str]:
    return [bytes_to_hex(encode_point(p)) for p in points]


def _points_from_hex(values: Sequence[str]) -> Tuple[Point, ...]:
    return tuple(decode_point(hex_to_bytes(v)) for v in values)


@dataclass(frozen=True)
class VerifierKey:
    """
    Compiled circuit as seen by the verifier.

    Attributes:
        circuit_digest: Digest of the circuit shape
        size: Domain size n
        pi_positions: Gate indices of the public inputs
        selector_commitments: [q_m], [q_l], [q_r], [q_o], [q_4], [q_c]
        sigma_commitments: [sigma_1] .. [sigma_4]
    """
    circuit_digest: bytes
    size: int
    pi_positions: Tuple[int, ...]
    selector_commitments: Tuple[Point, ...]
    sigma_commitments: Tuple[Point, ...]

    def to_dict(self) -> dict:
        return {
            "circuit_digest": bytes_to_hex(self.circuit_digest),
            "size": self.size,
            "pi_positions": list(self.pi_positions),
            "selector_commitments": _points_to_hex(self.selector_commitments),
            "sigma_commitments": _points_to_hex(self.sigma_commitments),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "VerifierKey":
        """
        Raises:
            DecodingError: On missing fields or invalid points
        """
        try:
            return cls(
                circuit_digest=hex_to_bytes(data["circuit_digest"]),
                size=int(data["size"]),
                pi_positions=tuple(int(p) for p in data["pi_positions"]),
                selector_commitments=_points_from_hex(data["selector_commitments"]),
                sigma_commitments=_points_from_hex(data["sigma_commitments"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise DecodingError("verifier key", e) from e


@dataclass(frozen=True)
class ProverKey:
    """
    Compiled circuit as seen by the prover.

    Polynomials are stored in coefficient form; sigma is also kept in
    evaluation form for the permutation accumulator.
    """
    circuit_digest: bytes
    size: int
    num_gates: int
    pi_positions: Tuple[int, ...]
    selector_commitments: Tuple[Point, ...]
    sigma_commitments: Tuple[Point, ...]
    selectors: Tuple[List[int], ...] = field(repr=False, compare=False)
    sigmas: Tuple[List[int], ...] = field(repr=False, compare=False)
    sigma_evals: Tuple[List[int], ...] = field(repr=False, compare=False)

    def verifier_key(self) -> VerifierKey:
        return VerifierKey(
            circuit_digest=self.circuit_digest,
            size=self.size,
            pi_positions=self.pi_positions,
            selector_commitments=self.selector_commitments,
            sigma_commitments=self.sigma_commitments,
        )


# =============================================================================
# Proof
# =============================================================================


@dataclass(frozen=True)
class Proof:
    """
    A PLONK proof.

    Attributes:
        wire_commitments: [a], [b], [c], [d]
        z_commitment: [z]
        t_commitments: [t_0] .. [t_4]
        w_zeta: Opening witness at zeta
        w_zeta_omega: Opening witness of z at zeta*omega
        wire_evals: a, b, c, d at zeta
        z_eval: z(zeta)
        t_evals: t_0 .. t_4 at zeta
        selector_evals: q_m, q_l, q_r, q_o, q_4, q_c at zeta
        sigma_evals: sigma_1 .. sigma_4 at zeta
        z_omega_eval: z(zeta*omega)
    """
    wire_commitments: Tuple[Point, ...]
    z_commitment: Point
    t_commitments: Tuple[Point, ...]
    w_zeta: Point
    w_zeta_omega: Point
    wire_evals: Tuple[int, ...]
    z_eval: int
    t_evals: Tuple[int, ...]
    selector_evals: Tuple[int, ...]
    sigma_evals: Tuple[int, ...]
    z_omega_eval: int

    NUM_POINTS = NUM_WIRES + 1 + NUM_QUOTIENT_PIECES + 2
    NUM_SCALARS = len(OPENING_TAGS) + 1
    SIZE = NUM_POINTS * 64 + NUM_SCALARS * 32

    def commitments(self) -> List[Point]:
        """Commitments sent before zeta, in transcript order."""
        return [*self.wire_commitments, self.z_commitment, *self.t_commitments]

    def opening_evaluations(self) -> List[int]:
        """Evaluations at zeta, in OPENING_TAGS order."""
        return [
            *self.wire_evals,
            self.z_eval,
            *self.t_evals,
            *self.selector_evals,
            *self.sigma_evals,
        ]

    @classmethod
    def from_parts(cls, commitments, w_zeta, w_zeta_omega, evaluations, z_omega_eval) -> "Proof":
        evaluations = list(evaluations)
        t_end = NUM_WIRES + 1 + NUM_QUOTIENT_PIECES
        s_end = t_end + len(SELECTOR_NAMES)
        return cls(
            wire_commitments=tuple(commitments[:NUM_WIRES]),
            z_commitment=commitments[NUM_WIRES],
            t_commitments=tuple(commitments[NUM_WIRES + 1:]),
            w_zeta=w_zeta,
            w_zeta_omega=w_zeta_omega,
            wire_evals=tuple(evaluations[:NUM_WIRES]),
            z_eval=evaluations[NUM_WIRES],
            t_evals=tuple(evaluations[NUM_WIRES + 1:t_end]),
            selector_evals=tuple(evaluations[t_end:s_end]),
            sigma_evals=tuple(evaluations[s_end:]),
            z_omega_eval=z_omega_eval,
        )

    def to_bytes(self) -> bytes:
        points = self.commitments() + [self.w_zeta, self.w_zeta_omega]
        scalars = self.opening_evaluations() + [self.z_omega_eval]
        return b"".join(encode_point(p) for p in points) + b"".join(s.to_bytes(32, "big") for s in scalars)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Proof":
        """
        Raises:
            DecodingError: On wrong length, off-curve points or out-of-field scalars
        """
        if len(data) != cls.SIZE:
            raise DecodingError("proof", f"expected {cls.SIZE} bytes, got {len(data)}")

        try:
            points = [decode_point(data[i * 64:(i + 1) * 64]) for i in range(cls.NUM_POINTS)]
        except ValueError as e:
            raise DecodingError("proof", e) from e

        offset = cls.NUM_POINTS * 64
        scalars = [
            int.from_bytes(data[offset + i * 32:offset + (i + 1) * 32], "big")
            for i in range(cls.NUM_SCALARS)
        ]
        if any(s >= R for s in scalars):
            raise DecodingError("proof", "scalar out of field")

        return cls.from_parts(points[:-2], points[-2], points[-1], scalars[:-1], scalars[-1])

    def to_dict(self) -> dict:
        return {"proof": bytes_to_hex(self.to_bytes())}

    @classmethod
    def from_dict(cls, data: dict) -> "Proof":
        return cls.from_bytes(hex_to_bytes(data["proof"]))

    def is_well_formed(self) -> bool:
        if (
            len(self.wire_commitments) != NUM_WIRES
            or len(self.t_commitments) != NUM_QUOTIENT_PIECES
            or len(self.opening_evaluations()) != len(OPENING_TAGS)
        ):
            return False
        points = self.commitments() + [self.w_zeta, self.w_zeta_omega]
        if not all(is_on_curve(p) for p in points):
            return False
        scalars = self.opening_evaluations() + [self.z_omega_eval]
        return all(isinstance(s, int) and 0 <= s < R for s in scalars)


# =============================================================================
# Transcript
# =============================================================================


class Challenges(NamedTuple):
    beta: int
    gamma: int
    alpha: int
    zeta: int
    v: int
    u: int


def _absorb_statement(transcript: Transcript, verifier_key: VerifierKey, public_inputs: Sequence[int]) -> None:
    transcript.append_message(b"circuit", verifier_key.circuit_digest)
    transcript.append_scalar(b"size", verifier_key.size)
    for position in verifier_key.pi_positions:
        transcript.append_scalar(b"pi_position", position)
    for tag, point in zip(SELECTOR_TAGS + SIGMA_TAGS,
                          verifier_key.selector_commitments + verifier_key.sigma_commitments):
        transcript.append_point(b"vk_" + tag, point)
    transcript.append_scalar(b"pi_count", len(public_inputs))
    for value in public_inputs:
        transcript.append_scalar(b"pi", value)


def derive_challenges(
    verifier_key: VerifierKey,
    label: bytes,
    public_inputs: Sequence[int],
    proof: Proof,
) -> Challenges:
    """Replay the Fiat-Shamir transcript of a proof."""
    transcript = Transcript(label)
    _absorb_statement(transcript, verifier_key, public_inputs)

    for tag, point in zip(WIRE_TAGS, proof.wire_commitments):
        transcript.append_point(tag, point)
    beta = transcript.challenge_scalar(b"beta")
    gamma = transcript.challenge_scalar(b"gamma")

    transcript.append_point(b"z", proof.z_commitment)
    alpha = transcript.challenge_scalar(b"alpha")

    for tag, point in zip(QUOTIENT_TAGS, proof.t_commitments):
        transcript.append_point(tag, point)
    zeta = transcript.challenge_scalar(b"zeta")

    for tag, value in zip(OPENING_TAGS, proof.opening_evaluations()):
        transcript.append_scalar(b"eval_" + tag, value)
    transcript.append_scalar(b"eval_z_omega", proof.z_omega_eval)
    v = transcript.challenge_scalar(b"v")

    transcript.append_point(b"w_zeta", proof.w_zeta)
    transcript.append_point(b"w_zeta_omega", proof.w_zeta_omega)
    u = transcript.challenge_scalar(b"u")

    return Challenges(beta, gamma, alpha, zeta, v, u)


# =============================================================================
# Compile
# =============================================================================


def compile_circuit(
    composer: StandardComposer,
    pub_params: PublicParameters,
    trim_size: int,
) -> Tuple[ProverKey, VerifierKey]:
    """
    Preprocess a circuit shape into keys.

    Raises:
        CircuitCompilationError: If the padded circuit exceeds trim_size or
            trim_size exceeds the public parameters
    """
    start_time = time.time()

    if trim_size + BLINDING_DEGREE > pub_params.max_degree:
        raise CircuitCompilationError(
            f"Trim size {trim_size} exceeds public parameters degree {pub_params.max_degree}"
        )
    n = max(composer.padded_size(), MIN_CIRCUIT_SIZE)
    if n > trim_size:
        raise CircuitCompilationError(
            f"Circuit needs {n} gates after padding, trim size is {trim_size}"
        )

    gates = composer.gates
    domain = domain_elements(n)

    selector_evals = [[0] * n for _ in SELECTOR_NAMES]
    for i, gate in enumerate(gates):
        for k in range(len(SELECTOR_NAMES)):
            selector_evals[k][i] = gate[NUM_WIRES + k]
    selectors = tuple(ifft(evals) for evals in selector_evals)

    sigma_evals = tuple(compute_sigmas(gates, n, domain))
    sigmas = tuple(ifft(evals) for evals in sigma_evals)

    powers = pub_params.g1_powers
    prover_key = ProverKey(
        circuit_digest=composer.circuit_digest(),
        size=n,
        num_gates=composer.circuit_size(),
        pi_positions=tuple(composer.public_input_positions()),
        selector_commitments=tuple(commit(p, powers) for p in selectors),
        sigma_commitments=tuple(commit(p, powers) for p in sigmas),
        selectors=selectors,
        sigmas=sigmas,
        sigma_evals=sigma_evals,
    )

    elapsed_ms = int((time.time() - start_time) * 1000)
    logger.info(
        f"Circuit compiled: {prover_key.num_gates} gates (padded {n}), "
        f"{len(prover_key.pi_positions)} public inputs in {elapsed_ms}ms"
    )
    return prover_key, prover_key.verifier_key()


# =============================================================================
# Prove
# =============================================================================


def _quotient(
    prover_key: ProverKey,
    wire_polys: Sequence[List[int]],
    z_poly: List[int],
    pi_poly: List[int],
    beta: int,
    gamma: int,
    alpha: int,
) -> List[int]:
    """t = (gate + alpha*perm + alpha^2*boundary) / Z_H, computed on an 8n coset."""
    n = prover_key.size
    size = QUOTIENT_EXTENSION * n

    def ext(coeffs):
        return coset_fft(coeffs, size)

    wires = [ext(p) for p in wire_polys]
    a, b, c, d = wires

    # Gate constraint, one selector at a time
    q = ext(prover_key.selectors[0])
    acc = [qi * ai % R * bi % R for qi, ai, bi in zip(q, a, b)]
    for k, w in ((1, a), (2, b), (3, c), (4, d)):
        q = ext(prover_key.selectors[k])
        acc = [(s + qi * wi) % R for s, qi, wi in zip(acc, q, w)]
    q = ext(prover_key.selectors[5])
    pi = ext(pi_poly)
    acc = [(s + qi - p) % R for s, qi, p in zip(acc, q, pi)]
    del q, pi

    # Permutation
    g = multiplicative_generator()
    omega_ext = root_of_unity(size)
    xs = [0] * size
    x = g
    for i in range(size):
        xs[i] = x
        x = x * omega_ext % R

    z = ext(z_poly)
    numerator = list(z)
    for j, w in enumerate(wires):
        beta_k = beta * K[j] % R
        numerator = [nm * (wi + beta_k * xi + gamma) % R for nm, wi, xi in zip(numerator, w, xs)]
    del xs

    shift = size // n
    denominator = z[shift:] + z[:shift]
    for j, w in enumerate(wires):
        s = ext(prover_key.sigmas[j])
        denominator = [dn * (wi + beta * si + gamma) % R for dn, wi, si in zip(denominator, w, s)]

    # z(omega^0) = 1, with L_0 = (1 + x + ... + x^(n-1)) / n
    l0 = ext([pow(n, -1, R)] * n)
    alpha_sq = alpha * alpha % R
    acc = [
        (s + alpha * (nm - dn) + alpha_sq * (zi - 1) * li) % R
        for s, nm, dn, zi, li in zip(acc, numerator, denominator, z, l0)
    ]

    # Z_H(g * omega_ext^i) only depends on i mod 8
    g_n = pow(g, n, R)
    vanishing_inv = batch_inverse(
        [(g_n * pow(omega_ext, n * k, R) - 1) % R for k in range(shift)]
    )
    t_evals = [s * vanishing_inv[i % shift] % R for i, s in enumerate(acc)]
    return coset_ifft(t_evals)


def _split_quotient(t_poly: List[int], n: int, rng) -> List[List[int]]:
    """
    Split t into pieces with t = sum t_i * x^(i*n), each piece blinded.

    Piece i gains b_i * x^n and piece i+1 loses b_i, leaving the sum intact.
    """
    last = (NUM_QUOTIENT_PIECES - 1) * n
    pieces = [t_poly[i * n:(i + 1) * n] for i in range(NUM_QUOTIENT_PIECES - 1)]
    pieces.append(t_poly[last:last + QUOTIENT_TAIL])

    for i in range(NUM_QUOTIENT_PIECES - 1):
        b = rng.randrange(R)
        pieces[i].append(b)
        pieces[i + 1][0] = (pieces[i + 1][0] - b) % R
    return pieces


def prove(
    pub_params: PublicParameters,
    prover_key: ProverKey,
    composer: StandardComposer,
    label: bytes,
    rng=None,
) -> Proof:
    """
    Prove that the composer's witness satisfies the compiled circuit.

    Args:
        pub_params: Public parameters the keys were compiled against
        prover_key: Output of compile_circuit
        composer: Circuit with its witness
        label: Domain separation label bound into the transcript
        rng: random.Random-compatible source for blinding (system
            randomness by default)

    Raises:
        ProofGenerationError: On a shape mismatch or unsatisfied gates
    """
    start_time = time.time()
    rng = rng if rng is not None else secrets.SystemRandom()

    if composer.circuit_digest() != prover_key.circuit_digest:
        raise ProofGenerationError("Circuit shape does not match the prover key")

    failing = composer.unsatisfied_gates()
    if failing:
        raise ProofGenerationError(
            f"{len(failing)} unsatisfied gates (first at index {failing[0]})"
        )

    n = prover_key.size
    if n + BLINDING_DEGREE > pub_params.max_degree:
        raise ProofGenerationError("Public parameters are too small for the prover key")

    powers = pub_params.g1_powers
    domain = domain_elements(n)
    omega = domain[1]
    witness = composer.witness

    wire_evals = [[witness[var] for var in column] for column in wire_columns(composer.gates, n)]
    pi_evals = [0] * n
    for position, value in composer.public_inputs.items():
        pi_evals[position] = value
    public_inputs = composer.public_input_values()

    transcript = Transcript(label)
    _absorb_statement(transcript, prover_key.verifier_key(), public_inputs)

    # Round 1: wires
    wire_polys = [blind(ifft(evals), [rng.randrange(R) for _ in range(2)], n) for evals in wire_evals]
    wire_commitments = [commit(p, powers) for p in wire_polys]
    for tag, point in zip(WIRE_TAGS, wire_commitments):
        transcript.append_point(tag, point)
    beta = transcript.challenge_scalar(b"beta")
    gamma = transcript.challenge_scalar(b"gamma")

    # Round 2: permutation accumulator
    try:
        z_evals = grand_product(wire_evals, prover_key.sigma_evals, domain, beta, gamma)
    except ZeroDivisionError as e:
        raise ProofGenerationError(str(e)) from e
    z_poly = blind(ifft(z_evals), [rng.randrange(R) for _ in range(3)], n)
    z_commitment = commit(z_poly, powers)
    transcript.append_point(b"z", z_commitment)
    alpha = transcript.challenge_scalar(b"alpha")

    # Round 3: quotient
    t_poly = _quotient(prover_key, wire_polys, z_poly, ifft(pi_evals), beta, gamma, alpha)
    if any(t_poly[(NUM_QUOTIENT_PIECES - 1) * n + QUOTIENT_TAIL:]):
        raise ProofGenerationError("Quotient polynomial exceeds its degree bound")
    t_pieces = _split_quotient(t_poly, n, rng)
    t_commitments = [commit(p, powers) for p in t_pieces]
    for tag, point in zip(QUOTIENT_TAGS, t_commitments):
        transcript.append_point(tag, point)
    zeta = transcript.challenge_scalar(b"zeta")

    # Round 4: evaluations
    opened = [*wire_polys, z_poly, *t_pieces, *prover_key.selectors, *prover_key.sigmas]
    evaluations = [evaluate(p, zeta) for p in opened]
    zeta_omega = zeta * omega % R
    z_omega_eval = evaluate(z_poly, zeta_omega)
    for tag, value in zip(OPENING_TAGS, evaluations):
        transcript.append_scalar(b"eval_" + tag, value)
    transcript.append_scalar(b"eval_z_omega", z_omega_eval)
    v = transcript.challenge_scalar(b"v")

    # Round 5: opening witnesses
    combined: List[int] = []
    scale = 1
    for p in opened:
        add_scaled(combined, p, scale)
        scale = scale * v % R
    w_zeta = commit(divide_by_linear(combined, zeta), powers)
    w_zeta_omega = commit(divide_by_linear(z_poly, zeta_omega), powers)

    proof = Proof.from_parts(
        wire_commitments + [z_commitment] + t_commitments,
        w_zeta,
        w_zeta_omega,
        evaluations,
        z_omega_eval,
    )

    elapsed_ms = int((time.time() - start_time) * 1000)
    logger.info(f"Proof generated for {n} gates in {elapsed_ms}ms")
    return proof


# =============================================================================
# Verify
# =============================================================================


def evaluate_constraints(
    verifier_key: VerifierKey,
    challenges: Challenges,
    proof: Proof,
    public_inputs: Sequence[int],
) -> Tuple[int, int]:
    """
    Constraint numerator and Z_H at zeta, from the opened values.

    A valid proof satisfies numerator == t(zeta) * Z_H(zeta).

    Returns:
        (numerator, vanishing); vanishing is 0 if zeta fell in the domain
    """
    n = verifier_key.size
    omega = root_of_unity(n)
    beta, gamma, alpha, zeta = challenges.beta, challenges.gamma, challenges.alpha, challenges.zeta

    vanishing = (pow(zeta, n, R) - 1) % R
    if vanishing == 0:
        return 0, 0

    scaled = vanishing * pow(n, -1, R) % R
    points = [pow(omega, position, R) for position in verifier_key.pi_positions]
    inverses = batch_inverse([(zeta - 1) % R] + [(zeta - p) % R for p in points])

    l0 = scaled * inverses[0] % R
    pi = 0
    for value, point, inv in zip(public_inputs, points, inverses[1:]):
        pi = (pi + value * point % R * scaled % R * inv) % R

    a, b, c, d = proof.wire_evals
    q_m, q_l, q_r, q_o, q_4, q_c = proof.selector_evals
    gate = (q_m * a % R * b + q_l * a + q_r * b + q_o * c + q_4 * d + q_c - pi) % R

    numerator = proof.z_eval
    denominator = proof.z_omega_eval
    for j, w in enumerate(proof.wire_evals):
        numerator = numerator * (w + beta * K[j] % R * zeta + gamma) % R
        denominator = denominator * (w + beta * proof.sigma_evals[j] + gamma) % R

    boundary = (proof.z_eval - 1) * l0 % R
    total = (gate + alpha * (numerator - denominator) + alpha * alpha % R * boundary) % R
    return total, vanishing


def verify(
    pub_params: PublicParameters,
    verifier_key: VerifierKey,
    label: bytes,
    proof: Proof,
    public_inputs: List[int],
) -> bool:
    """
    Verify a proof against public inputs.

    Returns:
        True if valid; never raises for a malformed proof or inputs
    """
    start_time = time.time()

    if len(public_inputs) != len(verifier_key.pi_positions):
        logger.warning(
            f"Expected {len(verifier_key.pi_positions)} public inputs, got {len(public_inputs)}"
        )
        return False

    for pi in public_inputs:
        if not isinstance(pi, int) or not (0 <= pi < R):
            logger.warning("Public input outside the scalar field")
            return False

    if not proof.is_well_formed():
        logger.warning("Proof is malformed")
        return False

    challenges = derive_challenges(verifier_key, label, public_inputs, proof)
    numerator, vanishing = evaluate_constraints(verifier_key, challenges, proof, public_inputs)
    if vanishing == 0:
        logger.warning("Evaluation point falls in the domain")
        return False

    zeta = challenges.zeta
    n = verifier_key.size
    zeta_n = pow(zeta, n, R)
    t_zeta = 0
    for value in reversed(proof.t_evals):
        t_zeta = (t_zeta * zeta_n + value) % R
    if numerator != t_zeta * vanishing % R:
        logger.warning("Proof rejected: constraint identity fails at zeta")
        return False

    # Batched KZG check:
    #   e(F - E*G1 + zeta*W + u*([z] - z_w*G1 + zeta*omega*W'), G2) == e(W + u*W', [tau]G2)
    v, u = challenges.v, challenges.u
    commitments = (
        proof.commitments()
        + list(verifier_key.selector_commitments)
        + list(verifier_key.sigma_commitments)
    )
    scalars = []
    combined_eval = 0
    scale = 1
    for value in proof.opening_evaluations():
        scalars.append(scale)
        combined_eval = (combined_eval + scale * value) % R
        scale = scale * v % R

    zeta_omega = zeta * root_of_unity(n) % R
    lhs = msm(
        commitments + [G1_AFFINE, proof.w_zeta, proof.z_commitment, proof.w_zeta_omega],
        scalars + [-(combined_eval + u * proof.z_omega_eval), zeta, u, u * zeta_omega],
    )
    rhs = msm([proof.w_zeta, proof.w_zeta_omega], [1, u])

    valid = pairing(G2, to_py_ecc(lhs)) == pairing(pub_params.g2_tau, to_py_ecc(rhs))

    elapsed_ms = int((time.time() - start_time) * 1000)
    if not valid:
        logger.warning("Proof rejected: opening check failed")
    else:
        logger.debug(f"Proof verified in {elapsed_ms}ms")
    return valid
