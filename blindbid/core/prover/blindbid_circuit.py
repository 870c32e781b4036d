"""
Blind-Bid Circuit - proof that a score comes from a valid, eligible bid.

The circuit proves, without revealing value, blinder or secrets:

1. The bid digest opens to the public digest
2. The bid cipher decrypts under ``secret`` to (value, blinder) and
   ``value*G + blinder*H`` is the public commitment
3. ``hashed_secret`` is H(secret_k)
4. The prover-id is H(secret_k, seed, round, step)
5. The digest sits at ``bid.pos`` in the tree with the public root
6. eligibility <= round <= expiration and v_min <= value <= v_max
7. The public score is the score formula applied to value and the round
   randomness, and equals the value carried by ``score``

Public inputs, in order:

    root, bid digest, commitment x, commitment y, hashed secret,
    prover-id, score

Compilation depends only on the circuit shape (config and formula version),
never on the witness, so keys compiled once serve every bid.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from blindbid.core.bid.bid import Bid
from blindbid.core.bid.score import Score
from blindbid.core.config import DEFAULT_CONFIG, BlindBidConfig
from blindbid.core.tree.bid_tree import PoseidonBranch
from blindbid.crypto.cipher import PoseidonCipher
from blindbid.crypto.jubjub import GENERATOR, GENERATOR_NUMS, SCALAR_BITS, JubJubAffine
from blindbid.crypto.keys import StealthAddress
from blindbid.crypto.poseidon import DOMAIN_BID, DOMAIN_PROVER_ID, DOMAIN_SCORE, DOMAIN_SECRET
from blindbid.errors import CircuitCompilationError
from blindbid.plonk import backend
from blindbid.plonk.backend import Proof, ProverKey, PublicParameters, VerifierKey
from blindbid.plonk.composer import StandardComposer
from blindbid.plonk.gadgets import (
    assert_point_equal,
    cipher_decrypt_gadget,
    edwards_add_gadget,
    fixed_base_mul_gadget,
    merkle_opening_gadget,
    point_gadget,
    sponge_hash_gadget,
)
from blindbid.utils.logger import get_logger

logger = get_logger("circuit")


# =============================================================================
# Constants
# =============================================================================

# Width of the value and round-window range checks
VALUE_BITS = 64

NUM_PUBLIC_INPUTS = 7


# =============================================================================
# Public Inputs
# =============================================================================


class PublicInput:
    """Flattens public values into field elements."""

    @staticmethod
    def scalar(value: int) -> List[int]:
        return [value]

    @staticmethod
    def affine_point(point: JubJubAffine) -> List[int]:
        return [point.x, point.y]


def blindbid_public_inputs(root: int, bid: Bid, prover_id: int, score: Union[Score, int]) -> List[int]:
    """
    Ordered public inputs of a blind-bid proof.

    Args:
        root: Bid tree root
        bid: The bid (digest, commitment and hashed secret are public)
        prover_id: Output of ``generate_prover_id``
        score: Score (or its value)
    """
    score_value = score.value if isinstance(score, Score) else score
    return (
        PublicInput.scalar(root)
        + PublicInput.scalar(bid.digest())
        + PublicInput.affine_point(bid.c)
        + PublicInput.scalar(bid.hashed_secret)
        + PublicInput.scalar(prover_id)
        + PublicInput.scalar(score_value)
    )


def _label_bytes(label: Union[bytes, str]) -> bytes:
    return label.encode() if isinstance(label, str) else label


# =============================================================================
# Circuit
# =============================================================================


@dataclass
class BlindBidCircuit:
    """
    Witness bundle and wiring of the blind-bid proof.

    Attributes:
        bid: The bid being proven
        score: Score computed for this round
        secret_k: Bidder's sortition secret
        secret: Shared secret the bid data is encrypted to
        seed: Consensus round seed
        latest_consensus_round: Round the score is for
        latest_consensus_step: Step the score is for
        branch: Bid tree opening of the bid digest
        trim_size: Maximum padded circuit size
        pi_positions: Gate positions of the public inputs (set by ``gadget``)
        config: Protocol bounds and tree depth
    """
    bid: Bid
    score: Score
    secret_k: int
    secret: JubJubAffine
    seed: int
    latest_consensus_round: int
    latest_consensus_step: int
    branch: PoseidonBranch
    trim_size: Optional[int] = None
    pi_positions: List[int] = field(default_factory=list)
    config: BlindBidConfig = DEFAULT_CONFIG

    def __post_init__(self):
        if self.trim_size is None:
            self.trim_size = self.config.trim_size

    @classmethod
    def placeholder(cls, config: BlindBidConfig = DEFAULT_CONFIG) -> "BlindBidCircuit":
        """
        A circuit with dummy witnesses.

        It does not satisfy its constraints, but it has the same shape as
        any real circuit and can be compiled to obtain keys.
        """
        identity = JubJubAffine.identity()
        bid = Bid(
            encrypted_data=PoseidonCipher(),
            nonce=0,
            stealth_address=StealthAddress(identity, identity),
            hashed_secret=0,
            c=identity,
            eligibility=0,
            expiration=0,
        )
        return cls(
            bid=bid,
            score=Score(value=0, y=0, y_prime=0, remainder=0),
            secret_k=0,
            secret=identity,
            seed=0,
            latest_consensus_round=0,
            latest_consensus_step=0,
            branch=PoseidonBranch(root=0, leaf=0, index=0, path=(0,) * config.tree_depth),
            config=config,
        )

    # =========================================================================
    # Wiring
    # =========================================================================

    def gadget(self, composer: StandardComposer) -> List[int]:
        """
        Wire the blind-bid constraints into ``composer``.

        Returns:
            Positions of the public inputs

        Raises:
            CircuitCompilationError: If the branch depth differs from the
                configured tree depth
        """
        depth = self.config.tree_depth
        if self.branch.depth != depth:
            raise CircuitCompilationError(
                f"Branch depth {self.branch.depth} does not match tree depth {depth}"
            )

        bid = self.bid
        add_input = composer.add_input

        # Bid fields
        cipher = [add_input(word) for word in bid.encrypted_data.cipher]
        nonce = add_input(bid.nonce)
        R = point_gadget(composer, bid.stealth_address.R)
        pk_r = point_gadget(composer, bid.stealth_address.pk_r)
        hashed_secret = add_input(bid.hashed_secret)
        c = point_gadget(composer, bid.c)
        eligibility = add_input(bid.eligibility)
        expiration = add_input(bid.expiration)

        # Private witnesses
        secret = point_gadget(composer, self.secret)
        secret_k = add_input(self.secret_k)
        seed = add_input(self.seed)
        round_ = add_input(self.latest_consensus_round)
        step = add_input(self.latest_consensus_step)

        # 1. Bid digest
        digest = sponge_hash_gadget(
            composer,
            [*cipher, nonce, *R, *pk_r, hashed_secret, *c, eligibility, expiration],
            DOMAIN_BID,
        )

        # 2. Decryption and commitment opening
        value, blinder = cipher_decrypt_gadget(composer, secret, nonce, cipher)
        value_bits = composer.range_gate(value, VALUE_BITS)
        blinder_bits = composer.range_gate(blinder, SCALAR_BITS)
        commitment = edwards_add_gadget(
            composer,
            fixed_base_mul_gadget(composer, value_bits, GENERATOR),
            fixed_base_mul_gadget(composer, blinder_bits, GENERATOR_NUMS),
        )
        assert_point_equal(composer, commitment, c)

        # 3. Hashed secret
        composer.assert_equal(sponge_hash_gadget(composer, [secret_k], DOMAIN_SECRET), hashed_secret)

        # 4. Prover-id
        prover_id = sponge_hash_gadget(composer, [secret_k, seed, round_, step], DOMAIN_PROVER_ID)

        # 5. Tree membership at bid.pos
        pos = add_input(bid.pos)
        pos_bits = composer.range_gate(pos, depth)
        path = [add_input(sibling) for sibling in self.branch.path]
        root = merkle_opening_gadget(composer, digest, pos_bits, path)

        # 6. Round window and value bounds
        composer.range_gate(composer.sub(round_, eligibility), VALUE_BITS)
        composer.range_gate(composer.sub(expiration, round_), VALUE_BITS)
        composer.range_gate(composer.linear_combination([(1, value)], -self.config.v_min), VALUE_BITS)
        composer.range_gate(composer.linear_combination([(-1, value)], self.config.v_max), VALUE_BITS)

        # 7. Score
        y = sponge_hash_gadget(composer, [secret_k, root, seed, round_, step], DOMAIN_SCORE)
        score = self.score.formula.constrain(composer, value, y)
        composer.assert_equal(score, add_input(self.score.value))

        self.pi_positions = [
            composer.public_inputize(var)
            for var in (root, digest, c[0], c[1], hashed_secret, prover_id, score)
        ]
        return self.pi_positions

    def build(self) -> StandardComposer:
        composer = StandardComposer()
        self.gadget(composer)
        return composer

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def compile(self, pub_params: PublicParameters) -> Tuple[ProverKey, VerifierKey]:
        """
        Compile the circuit into prover and verifier keys.

        Raises:
            CircuitCompilationError: If the circuit exceeds trim_size or
                trim_size exceeds the public parameters
        """
        composer = self.build()
        logger.debug(f"Blind-bid circuit wired: {composer.circuit_size()} gates")
        return backend.compile_circuit(composer, pub_params, self.trim_size)

    def gen_proof(
        self,
        pub_params: PublicParameters,
        prover_key: ProverKey,
        label: Union[bytes, str],
        rng=None,
    ) -> Proof:
        """
        Prove this witness.

        Args:
            rng: Source of blinding randomness (system randomness by default)

        Raises:
            ProofGenerationError: If the witness violates any constraint or
                the circuit shape differs from the prover key
        """
        composer = self.build()
        return backend.prove(pub_params, prover_key, composer, _label_bytes(label), rng)

    @staticmethod
    def verify_proof(
        pub_params: PublicParameters,
        verifier_key: VerifierKey,
        label: Union[bytes, str],
        proof: Proof,
        public_inputs: List[int],
    ) -> bool:
        """Verify a blind-bid proof against its ordered public inputs."""
        return backend.verify(pub_params, verifier_key, _label_bytes(label), proof, public_inputs)
