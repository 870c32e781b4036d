"""
Score - per-round sortition weight of a bid.

The score combines the decrypted bid value with round randomness

    y = H(secret_k, bid_tree_root, seed, round, step)

through a versioned formula. A formula has two faces that must agree
bit-for-bit:

- ``evaluate``: native computation used by ``Score.compute``
- ``constrain``: the same arithmetic as gates, used by the blind-bid circuit

Formula version 1 (TruncatedQuotientFormula):

    y'        = y mod 2^128
    score     = floor(value * 2^128 / y')
    remainder = value * 2^128 mod y'

Since y' < 2^128 the score is strictly increasing in the value, and without
secret_k the randomness y is unpredictable.
"""

from dataclasses import dataclass
from typing import Dict, Tuple

from blindbid.crypto.poseidon import DOMAIN_SCORE, FIELD_PRIME, sponge_hash
from blindbid.crypto.jubjub import JubJubAffine
from blindbid.errors import BidExpired, BidNotEligible, ScoreComputationError
from blindbid.plonk.composer import StandardComposer, Variable
from blindbid.utils.logger import get_logger

logger = get_logger("score")


def score_randomness(
    secret_k: int,
    bid_tree_root: int,
    consensus_round_seed: int,
    latest_consensus_round: int,
    latest_consensus_step: int,
) -> int:
    """The pseudo-random quantity y the score formula consumes."""
    return sponge_hash(
        [secret_k, bid_tree_root, consensus_round_seed, latest_consensus_round, latest_consensus_step],
        DOMAIN_SCORE,
    )


# =============================================================================
# Formulas
# =============================================================================


class TruncatedQuotientFormula:
    """score = floor(value * 2^128 / (y mod 2^128))"""

    version = 1

    Y_BITS = 128
    # y < p < 2^254 so the high half fits 126 bits
    Y_HI_BITS = 126
    Y_HI_MAX = FIELD_PRIME >> Y_BITS
    # Keeps score * y' + remainder below the field modulus
    SCORE_BITS = 125

    def evaluate(self, value: int, y: int) -> Tuple[int, int, int]:
        """
        Returns:
            (score, y_prime, remainder)

        Raises:
            ScoreComputationError: If y' is zero or the score does not fit
                SCORE_BITS
        """
        y_prime = y % (1 << self.Y_BITS)
        if y_prime == 0:
            raise ScoreComputationError("Score randomness truncates to zero")

        score, remainder = divmod(value << self.Y_BITS, y_prime)
        if score >> self.SCORE_BITS:
            raise ScoreComputationError(f"Score exceeds {self.SCORE_BITS} bits")
        return score, y_prime, remainder

    def constrain(self, composer: StandardComposer, value: Variable, y: Variable) -> Variable:
        """
        Constrain the formula over wires.

        ``value`` must already be range-constrained to 64 bits.

        Returns:
            The score wire
        """
        y_value = composer.value(y)
        y_lo = composer.add_input(y_value % (1 << self.Y_BITS))
        y_hi = composer.add_input(y_value >> self.Y_BITS)

        # y = y_lo + 2^128 * y_hi with y_hi <= p >> 128
        composer.range_gate(y_lo, self.Y_BITS)
        composer.range_gate(y_hi, self.Y_HI_BITS)
        hi_gap = composer.linear_combination([(-1, y_hi)], self.Y_HI_MAX)
        composer.range_gate(hi_gap, self.Y_HI_BITS)
        recomposed = composer.linear_combination([(1, y_lo), (1 << self.Y_BITS, y_hi)])
        composer.assert_equal(recomposed, y)

        y_prime = composer.value(y_lo)
        if y_prime:
            quotient, rem = divmod(composer.value(value) << self.Y_BITS, y_prime)
        else:
            quotient, rem = 0, 0
        score = composer.add_input(quotient)
        remainder = composer.add_input(rem)

        # score * y' + remainder - value * 2^128 = 0
        composer.append_gate(
            score, y_lo, remainder, value,
            q_m=1, q_o=1, q_4=-(1 << self.Y_BITS),
        )

        # remainder < y' (which also forces y' >= 1)
        slack = composer.linear_combination([(1, y_lo), (-1, remainder)], -1)
        composer.range_gate(slack, self.Y_BITS)
        composer.range_gate(score, self.SCORE_BITS)
        return score


SCORE_FORMULAS: Dict[int, TruncatedQuotientFormula] = {
    TruncatedQuotientFormula.version: TruncatedQuotientFormula(),
}

DEFAULT_SCORE_FORMULA = SCORE_FORMULAS[1]


def get_score_formula(version: int) -> TruncatedQuotientFormula:
    """
    Look up a score formula by version.

    Raises:
        ValueError: If the version is unknown
    """
    if version not in SCORE_FORMULAS:
        raise ValueError(f"Unknown score formula version {version}")
    return SCORE_FORMULAS[version]


# =============================================================================
# Score
# =============================================================================


@dataclass
class Score:
    """
    A computed score and its private witnesses.

    Attributes:
        value: Public score
        y: Full score randomness
        y_prime: Truncated randomness the value was divided by
        remainder: Division remainder
        version: Formula version that produced the score
    """
    value: int
    y: int
    y_prime: int
    remainder: int
    version: int = 1

    @property
    def formula(self) -> TruncatedQuotientFormula:
        return get_score_formula(self.version)

    @classmethod
    def compute(
        cls,
        bid,
        secret: JubJubAffine,
        secret_k: int,
        bid_tree_root: int,
        consensus_round_seed: int,
        latest_consensus_round: int,
        latest_consensus_step: int,
        formula: TruncatedQuotientFormula = DEFAULT_SCORE_FORMULA,
    ) -> "Score":
        """
        Compute the score of a bid for one consensus round.

        Raises:
            WrongSecretProvided: If the bid does not decrypt under secret
            BidNotEligible: latest_consensus_round < bid.eligibility
            BidExpired: latest_consensus_round > bid.expiration
            ScoreComputationError: If the formula is undefined for y
        """
        value, _ = bid.decrypt_data(secret)

        if latest_consensus_round < bid.eligibility:
            raise BidNotEligible(bid.eligibility, latest_consensus_round)
        if latest_consensus_round > bid.expiration:
            raise BidExpired(bid.expiration, latest_consensus_round)

        y = score_randomness(
            secret_k,
            bid_tree_root,
            consensus_round_seed,
            latest_consensus_round,
            latest_consensus_step,
        )
        score, y_prime, remainder = formula.evaluate(value, y)

        logger.debug(
            f"Score computed for round {latest_consensus_round} step {latest_consensus_step} "
            f"(formula v{formula.version})"
        )
        return cls(value=score, y=y, y_prime=y_prime, remainder=remainder, version=formula.version)
