"""
Error taxonomy for the blind-bid core.

Every failure inside the core is terminal for the call that raised it.
Proof verification is the one exception to this module: a proof that does
not verify is an expected outcome and is reported as ``False``, never raised.
"""

from typing import Any


class BlindBidError(Exception):
    """Base class for all blind-bid failures."""


# =============================================================================
# Bid construction
# =============================================================================


class MaximumBidValueExceeded(BlindBidError):
    """The bid value is above the protocol maximum."""

    def __init__(self, max_val: int, found: int):
        self.max_val = max_val
        self.found = found
        super().__init__(f"Bid value {found} exceeds the maximum of {max_val}")


class MinimumBidValueUnreached(BlindBidError):
    """The bid value is below the protocol minimum."""

    def __init__(self, min_val: int, found: int):
        self.min_val = min_val
        self.found = found
        super().__init__(f"Bid value {found} is below the minimum of {min_val}")


class WrongSecretProvided(BlindBidError):
    """
    The bid ciphertext did not authenticate under the supplied secret.

    Deliberately carries no detail: a wrong key and a corrupted ciphertext
    are indistinguishable to the caller.
    """

    def __init__(self):
        super().__init__("Wrong secret provided")


# =============================================================================
# Score computation
# =============================================================================


class BidNotEligible(BlindBidError):
    """The consensus round is earlier than the bid's eligibility."""

    def __init__(self, eligibility: int, round: int):
        self.eligibility = eligibility
        self.round = round
        super().__init__(f"Bid is not eligible until round {eligibility} (current round {round})")


class BidExpired(BlindBidError):
    """The consensus round is later than the bid's expiration."""

    def __init__(self, expiration: int, round: int):
        self.expiration = expiration
        self.round = round
        super().__init__(f"Bid expired at round {expiration} (current round {round})")


class ScoreComputationError(BlindBidError):
    """The score formula cannot be evaluated for the given randomness."""


# =============================================================================
# Encoding
# =============================================================================


class DecodingError(BlindBidError, ValueError):
    """A fixed-width encoding failed validation."""

    def __init__(self, what: str, reason: Any):
        self.what = what
        self.reason = reason
        super().__init__(f"Invalid {what} encoding: {reason}")


# =============================================================================
# Circuit lifecycle
# =============================================================================


class CircuitCompilationError(BlindBidError):
    """The circuit does not fit the trim size or the public parameters."""


class ProofGenerationError(BlindBidError):
    """The witness does not satisfy the constraint system."""
