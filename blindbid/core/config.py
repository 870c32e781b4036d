"""
Protocol configuration parameters for blindbid.

Defines the bid value bounds and the circuit shape parameters. A config is
an immutable value passed explicitly to ``Bid.new`` and ``BlindBidCircuit``
so networks and tests can use their own bounds.
"""

import os
from pathlib import Path
from typing import Optional, Union

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, model_validator

# The minimum amount a user is permitted to bid.
V_RAW_MIN = 50_000
# The maximum amount a user is permitted to bid.
V_RAW_MAX = 250_000

ENV_PREFIX = "BLINDBID_"

# Values and windows must fit the 64-bit range gadgets of the circuit
MAX_U64 = 2**64 - 1


def _is_power_of_two(n: int) -> bool:
    return n > 0 and n & (n - 1) == 0


class BlindBidConfig(BaseModel):
    """Protocol-wide configuration parameters"""

    model_config = ConfigDict(frozen=True)

    # Bid value bounds (inclusive)
    v_min: int = Field(default=V_RAW_MIN, ge=0, le=MAX_U64)
    v_max: int = Field(default=V_RAW_MAX, ge=0, le=MAX_U64)

    # Depth of the bid tree (2^depth leaves)
    tree_depth: int = Field(default=17, ge=1, le=32)

    # Circuit capacity and public parameter size (both powers of two)
    trim_size: int = 1 << 15
    public_parameters_size: int = 1 << 17

    @model_validator(mode="after")
    def _check_consistency(self) -> "BlindBidConfig":
        if self.v_min > self.v_max:
            raise ValueError(f"v_min ({self.v_min}) must not exceed v_max ({self.v_max})")
        if not _is_power_of_two(self.trim_size):
            raise ValueError(f"trim_size must be a power of two, got {self.trim_size}")
        if not _is_power_of_two(self.public_parameters_size):
            raise ValueError(f"public_parameters_size must be a power of two, got {self.public_parameters_size}")
        # Blinded polynomials reach degree trim_size + 2
        if self.trim_size >= self.public_parameters_size:
            raise ValueError("trim_size must be smaller than public_parameters_size")
        return self


# Global default instance
DEFAULT_CONFIG = BlindBidConfig()


def load_config(config_path: Optional[Union[str, Path]] = None) -> BlindBidConfig:
    """
    Load configuration from a dotenv file and the environment.

    Keys are ``BLINDBID_<FIELD>`` (e.g. ``BLINDBID_V_MIN=1000``). Environment
    variables take precedence over the file.

    Args:
        config_path: Optional path to a dotenv file

    Returns:
        BlindBidConfig instance

    Raises:
        pydantic.ValidationError: If a value is malformed or inconsistent
    """
    values = {}
    if config_path:
        values.update(dotenv_values(config_path))
    values.update(os.environ)

    fields = {
        key[len(ENV_PREFIX):].lower(): value
        for key, value in values.items()
        if key.startswith(ENV_PREFIX) and value is not None
    }
    return BlindBidConfig(**fields)
