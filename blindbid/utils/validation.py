"""
Input Validation - Bounds and format checks for external inputs.

Used by the bid constructor, ``Bid.from_dict`` and the CLI to reject:
- Integers outside their protocol width
- Malformed hex strings
"""

from typing import Any, Optional, Tuple

from blindbid.crypto.poseidon import FIELD_PRIME

# =============================================================================
# Constants
# =============================================================================

MAX_U64 = 2**64 - 1


# =============================================================================
# Validation Functions
# =============================================================================


def validate_integer(
    value: Any,
    name: str,
    min_val: int = 0,
    max_val: int = MAX_U64,
) -> Tuple[bool, str]:
    """
    Validate integer within bounds.

    Args:
        value: Value to validate
        name: Field name for errors
        min_val: Minimum allowed value
        max_val: Maximum allowed value

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(value, int) or isinstance(value, bool):
        return False, f"{name} must be int, got {type(value).__name__}"

    if value < min_val:
        return False, f"{name} must be >= {min_val}, got {value}"

    if value > max_val:
        return False, f"{name} must be <= {max_val}, got {value}"

    return True, ""


def validate_u64(value: Any, name: str) -> Tuple[bool, str]:
    """Validate an unsigned 64-bit integer (rounds, steps, positions)."""
    return validate_integer(value, name, 0, MAX_U64)


def validate_field_element(value: Any, name: str = "field_element") -> Tuple[bool, str]:
    """Validate a field element (< FIELD_PRIME)."""
    return validate_integer(value, name, 0, FIELD_PRIME - 1)


def validate_hex_string(value: Any, name: str, expected_bytes: Optional[int] = None) -> Tuple[bool, str]:
    """
    Validate a hex string (with or without 0x prefix).

    Args:
        value: Value to validate
        name: Field name
        expected_bytes: Expected byte length when decoded

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, f"{name} must be str, got {type(value).__name__}"

    hex_str = value[2:] if value.startswith("0x") else value

    if len(hex_str) % 2 != 0:
        return False, f"{name} has odd length, invalid hex"

    try:
        bytes.fromhex(hex_str)
    except ValueError:
        return False, f"{name} contains invalid hex characters"

    if expected_bytes is not None:
        actual_bytes = len(hex_str) // 2
        if actual_bytes != expected_bytes:
            return False, f"{name} must be {expected_bytes} bytes, got {actual_bytes}"

    return True, ""


__all__ = [
    "MAX_U64",
    "validate_integer",
    "validate_u64",
    "validate_field_element",
    "validate_hex_string",
]
