"""Unified validators for wallet addresses, referral codes and USD amounts."""

import re
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation

from loguru import logger
from web3 import Web3

from affiliate.config.constants import (
    MAX_USD_AMOUNT,
    MONEY_QUANT,
    REFERRAL_CODE_MAX_LENGTH,
    REFERRAL_CODE_MIN_LENGTH,
    TX_HASH_MAX_LENGTH,
    WALLET_ADDRESS_LENGTH,
)
from affiliate.utils.exceptions import InvalidAddress, InvalidAmount

WALLET_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
REFERRAL_CODE_PATTERN = re.compile(
    rf"^[A-Z0-9]{{{REFERRAL_CODE_MIN_LENGTH},{REFERRAL_CODE_MAX_LENGTH}}}$"
)


def validate_wallet_address(address: str) -> tuple[bool, str | None]:
    """
    Validate wallet address format.

    Args:
        address: Wallet address to validate

    Returns:
        Tuple of (is_valid, error_message)
        - (True, None) if valid
        - (False, error_message) if invalid

    Examples:
        >>> validate_wallet_address("0x1234567890123456789012345678901234567890")
        (True, None)
        >>> validate_wallet_address("invalid")
        (False, 'Address must start with 0x')
    """
    if not address or not isinstance(address, str):
        return False, "Address is empty"

    address = address.strip()

    if not address:
        return False, "Address is empty"

    if not address.startswith("0x"):
        return False, "Address must start with 0x"

    if len(address) != WALLET_ADDRESS_LENGTH:
        return False, f"Address must be {WALLET_ADDRESS_LENGTH} characters"

    if not WALLET_PATTERN.match(address):
        return False, "Invalid address format"

    # Checksum-agnostic: lowercase first so mixed-case input is not rejected
    try:
        Web3.to_checksum_address(address.lower())
        return True, None
    except (ValueError, TypeError) as e:
        logger.debug(f"Address validation failed for {address}: {e}")
        return False, "Invalid address format"


def normalize_wallet_address(address: str) -> str:
    """
    Normalize wallet address to lowercase hex.

    Args:
        address: Wallet address in any case

    Returns:
        Lowercase address

    Raises:
        InvalidAddress: If address is invalid
    """
    is_valid, error = validate_wallet_address(address)
    if not is_valid:
        raise InvalidAddress(f"Invalid wallet address: {error}")

    return address.strip().lower()


def normalize_referral_code(code: str) -> str | None:
    """
    Normalize referral code to uppercase.

    Args:
        code: Referral code in any case

    Returns:
        Uppercase code, or None if it can never be a valid code
    """
    if not code or not isinstance(code, str):
        return None

    normalized = code.strip().upper()
    if not REFERRAL_CODE_PATTERN.match(normalized):
        return None

    return normalized


def parse_usd_amount(
    amount: Decimal | float | int | str,
    allow_zero: bool = True,
) -> Decimal:
    """
    Parse a USD amount into a Decimal quantized to 8 decimal places.

    Args:
        amount: Amount as Decimal, number or string
        allow_zero: Whether 0 is accepted

    Returns:
        Quantized Decimal

    Raises:
        InvalidAmount: If negative, non-finite, unparsable, above
            MAX_USD_AMOUNT, or zero when zero is not allowed
    """
    if isinstance(amount, bool):
        raise InvalidAmount("Amount must be a number")

    try:
        if isinstance(amount, float):
            # repr round-trips the shortest decimal form of the float
            value = Decimal(repr(amount))
        elif isinstance(amount, str):
            value = Decimal(amount.strip().replace(",", "."))
        else:
            value = Decimal(amount)
    except (InvalidOperation, ValueError, TypeError) as e:
        raise InvalidAmount("Invalid amount format") from e

    if not value.is_finite():
        raise InvalidAmount("Amount must be a finite number")

    if value < 0:
        raise InvalidAmount("Amount must be >= 0")

    if value > MAX_USD_AMOUNT:
        raise InvalidAmount(f"Amount must be <= {MAX_USD_AMOUNT}")

    if value == 0 and not allow_zero:
        raise InvalidAmount("Amount must be > 0")

    try:
        quantized = value.quantize(MONEY_QUANT, rounding=ROUND_HALF_EVEN)
    except InvalidOperation as e:
        raise InvalidAmount("Invalid amount format") from e

    if quantized == 0 and not allow_zero:
        raise InvalidAmount("Amount must be > 0")

    return quantized


def validate_transaction_hash(tx_hash: str) -> bool:
    """
    Validate settlement transaction hash.

    Args:
        tx_hash: Transaction hash

    Returns:
        True if 0x-prefixed hex of at most 66 characters
    """
    if not tx_hash or not isinstance(tx_hash, str):
        return False

    if not tx_hash.startswith("0x") or len(tx_hash) > TX_HASH_MAX_LENGTH:
        return False

    if len(tx_hash) == 2:
        return False

    try:
        int(tx_hash[2:], 16)
        return True
    except ValueError:
        return False
