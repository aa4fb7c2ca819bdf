"""Unit tests for validation utilities."""

from decimal import Decimal

import pytest

from affiliate.config.constants import MAX_USD_AMOUNT
from affiliate.utils.exceptions import InvalidAddress, InvalidAmount
from affiliate.validators import (
    normalize_referral_code,
    normalize_wallet_address,
    parse_usd_amount,
    validate_transaction_hash,
    validate_wallet_address,
)


class TestWalletAddressValidation:
    """Tests for wallet address validation."""

    def test_empty_address_invalid(self):
        """Empty address should be invalid."""
        is_valid, error = validate_wallet_address("")
        assert not is_valid
        assert error == "Address is empty"

    def test_short_address_invalid(self):
        """Short address should be invalid."""
        is_valid, _ = validate_wallet_address("0x1234")
        assert not is_valid

    def test_no_0x_prefix_invalid(self):
        """Address without 0x prefix should be invalid."""
        is_valid, error = validate_wallet_address("1" * 42)
        assert not is_valid
        assert error == "Address must start with 0x"

    def test_invalid_hex_characters(self):
        """Address with non-hex characters should be invalid."""
        is_valid, _ = validate_wallet_address("0x" + "z" * 40)
        assert not is_valid

    def test_too_long_address(self):
        """Address longer than 42 characters should be invalid."""
        is_valid, _ = validate_wallet_address("0x" + "1" * 41)
        assert not is_valid

    def test_non_string_invalid(self):
        """Non-string input should be invalid, not raise."""
        is_valid, _ = validate_wallet_address(None)
        assert not is_valid

    @pytest.mark.parametrize(
        "address",
        [
            "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb0",
            "0x0000000000000000000000000000000000000000",
            "0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF",
            "0xaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa",
        ],
    )
    def test_valid_addresses(self, address):
        """Mixed, upper and lower case addresses pass regardless of checksum."""
        is_valid, error = validate_wallet_address(address)
        assert is_valid
        assert error is None


class TestNormalizeWalletAddress:
    """Tests for wallet normalization."""

    def test_lowercases(self):
        """Normalized wallet is lowercase."""
        result = normalize_wallet_address("0xABCDEF1234ABCDEF1234ABCDEF1234ABCDEF1234")
        assert result == "0xabcdef1234abcdef1234abcdef1234abcdef1234"

    def test_strips_whitespace(self):
        """Surrounding whitespace is ignored."""
        result = normalize_wallet_address("  0x" + "A" * 40 + " ")
        assert result == "0x" + "a" * 40

    def test_invalid_raises(self):
        """Malformed wallet raises InvalidAddress."""
        with pytest.raises(InvalidAddress):
            normalize_wallet_address("not-a-wallet")


class TestNormalizeReferralCode:
    """Tests for referral code normalization."""

    def test_uppercases(self):
        """Codes are case-insensitive."""
        assert normalize_referral_code("abcdef12") == "ABCDEF12"

    def test_suffixed_code_accepted(self):
        """Collision suffixes keep the code valid."""
        assert normalize_referral_code("abcdef12ab") == "ABCDEF12AB"

    @pytest.mark.parametrize(
        "code",
        ["", "SHORT", "A" * 21, "ABCD-123", "ABCD 1234", None],
    )
    def test_malformed_returns_none(self, code):
        """Codes that can never resolve normalize to None."""
        assert normalize_referral_code(code) is None


class TestParseUsdAmount:
    """Tests for USD amount parsing."""

    @pytest.mark.parametrize(
        "amount,expected",
        [
            (1000, Decimal("1000")),
            ("10.5", Decimal("10.5")),
            (Decimal("0.1"), Decimal("0.1")),
            (0.1, Decimal("0.1")),
            ("0", Decimal("0")),
            ("1,25", Decimal("1.25")),
        ],
    )
    def test_valid_amounts(self, amount, expected):
        """Valid amounts parse to exact decimals."""
        assert parse_usd_amount(amount) == expected

    def test_quantized_to_eight_places(self):
        """Amounts are rounded half-even to 8 decimal places."""
        assert parse_usd_amount("1.123456785") == Decimal("1.12345678")
        assert parse_usd_amount("1.123456775") == Decimal("1.12345678")

    @pytest.mark.parametrize(
        "amount",
        ["-1", -0.01, "NaN", "Infinity", "-inf", float("inf"), float("nan"), "abc", True],
    )
    def test_invalid_amounts(self, amount):
        """Negative, non-finite and unparsable amounts raise InvalidAmount."""
        with pytest.raises(InvalidAmount):
            parse_usd_amount(amount)

    def test_zero_rejected_when_disallowed(self):
        """Zero can be rejected (payout requests)."""
        with pytest.raises(InvalidAmount):
            parse_usd_amount("0", allow_zero=False)

    def test_dust_rejected_when_zero_disallowed(self):
        """Amounts that round to zero count as zero."""
        with pytest.raises(InvalidAmount):
            parse_usd_amount("0.000000001", allow_zero=False)

    @pytest.mark.parametrize(
        "amount",
        ["1e30", 1e30, Decimal("1e30"), "1e400", MAX_USD_AMOUNT + Decimal("0.00000001")],
    )
    def test_amounts_above_column_range_rejected(self, amount):
        """Amounts beyond MAX_USD_AMOUNT raise InvalidAmount, not InvalidOperation."""
        with pytest.raises(InvalidAmount):
            parse_usd_amount(amount)

    def test_maximum_amount_accepted(self):
        """MAX_USD_AMOUNT itself is a valid amount."""
        assert parse_usd_amount(str(MAX_USD_AMOUNT)) == MAX_USD_AMOUNT


class TestTransactionHashValidation:
    """Tests for settlement tx hash validation."""

    def test_valid_hash(self, sample_transaction_hash):
        """Full 66-char hash is valid."""
        assert validate_transaction_hash(sample_transaction_hash)

    @pytest.mark.parametrize(
        "tx_hash",
        ["", "0x", "1234", "0xzz", "0x" + "a" * 65, None],
    )
    def test_invalid_hashes(self, tx_hash):
        """Malformed hashes are rejected."""
        assert not validate_transaction_hash(tx_hash)
