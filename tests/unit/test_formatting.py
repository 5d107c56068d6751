"""Unit tests for price formatting."""

import pytest

from restaurant_menu_service.formatting import format_price


@pytest.mark.unit
class TestFormatPrice:
    """Test suite for format_price."""

    @pytest.mark.parametrize(
        ("amount", "currency", "expected"),
        [
            (350, "USD", "$3.50"),
            (0, "USD", "$0.00"),
            (5, "USD", "$0.05"),
            (123456, "USD", "$1,234.56"),
            (1250, "EUR", "€12.50"),
            (999, "GBP", "£9.99"),
            (350, "JPY", "¥350"),
            (1500, "CAD", "CA$15.00"),
            (100, "usd", "$1.00"),
            (100, "CHF", "CHF\u00a01.00"),
            (-250, "USD", "-$2.50"),
        ],
    )
    def test_format(self, amount: int, currency: str, expected: str) -> None:
        """Test formatting across currencies and edge amounts."""
        assert format_price(amount, currency) == expected

    def test_defaults_to_usd(self) -> None:
        """Test a missing currency is formatted as USD."""
        assert format_price(1999) == "$19.99"
        assert format_price(1999, None) == "$19.99"
