"""Price formatting for client-facing menu data."""

from decimal import Decimal

DEFAULT_CURRENCY = "USD"

# en-US display symbols for the currencies Square merchants commonly use
CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CAD": "CA$",
    "AUD": "A$",
    "MXN": "MX$",
    "CNY": "CN¥",
    "INR": "₹",
    "KRW": "₩",
}

ZERO_DECIMAL_CURRENCIES = frozenset({"JPY", "KRW", "VND", "CLP", "ISK"})


def format_price(amount: int, currency: str | None = DEFAULT_CURRENCY) -> str:
    """Format an amount in minor currency units for display.

    Args:
        amount: Amount in the currency's smallest unit (e.g. cents)
        currency: ISO 4217 code, USD when not given

    Returns:
        str: Display string such as ``"$12.50"`` or ``"¥350"``
    """
    code = (currency or DEFAULT_CURRENCY).upper()
    exponent = 0 if code in ZERO_DECIMAL_CURRENCIES else 2
    value = abs(Decimal(amount).scaleb(-exponent))
    number = f"{value:,.{exponent}f}"

    symbol = CURRENCY_SYMBOLS.get(code)
    text = f"{symbol}{number}" if symbol else f"{code} {number}"
    return f"-{text}" if amount < 0 else text
