"""
Module: ledger_kernel.db.types
Responsibility: Annotated type aliases and utility functions for financial-grade
    column types.  Centralizes precision, rounding, and currency validation so
    that every model and service uses identical definitions.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - ISO 4217 enforcement: validate_currency() rejects any string that is not
      a recognized 3-character currency code.
    - round_money() is the ONLY sanctioned rounding function for monetary
      values.  No floats anywhere in the kernel.

Failure modes:
    - InvalidCurrencyError on an unknown currency code.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from sqlalchemy import Numeric, String

from ledger_kernel.exceptions import InvalidCurrencyError

# 38 digits total, 9 decimal places
Money = Annotated[Decimal, Numeric(38, 9)]

# SQLite hands numerics back as floats; rate digits past this scale are
# float noise.  Native decimal drivers ignore it.
RATE_RETURN_SCALE = 12

# 38 digits total, 18 decimal places for rate calculations
RateNumeric = Numeric(38, 18, decimal_return_scale=RATE_RETURN_SCALE)
Rate = Annotated[Decimal, RateNumeric]

# ISO 4217 currency code (e.g., "USD", "EUR", "GBP")
CurrencyCode = Annotated[str, String(3)]

ShortCode = Annotated[str, String(50)]

LongText = Annotated[str, String(4000)]


MONEY_DECIMAL_PLACES = 9
RATE_DECIMAL_PLACES = 18
MAX_CURRENCY_DECIMAL_PLACES = 8
DEFAULT_ROUNDING = ROUND_HALF_UP


def minor_unit(decimal_places: int) -> Decimal:
    """Smallest representable amount for a currency with the given places.

    Example:
        minor_unit(2) -> Decimal("0.01"); minor_unit(0) -> Decimal("1")
    """
    return Decimal(1).scaleb(-decimal_places)


def round_money(
    value: Decimal,
    decimal_places: int = 2,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    This is the ONLY sanctioned rounding function for monetary values.
    All other code delegates rounding here.

    Args:
        value: The Decimal value to round.
        decimal_places: Number of decimal places to round to.
        rounding: Rounding mode (default: ROUND_HALF_UP).

    Returns:
        Rounded Decimal value.
    """
    return Decimal(value).quantize(minor_unit(decimal_places), rounding=rounding)


# Source: https://www.iso.org/iso-4217-currency-codes.html
ISO_4217_CURRENCIES: frozenset[str] = frozenset({
    "USD", "EUR", "GBP", "JPY", "CHF", "CAD", "AUD", "NZD",
    "AED", "AFN", "ALL", "AMD", "AOA", "ARS", "AWG", "AZN",
    "BAM", "BBD", "BDT", "BGN", "BHD", "BIF", "BMD", "BND", "BOB", "BRL", "BSD", "BTN", "BWP", "BYN", "BZD",
    "CDF", "CLF", "CLP", "CNY", "COP", "CRC", "CUP", "CVE", "CZK",
    "DJF", "DKK", "DOP", "DZD",
    "EGP", "ERN", "ETB",
    "FJD", "FKP",
    "GEL", "GHS", "GIP", "GMD", "GNF", "GTQ", "GYD",
    "HKD", "HNL", "HTG", "HUF",
    "IDR", "ILS", "INR", "IQD", "IRR", "ISK",
    "JMD", "JOD",
    "KES", "KGS", "KHR", "KMF", "KPW", "KRW", "KWD", "KYD", "KZT",
    "LAK", "LBP", "LKR", "LRD", "LSL", "LYD",
    "MAD", "MDL", "MGA", "MKD", "MMK", "MNT", "MOP", "MRU", "MUR", "MVR", "MWK", "MXN", "MYR", "MZN",
    "NAD", "NGN", "NIO", "NOK", "NPR",
    "OMR",
    "PAB", "PEN", "PGK", "PHP", "PKR", "PLN", "PYG",
    "QAR",
    "RON", "RSD", "RUB", "RWF",
    "SAR", "SBD", "SCR", "SDG", "SEK", "SGD", "SHP", "SLE", "SOS", "SRD", "SSP", "STN", "SVC", "SYP", "SZL",
    "THB", "TJS", "TMT", "TND", "TOP", "TRY", "TTD", "TWD", "TZS",
    "UAH", "UGX", "UYU", "UZS",
    "VES", "VND", "VUV",
    "WST",
    "XAF", "XCD", "XOF", "XPF",
    "YER",
    "ZAR", "ZMW", "ZWL",
})


def validate_currency(currency: str) -> str:
    """
    Validate that a currency code is a valid ISO 4217 code.

    Preconditions: currency is a non-empty string.
    Postconditions: Returns the uppercase, trimmed code iff it is a member
        of ISO_4217_CURRENCIES.

    Raises:
        InvalidCurrencyError: If the currency code is not valid.
    """
    if not currency or not isinstance(currency, str):
        raise InvalidCurrencyError(str(currency))

    normalized = currency.upper().strip()

    if len(normalized) != 3 or normalized not in ISO_4217_CURRENCIES:
        raise InvalidCurrencyError(currency)

    return normalized


def is_valid_currency(currency: str) -> bool:
    """Check if a currency code is a valid ISO 4217 code."""
    try:
        validate_currency(currency)
        return True
    except InvalidCurrencyError:
        return False
