"""Presentation helpers: currency catalog, number/currency/date formatting."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from invoiceforge.config import FormattingConfig, get_config


@dataclass(frozen=True)
class CurrencyInfo:
    code: str
    name: str
    symbol: str
    symbol_position: str = "before"  # before | after


CURRENCIES: tuple[CurrencyInfo, ...] = (
    CurrencyInfo("USD", "US Dollar", "$"),
    CurrencyInfo("EUR", "Euro", "€"),
    CurrencyInfo("GBP", "British Pound", "£"),
    CurrencyInfo("JPY", "Japanese Yen", "¥"),
    CurrencyInfo("CNY", "Chinese Yuan", "¥"),
    CurrencyInfo("INR", "Indian Rupee", "₹"),
    CurrencyInfo("AUD", "Australian Dollar", "A$"),
    CurrencyInfo("CAD", "Canadian Dollar", "C$"),
    CurrencyInfo("CHF", "Swiss Franc", "CHF"),
    CurrencyInfo("HKD", "Hong Kong Dollar", "HK$"),
    CurrencyInfo("SGD", "Singapore Dollar", "S$"),
    CurrencyInfo("SEK", "Swedish Krona", "kr", "after"),
    CurrencyInfo("KRW", "South Korean Won", "₩"),
    CurrencyInfo("MXN", "Mexican Peso", "$"),
    CurrencyInfo("NZD", "New Zealand Dollar", "NZ$"),
    CurrencyInfo("BRL", "Brazilian Real", "R$"),
    CurrencyInfo("ZAR", "South African Rand", "R"),
    CurrencyInfo("RUB", "Russian Ruble", "₽", "after"),
    CurrencyInfo("AED", "UAE Dirham", "AED"),
    CurrencyInfo("SAR", "Saudi Riyal", "SAR"),
    CurrencyInfo("THB", "Thai Baht", "฿"),
    CurrencyInfo("IDR", "Indonesian Rupiah", "Rp"),
    CurrencyInfo("MYR", "Malaysian Ringgit", "RM"),
    CurrencyInfo("PHP", "Philippine Peso", "₱"),
    CurrencyInfo("PLN", "Polish Zloty", "zł", "after"),
    CurrencyInfo("TRY", "Turkish Lira", "₺"),
    CurrencyInfo("CZK", "Czech Koruna", "Kč", "after"),
    CurrencyInfo("ILS", "Israeli Shekel", "₪"),
    CurrencyInfo("CLP", "Chilean Peso", "$"),
    CurrencyInfo("COP", "Colombian Peso", "$"),
    CurrencyInfo("ARS", "Argentine Peso", "$"),
    CurrencyInfo("VND", "Vietnamese Dong", "₫", "after"),
    CurrencyInfo("EGP", "Egyptian Pound", "E£"),
    CurrencyInfo("NGN", "Nigerian Naira", "₦"),
    CurrencyInfo("PKR", "Pakistani Rupee", "Rs"),
    CurrencyInfo("BDT", "Bangladeshi Taka", "৳"),
    CurrencyInfo("UAH", "Ukrainian Hryvnia", "₴"),
    CurrencyInfo("NOK", "Norwegian Krone", "kr", "after"),
    CurrencyInfo("DKK", "Danish Krone", "kr", "after"),
    CurrencyInfo("HUF", "Hungarian Forint", "Ft", "after"),
)

_BY_CODE = {c.code: c for c in CURRENCIES}
_BY_SYMBOL: dict[str, str] = {}
for _c in CURRENCIES:
    # Shared symbols ($, kr, ¥) resolve to the first listed currency
    _BY_SYMBOL.setdefault(_c.symbol.lower(), _c.code)

_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def get_currency_info(code: str) -> CurrencyInfo | None:
    return _BY_CODE.get(code.upper())


def get_currency_symbol(code: str) -> str:
    """Display symbol for an ISO code; unknown codes render as the code."""
    info = get_currency_info(code)
    return info.symbol if info else code


def currency_code_for_symbol(symbol: str) -> str | None:
    """ISO code for a currency symbol such as ``€`` or ``R$``."""
    return _BY_SYMBOL.get(symbol.strip().lower())


def format_number(value: Decimal | float | int, config: FormattingConfig | None = None) -> str:
    """Round half-up and apply thousands/decimal separators.

    >>> format_number(Decimal("1234567.891"))
    '1,234,567.89'
    """
    config = config or get_config().formatting
    places = config.decimal_places
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)

    sign = "-" if rounded < 0 else ""
    int_part, _, dec_part = f"{abs(rounded):f}".partition(".")
    int_part = f"{int(int_part):,}".replace(",", config.thousands_separator)

    if places > 0 and dec_part:
        return f"{sign}{int_part}{config.decimal_separator}{dec_part}"
    return f"{sign}{int_part}"


def format_currency(
    value: Decimal | float | int,
    currency: str = "USD",
    config: FormattingConfig | None = None,
) -> str:
    """Format an amount with its currency symbol on the configured side."""
    number = format_number(value, config)
    info = get_currency_info(currency)
    symbol = info.symbol if info else currency
    if info is None or info.symbol_position == "before":
        return f"{symbol}{number}"
    return f"{number} {symbol}"


def format_date(value: date | datetime, date_format: str | None = None) -> str:
    """Render a date in one of the supported layouts (default MM/DD/YYYY)."""
    date_format = date_format or get_config().formatting.date_format
    day = f"{value.day:02d}"
    month = f"{value.month:02d}"
    month_name = _MONTHS[value.month - 1]

    if date_format == "DD/MM/YYYY":
        return f"{day}/{month}/{value.year}"
    if date_format == "YYYY-MM-DD":
        return f"{value.year}-{month}-{day}"
    if date_format == "DD MMM YYYY":
        return f"{day} {month_name[:3]} {value.year}"
    if date_format == "MMMM DD, YYYY":
        return f"{month_name} {day}, {value.year}"
    return f"{month}/{day}/{value.year}"


def sanitize_filename(name: str) -> str:
    """Make a string safe for use as a file name (max 200 chars)."""
    name = re.sub(r'[<>:"/\\|?*]', "_", name)
    name = re.sub(r"\s+", "_", name)
    name = re.sub(r"_+", "_", name)
    return name[:200]
