"""Decoders for money and quantity tokens printed on the statements.

Money tokens look like ``$1,234.56``, ``-$0.50`` or ``US$16.38``. The
currency marker is mandatory: a bare number where money is expected is a
parse failure, never a silently assumed amount.
"""

import re
from decimal import Decimal, InvalidOperation

from ..exceptions import LineParseError

# Shared regex fragments used to build the line grammars.
NUMBER = r"(?:\d+,)*\d+(?:\.\d+)?"
MONEY = rf"-?(?:US)?-?\${NUMBER}"
QUANTITY = rf"-?{NUMBER}"

_MONEY_TOKEN = re.compile(
    r"(?P<sign>-)?(?P<us>US)?(?P<inner_sign>-)?\$(?P<number>(?:\d+,)*\d+(?:\.\d+)?)"
)
_QUANTITY_TOKEN = re.compile(r"(?P<sign>-)?(?P<number>(?:\d+,)*\d+(?:\.\d+)?)")


def _to_decimal(number: str, token: str) -> Decimal:
    try:
        return Decimal(number.replace(",", ""))
    except InvalidOperation as e:
        raise LineParseError(f"Invalid number: '{token}'", line=token) from e


def parse_money(token: str) -> Decimal:
    """
    Parse a money token into an exact Decimal.

    The scale printed on the statement is preserved (``$1.5`` stays
    ``Decimal("1.5")``). A leading minus may sit before or after the ``US``
    prefix.

    Args:
        token: Money token such as ``$1,234.56`` or ``-US$2.46``

    Returns:
        Decimal amount

    Raises:
        LineParseError: If the token is blank or has no currency marker
    """
    if token is None or not token.strip():
        raise LineParseError("Missing money amount", line=token)

    stripped = token.strip()
    match = _MONEY_TOKEN.fullmatch(stripped)
    if not match:
        raise LineParseError(f"Not a money amount: '{stripped}'", line=stripped)

    amount = _to_decimal(match.group("number"), stripped)
    if match.group("sign") or match.group("inner_sign"):
        amount = -amount
    return amount


def parse_decimal(token: str) -> Decimal:
    """Parse a quantity token (thousands separator allowed, no currency)."""
    if token is None or not token.strip():
        raise LineParseError("Missing quantity", line=token)

    stripped = token.strip()
    match = _QUANTITY_TOKEN.fullmatch(stripped)
    if not match:
        raise LineParseError(f"Not a quantity: '{stripped}'", line=stripped)

    amount = _to_decimal(match.group("number"), stripped)
    return -amount if match.group("sign") else amount


def parse_price(token: str) -> Decimal:
    """Parse a trade price, which the broker prints with or without ``$``."""
    if token is not None and "$" in token:
        return parse_money(token)
    return parse_decimal(token)
