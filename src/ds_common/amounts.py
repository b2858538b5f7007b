"""Integer amount utilities.

All amounts are int in the asset's smallest unit. No float, no Decimal in
settlement logic. Decimals are only applied when rendering for display.
"""

from src.ds_common.errors import InvalidAmountError

# uint256 ceiling; fits the NUMERIC(78,0) columns
MAX_AMOUNT = 2**256 - 1


def validate_amount(amount: int) -> int:
    """Validate a value-moving amount: must be an int in [1, MAX_AMOUNT]."""
    # bool is an int subclass; True must not pass as 1 unit
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmountError(amount)
    if amount <= 0 or amount > MAX_AMOUNT:
        raise InvalidAmountError(amount)
    return amount


def format_units(amount: int, decimals: int) -> str:
    """Render a smallest-unit amount with `decimals` places: (1500000, 6) -> '1.5'.

    Trailing zeros of the fraction are dropped; a zero fraction renders as the
    integer part only. Negative amounts keep their sign.
    """
    if decimals == 0:
        return str(amount)
    sign = "-" if amount < 0 else ""
    abs_amount = -amount if amount < 0 else amount
    whole, frac = divmod(abs_amount, 10**decimals)
    frac_str = f"{frac:0{decimals}d}".rstrip("0")
    if not frac_str:
        return f"{sign}{whole}"
    return f"{sign}{whole}.{frac_str}"
