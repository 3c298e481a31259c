import re

DECIMAL_AMOUNT_PATTERN = re.compile(r"^(\d*)(?:\.(\d*))?$")


def parse_units(amount: str, decimals: int) -> int:
    """
    Converts a human decimal string ("10.5") to the token's
    fixed point integer representation. Exact for any number of digits,
    exponent notation and negative amounts are rejected.
    """
    if not isinstance(amount, str):
        raise ValueError(f"Invalid amount: {amount}")
    match = DECIMAL_AMOUNT_PATTERN.match(amount.strip())
    if match is None:
        raise ValueError(f"Invalid amount: {amount}")
    whole, fraction = match.group(1), match.group(2) or ""
    if not whole and not fraction:
        raise ValueError(f"Invalid amount: {amount}")
    # trailing zeros past the token precision do not change the value
    fraction = fraction.rstrip("0")
    if len(fraction) > decimals:
        raise ValueError(
            f"Amount {amount} has more than {decimals} decimals")
    return int((whole or "0") + fraction.ljust(decimals, "0"))


def format_units(value: int, decimals: int) -> str:
    sign = "-" if value < 0 else ""
    digits = str(abs(value)).rjust(decimals + 1, "0")
    if decimals == 0:
        return sign + digits
    whole, fraction = digits[:-decimals], digits[-decimals:].rstrip("0")
    if not fraction:
        return sign + whole
    return f"{sign}{whole}.{fraction}"
