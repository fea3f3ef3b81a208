"""Number parsing utilities for prices, quantities and money amounts."""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal('0.01')


def parse_decimal(value, field: str = 'value') -> Decimal:
    """
    Parse a price or amount (str, int, float or Decimal) to Decimal.

    Floats go through ``str`` first so 0.1 stays 0.1 instead of its binary
    expansion. Strings may use a comma as the decimal separator.

    Raises:
        ValueError: if the value is empty, not a number, or not finite.
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f'Invalid {field}')

    if isinstance(value, Decimal):
        number = value
    else:
        cleaned = str(value).strip().replace(',', '.')
        if not cleaned:
            raise ValueError(f'Invalid {field}')
        try:
            number = Decimal(cleaned)
        except (InvalidOperation, ValueError):
            raise ValueError(f'Invalid {field}')

    if not number.is_finite():
        raise ValueError(f'Invalid {field}')
    return number


def parse_quantity(value, field: str = 'quantity') -> int:
    """
    Parse a whole-unit quantity.

    Accepts ints and integral strings/floats ("3", 3.0). Fractions are rejected.

    Raises:
        ValueError: if the value is not a whole number.
    """
    if isinstance(value, bool):
        raise ValueError(f'Invalid {field}')
    if isinstance(value, int):
        return value
    try:
        number = parse_decimal(value, field)
    except ValueError:
        raise ValueError(f'Invalid {field}')
    if number != number.to_integral_value():
        raise ValueError(f'{field.capitalize()} must be a whole number')
    return int(number)


def quantize_money(value: Decimal) -> Decimal:
    """Round a money amount half-up to cents."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
