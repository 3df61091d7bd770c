"""Number parsing utilities for POS payloads (Peruvian format: 1,234.56)."""
import re
from decimal import Decimal, InvalidOperation

PE_NUMBER_PATTERN = re.compile(r"^(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?$")


def parse_pe_amount(value) -> Decimal:
    """
    Parse a monetary value to Decimal.

    Accepts JSON numbers or strings in Peruvian format:
    - Thousands separator: comma (,)
    - Decimal separator: dot (.)
    - Optional "S/" prefix
    - Empty string counts as 0 (blank POS input)

    Raises:
        ValueError: if the value is invalid, negative, NaN or infinite.
    """
    if value is None or isinstance(value, bool):
        raise ValueError('Formato inválido. Usá 1,234.56')

    if isinstance(value, (int, float, Decimal)):
        try:
            decimal_value = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise ValueError('Formato inválido. Usá 1,234.56')
    else:
        cleaned = str(value).strip()
        if cleaned.upper().startswith('S/'):
            cleaned = cleaned[2:].strip()
        if not cleaned:
            return Decimal('0')
        if not PE_NUMBER_PATTERN.match(cleaned):
            raise ValueError('Formato inválido. Usá 1,234.56')
        decimal_value = Decimal(cleaned.replace(',', ''))

    if decimal_value.is_nan() or decimal_value.is_infinite():
        raise ValueError('Formato inválido. Usá 1,234.56')

    if decimal_value < 0:
        raise ValueError('El valor no puede ser negativo')

    return decimal_value


def parse_quantity(value) -> int:
    """
    Parse a unit quantity. Garments are sold by the unit, so only whole
    numbers >= 1 are valid ("2" and 2.0 are accepted, 1.5 is not).

    Raises:
        ValueError: if the value is not a positive whole number.
    """
    if value is None or isinstance(value, bool):
        raise ValueError('La cantidad debe ser un número entero')

    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError('La cantidad debe ser un número entero')

    if not number.is_finite() or number != number.to_integral_value():
        raise ValueError('La cantidad debe ser un número entero')

    if number < 1:
        raise ValueError('La cantidad debe ser mayor a 0')

    return int(number)
