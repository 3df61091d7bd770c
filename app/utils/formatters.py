"""
Utilidades de formateo para respuestas del POS.
Montos en estilo peruano (S/ 1,234.50).
"""
from decimal import Decimal, InvalidOperation
from typing import Union


def money_pe(value: Union[int, float, Decimal, str, None], symbol: str = 'S/') -> str:
    """
    Formatea un monto con exactamente 2 decimales, coma para miles y punto decimal.

    Examples:
        money_pe(1500) -> "S/ 1,500.00"
        money_pe(Decimal('-12.5')) -> "-S/ 12.50"
        money_pe(None) -> "-"
    """
    if value is None or value == "":
        return "-"

    try:
        num = Decimal(str(value)).quantize(Decimal('0.01'))
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    sign = "-" if num < 0 else ""
    return f"{sign}{symbol} {abs(num):,.2f}"
