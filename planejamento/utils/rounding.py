from decimal import Decimal, ROUND_HALF_UP


def round_half_up(value, ndigits=0):
    """Arredonda meio para cima (2.5 -> 3, 0.125 -> 0.13). Com ndigits=0 retorna int."""
    if value is None:
        return None
    quantum = Decimal(1).scaleb(-ndigits)
    result = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    if ndigits == 0:
        return int(result)
    return float(result)
