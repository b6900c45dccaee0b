from decimal import ROUND_HALF_UP, Decimal

from atm_locator.services.geo import Coordinate

_TWO_PLACES = Decimal("0.01")


def _fixed2(value: float) -> str:
    # Exact binary value, ties away from zero; never scientific notation.
    text = format(Decimal(value).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP), "f")
    return "0.00" if text == "-0.00" else text


def get_cache_key(coordinate: Coordinate) -> str:
    # 2 decimal places groups requests into cells of ~0.69 sq. miles at worst
    return f"{_fixed2(coordinate.latitude)}_{_fixed2(coordinate.longitude)}"
