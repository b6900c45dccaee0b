import math
from dataclasses import dataclass

EARTH_RADIUS_MILES = 3958.8


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, point: Coordinate) -> bool:
        return (
            self.min_lat <= point.latitude <= self.max_lat
            and self.min_lng <= point.longitude <= self.max_lng
        )


def haversine(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in miles between two lat/lng points."""
    phi1, phi2 = math.radians(a.latitude), math.radians(b.latitude)
    d_phi = math.radians(b.latitude - a.latitude)
    d_lambda = math.radians(b.longitude - a.longitude)
    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # rounding can push h just past 1 for near-antipodal points
    h = min(1.0, h)
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_MILES * c


def get_bounding_box(center: Coordinate, radius_miles: float) -> BoundingBox:
    """Lat/lng rectangle enclosing the circle of radius_miles around center.

    The longitude delta grows without bound as the latitude approaches +/-90,
    and boxes crossing the antimeridian are not wrapped.
    """
    lat_delta = math.degrees(radius_miles / EARTH_RADIUS_MILES)
    lng_delta = math.degrees(
        radius_miles / (EARTH_RADIUS_MILES * math.cos(math.radians(center.latitude)))
    )
    return BoundingBox(
        min_lat=center.latitude - lat_delta,
        max_lat=center.latitude + lat_delta,
        min_lng=center.longitude - lng_delta,
        max_lng=center.longitude + lng_delta,
    )
