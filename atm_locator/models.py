"""Record shapes flowing through the proximity query."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Any, Dict

from atm_locator.services.geo import Coordinate


@dataclass(frozen=True)
class RawRecord:
    """One `atms` row as returned by D1; `address` is JSON text."""

    id: str
    name: str
    address: str
    lat: float
    long: float

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "RawRecord":
        return cls(
            id=row["id"],
            name=row["name"],
            address=row["address"],
            lat=float(row["lat"]),
            long=float(row["long"]),
        )

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.long)

    def decode_address(self) -> Dict[str, Any]:
        """Parse the stored address into {street_name, street_number, city, state, zip}."""
        return json.loads(self.address)


@dataclass(frozen=True)
class NearbyRecord:
    id: str
    name: str
    address: Dict[str, Any]
    latitude: float
    longitude: float
    distance: float

    @classmethod
    def from_raw(cls, raw: RawRecord, distance: float, address: Dict[str, Any]) -> "NearbyRecord":
        return cls(
            id=raw.id,
            name=raw.name,
            address=address,
            latitude=raw.lat,
            longitude=raw.long,
            distance=distance,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NearbyRecord":
        return cls(
            id=data["id"],
            name=data["name"],
            address=data["address"],
            latitude=data["latitude"],
            longitude=data["longitude"],
            distance=data["distance"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
