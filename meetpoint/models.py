"""Value types passed between the maps client and the meeting point finder."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

UNKNOWN_DRIVE_TIME = "Unknown"


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float

    def as_param(self) -> str:
        """Render as the ``lat,lng`` string the web services expect"""
        return f"{self.lat},{self.lng}"

    def to_dict(self) -> Dict:
        return {'lat': self.lat, 'lng': self.lng}


@dataclass(frozen=True)
class Midpoint:
    coordinate: Coordinate
    search_radius_meters: int


@dataclass(frozen=True)
class Venue:
    """A candidate place near the midpoint, plus drive times once enriched"""
    name: str
    address: str
    rating: float = 0.0
    rating_count: int = 0
    price_level: Optional[int] = None
    coordinate: Optional[Coordinate] = None
    place_id: Optional[str] = None
    photo_references: List[str] = field(default_factory=list)
    drive_time_from_a: Optional[str] = None
    drive_time_from_b: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            'name': self.name,
            'address': self.address,
            'rating': self.rating,
            'user_ratings_total': self.rating_count,
            'price_level': self.price_level,
            'location': self.coordinate.to_dict() if self.coordinate else None,
            'place_id': self.place_id,
            'photos': list(self.photo_references),
            'drive_times': {
                'from_a': self.drive_time_from_a,
                'from_b': self.drive_time_from_b,
            },
        }


@dataclass(frozen=True)
class DriveTimes:
    """One distance-matrix row: a formatted duration per destination, in order"""
    origin: str
    durations: List[str]

    @classmethod
    def unknown(cls, origin: str, count: int) -> 'DriveTimes':
        return cls(origin=origin, durations=[UNKNOWN_DRIVE_TIME] * count)
