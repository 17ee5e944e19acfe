"""
Meeting point search: geocode two addresses, take their midpoint and list the
venues around it with drive times from both sides.
"""

import asyncio
import dataclasses
import logging
from dataclasses import dataclass
from typing import List, Optional

from geopy.distance import geodesic

from .exceptions import InvalidInputError, ProviderError, ProviderTimeoutError
from .maps_service import GoogleMapsService
from .models import Coordinate, DriveTimes, Midpoint, Venue

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "restaurant"


def validate_address(address: Optional[str]) -> str:
    if not isinstance(address, str) or not address.strip():
        raise InvalidInputError("Please enter a valid address")
    return address.strip()


async def _gather_or_cancel(*aws):
    """Like asyncio.gather, but cancel the remaining branches once one fails"""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def _run_sync(coro):
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class GeoLocator:
    """Resolves free-text addresses to coordinates"""

    def __init__(self, maps_service: GoogleMapsService):
        self.maps_service = maps_service

    def resolve(self, address: str) -> Coordinate:
        return self.maps_service.geocode_address(validate_address(address))

    async def resolve_async(self, address: str) -> Coordinate:
        return await self.maps_service.geocode_address_async(validate_address(address))


class MidpointCalculator:
    """Arithmetic mean of two coordinates with a fixed search radius.

    Latitude and longitude are averaged independently, so pairs straddling the
    antimeridian or close to a pole get a midpoint that is geographically off.
    """

    def __init__(self, search_radius_meters: int = 1000):
        self.search_radius_meters = search_radius_meters

    def compute(self, a: Coordinate, b: Coordinate) -> Midpoint:
        return Midpoint(
            coordinate=Coordinate(lat=(a.lat + b.lat) / 2, lng=(a.lng + b.lng) / 2),
            search_radius_meters=self.search_radius_meters,
        )


class VenueRanker:
    """Finds venues around a midpoint and annotates them with drive times.

    Venues keep the order the places provider returned them in. A failed
    places search is fatal; a failed drive-time lookup only turns that
    origin's times into "Unknown".
    """

    def __init__(self, maps_service: GoogleMapsService, travel_mode: Optional[str] = None):
        self.maps_service = maps_service
        self.travel_mode = travel_mode or maps_service.settings.travel_mode

    def find_and_rank(self, midpoint: Midpoint, category: str, origin_a: str, origin_b: str) -> List[Venue]:
        return _run_sync(self.find_and_rank_async(midpoint, category, origin_a, origin_b))

    async def find_and_rank_async(self, midpoint: Midpoint, category: str, origin_a: str, origin_b: str) -> List[Venue]:
        venues = await self.maps_service.find_places_nearby_async(
            midpoint.coordinate, midpoint.search_radius_meters, category
        )
        logger.info(
            "Places search found %d '%s' venue(s) within %dm of (%s)",
            len(venues), category, midpoint.search_radius_meters, midpoint.coordinate.as_param(),
        )
        if not venues:
            return []

        destinations = [
            venue.address or (venue.coordinate.as_param() if venue.coordinate else venue.name)
            for venue in venues
        ]
        from_a, from_b = await asyncio.gather(
            self._drive_times(origin_a, destinations),
            self._drive_times(origin_b, destinations),
        )

        return [
            dataclasses.replace(venue, drive_time_from_a=time_a, drive_time_from_b=time_b)
            for venue, time_a, time_b in zip(venues, from_a.durations, from_b.durations)
        ]

    async def _drive_times(self, origin: str, destinations: List[str]) -> DriveTimes:
        try:
            return await self.maps_service.get_drive_times_async(origin, destinations, self.travel_mode)
        except (ProviderError, ProviderTimeoutError) as e:
            logger.warning("Drive times from '%s' unavailable, marking as Unknown: %s", origin, e)
            return DriveTimes.unknown(origin, len(destinations))


@dataclass(frozen=True)
class MeetingPointResult:
    address1: str
    address2: str
    location1: Coordinate
    location2: Coordinate
    midpoint: Midpoint
    separation_km: float
    venues: List[Venue]


class MeetingPointFinder:
    """Main service for finding a place to meet between two addresses"""

    def __init__(self, maps_service: GoogleMapsService, search_radius_meters: Optional[int] = None):
        settings = maps_service.settings
        self.maps_service = maps_service
        self.geolocator = GeoLocator(maps_service)
        self.midpoint_calculator = MidpointCalculator(search_radius_meters or settings.search_radius_meters)
        self.venue_ranker = VenueRanker(maps_service, settings.travel_mode)

    def find_meeting_point(
        self,
        address1: str,
        address2: str,
        category: str = DEFAULT_CATEGORY,
        search_radius: Optional[int] = None,
    ) -> MeetingPointResult:
        """
        Find venues between two addresses
        Uses async parallel execution for the independent provider calls
        """
        return _run_sync(self.find_meeting_point_async(address1, address2, category, search_radius))

    async def find_meeting_point_async(
        self,
        address1: str,
        address2: str,
        category: str = DEFAULT_CATEGORY,
        search_radius: Optional[int] = None,
    ) -> MeetingPointResult:
        # Both addresses are checked before any provider call is made
        address1 = validate_address(address1)
        address2 = validate_address(address2)
        category = (category or DEFAULT_CATEGORY).strip().lower()

        location1, location2 = await _gather_or_cancel(
            self.geolocator.resolve_async(address1),
            self.geolocator.resolve_async(address2),
        )

        midpoint = self.midpoint_calculator.compute(location1, location2)
        if search_radius is not None:
            midpoint = dataclasses.replace(midpoint, search_radius_meters=search_radius)

        separation_km = geodesic((location1.lat, location1.lng), (location2.lat, location2.lng)).km
        logger.info(
            "Midpoint (%s) between '%s' and '%s' (%.1f km apart), searching %dm",
            midpoint.coordinate.as_param(), address1, address2, separation_km,
            midpoint.search_radius_meters,
        )

        venues = await self.venue_ranker.find_and_rank_async(midpoint, category, address1, address2)
        if not venues:
            logger.info("No '%s' venues found around midpoint of '%s' and '%s'", category, address1, address2)

        return MeetingPointResult(
            address1=address1,
            address2=address2,
            location1=location1,
            location2=location2,
            midpoint=midpoint,
            separation_km=round(separation_km, 1),
            venues=venues,
        )
