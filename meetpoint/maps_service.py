import asyncio
import concurrent.futures
import logging
import math
from typing import Dict, List, Optional

import requests

from .config import Settings
from .exceptions import (
    ConfigurationError,
    GeocodingFailedError,
    ProviderError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    VenueSearchFailedError,
)
from .models import UNKNOWN_DRIVE_TIME, Coordinate, DriveTimes, Venue

logger = logging.getLogger(__name__)


# --- Module-level constants ---
GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
NEARBY_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"
DISTANCE_MATRIX_URL = "https://maps.googleapis.com/maps/api/distancematrix/json"

ANY_CATEGORY = "any"
# Distance Matrix takes at most 25 destinations per request; one Nearby Search page is 20
MAX_NEARBY_RESULTS = 20


def format_drive_time(seconds: float) -> str:
    """Whole minutes, halves rounded up, e.g. ``5520 -> '92 mins'``"""
    return f"{int(math.floor(seconds / 60.0 + 0.5))} mins"


def decode_venue(place: Dict) -> Venue:
    """Turn one Nearby Search result into a Venue"""
    location = (place.get('geometry') or {}).get('location') or {}
    coordinate = None
    if 'lat' in location and 'lng' in location:
        coordinate = Coordinate(lat=float(location['lat']), lng=float(location['lng']))

    price_level = place.get('price_level')
    if not isinstance(price_level, int) or not 0 <= price_level <= 4:
        price_level = None

    photos = [
        photo['photo_reference']
        for photo in (place.get('photos') or [])
        if photo.get('photo_reference')
    ]

    return Venue(
        name=place.get('name', ''),
        address=place.get('formatted_address') or place.get('vicinity', ''),
        rating=float(place.get('rating') or 0.0),
        rating_count=int(place.get('user_ratings_total') or 0),
        price_level=price_level,
        coordinate=coordinate,
        place_id=place.get('place_id'),
        photo_references=photos,
    )


class GoogleMapsService:
    """Client for the Google Maps web services (geocoding, places, distance matrix)"""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        if not settings.api_key_configured:
            raise ConfigurationError("Valid Google Maps API key is required")
        self.settings = settings
        self.session = session or requests.Session()
        self.executor = concurrent.futures.ThreadPoolExecutor(max_workers=settings.max_workers)

    def cleanup(self):
        """Clean up resources"""
        self.executor.shutdown(wait=True)
        self.session.close()

    def _get_json(self, url: str, params: Dict, operation: str) -> Dict:
        """Issue one GET against a web service and return the decoded body.

        Transport problems are raised as ProviderTimeoutError or
        ProviderUnavailableError; the body's ``status`` is left to the caller.
        """
        timeout = self.settings.request_timeout_seconds
        try:
            response = self.session.get(
                url, params={**params, 'key': self.settings.api_key}, timeout=timeout
            )
            response.raise_for_status()
            body = response.json()
        except requests.exceptions.Timeout:
            logger.error("%s timed out after %ss", operation, timeout)
            raise ProviderTimeoutError(operation, timeout) from None
        except requests.exceptions.RequestException as e:
            logger.error("%s request failed: %s", operation, e)
            raise ProviderUnavailableError(f"{operation} request failed: {e}") from e
        except ValueError as e:
            logger.error("%s returned a body that is not JSON: %s", operation, e)
            raise ProviderUnavailableError(f"{operation} returned an invalid response") from e

        if not isinstance(body, dict):
            raise ProviderUnavailableError(f"{operation} returned an invalid response")
        return body

    def geocode_address(self, address: str) -> Coordinate:
        """
        Geocode an address using the Geocoding API.
        Raises GeocodingFailedError unless the provider answers OK with a result.
        """
        body = self._get_json(GEOCODE_URL, {'address': address}, "Geocoding")
        status = body.get('status')
        results = body.get('results') or []
        if status != 'OK' or not results:
            logger.warning("Geocoding failed for '%s' (status=%s)", address, status)
            raise GeocodingFailedError(address, status)

        try:
            location = results[0]['geometry']['location']
            return Coordinate(lat=float(location['lat']), lng=float(location['lng']))
        except (KeyError, TypeError, ValueError):
            logger.error("Geocoding result for '%s' has no usable location", address)
            raise GeocodingFailedError(address, status) from None

    def find_places_nearby(self, location: Coordinate, radius: int, place_type: str) -> List[Venue]:
        """
        Find places of ``place_type`` near a location, in provider order.
        ZERO_RESULTS is an empty list; any other non-OK status raises VenueSearchFailedError.
        """
        params = {'location': location.as_param(), 'radius': radius}
        if place_type and place_type != ANY_CATEGORY:
            params['type'] = place_type

        body = self._get_json(NEARBY_SEARCH_URL, params, "Places search")
        status = body.get('status')
        if status == 'ZERO_RESULTS':
            return []
        if status != 'OK':
            logger.error("Places search failed (status=%s): %s", status, body.get('error_message', ''))
            raise VenueSearchFailedError(status)

        try:
            return [decode_venue(place) for place in (body.get('results') or [])[:MAX_NEARBY_RESULTS]]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.error("Places search returned a malformed result: %s", e)
            raise VenueSearchFailedError("MALFORMED_RESPONSE") from e

    def get_drive_times(self, origin: str, destinations: List[str], mode: Optional[str] = None) -> DriveTimes:
        """Batch travel durations from one origin to every destination via the Distance Matrix API.

        Elements the provider could not route come back as ``"Unknown"``. A
        non-OK top-level status raises ProviderError, a malformed body
        ProviderUnavailableError.
        """
        if not destinations:
            return DriveTimes(origin=origin, durations=[])

        body = self._get_json(
            DISTANCE_MATRIX_URL,
            {
                'origins': origin,
                'destinations': '|'.join(destinations),
                'mode': mode or self.settings.travel_mode,
            },
            "Distance matrix",
        )
        status = body.get('status')
        if status != 'OK':
            raise ProviderError(f"Distance matrix failed (status: {status})", status)

        rows = body.get('rows') or []
        if not isinstance(rows, list) or (rows and not isinstance(rows[0], dict)):
            raise ProviderUnavailableError("Distance matrix returned a malformed row", status)
        elements = (rows[0].get('elements') or []) if rows else []
        if not isinstance(elements, list):
            raise ProviderUnavailableError("Distance matrix returned malformed elements", status)

        durations = []
        for i in range(len(destinations)):
            element = elements[i] if i < len(elements) else {}
            if not isinstance(element, dict):
                element = {}
            duration = element.get('duration')
            seconds = duration.get('value') if isinstance(duration, dict) else None
            if (
                element.get('status') == 'OK'
                and isinstance(seconds, (int, float))
                and not isinstance(seconds, bool)
            ):
                durations.append(format_drive_time(seconds))
            else:
                durations.append(UNKNOWN_DRIVE_TIME)
        return DriveTimes(origin=origin, durations=durations)

    # Async wrapper methods for parallel execution
    async def _run(self, operation: str, func, *args):
        loop = asyncio.get_running_loop()
        timeout = self.settings.request_timeout_seconds
        try:
            return await asyncio.wait_for(loop.run_in_executor(self.executor, func, *args), timeout)
        except asyncio.TimeoutError:
            raise ProviderTimeoutError(operation, timeout) from None

    async def geocode_address_async(self, address: str) -> Coordinate:
        """Async wrapper for geocode_address"""
        return await self._run("Geocoding", self.geocode_address, address)

    async def find_places_nearby_async(self, location: Coordinate, radius: int, place_type: str) -> List[Venue]:
        """Async wrapper for find_places_nearby"""
        return await self._run("Places search", self.find_places_nearby, location, radius, place_type)

    async def get_drive_times_async(self, origin: str, destinations: List[str], mode: Optional[str] = None) -> DriveTimes:
        """Async wrapper for get_drive_times"""
        return await self._run("Distance matrix", self.get_drive_times, origin, destinations, mode)
