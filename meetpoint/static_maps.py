"""URLs handed to browsers: Static Maps previews and the Maps JavaScript loader."""

from typing import List, Optional, Tuple

import requests

from .models import Venue

STATIC_MAP_URL = "https://maps.googleapis.com/maps/api/staticmap"
MAPS_JS_URL = "https://maps.googleapis.com/maps/api/js"

ORIGIN_MARKER_COLOR = "0x0071e3"
VENUE_MARKER_COLOR = "0xDC2626"

# Night mode
MAP_STYLES = [
    "feature:all|element:labels|visibility:on",
    "feature:all|element:geometry|color:0x242f3e",
    "feature:road|element:geometry|color:0x38414e",
    "feature:water|element:geometry|color:0x17263c",
]


def _prepare(url: str, params: List[Tuple[str, str]]) -> str:
    return requests.Request('GET', url, params=params).prepare().url


def build_static_map_url(
    api_key: str,
    location_a: str,
    location_b: str,
    venue: Optional[Venue] = None,
    size: str = "400x400",
    zoom: int = 12,
) -> str:
    """Static map showing both origins (labelled A and B) and the venue, if it has a position"""
    params = [
        ('size', size),
        ('scale', '2'),
        ('zoom', str(zoom)),
        ('key', api_key),
    ]
    params.extend(('style', style) for style in MAP_STYLES)
    params.append(('markers', f"color:{ORIGIN_MARKER_COLOR}|label:A|{location_a}"))
    params.append(('markers', f"color:{ORIGIN_MARKER_COLOR}|label:B|{location_b}"))
    if venue is not None and venue.coordinate is not None:
        params.append(('markers', f"color:{VENUE_MARKER_COLOR}|{venue.coordinate.as_param()}"))
    return _prepare(STATIC_MAP_URL, params)


def build_maps_script_url(api_key: str) -> str:
    """Loader URL for the Maps JavaScript API with the places library"""
    return _prepare(MAPS_JS_URL, [('key', api_key), ('libraries', 'places')])
