from typing import Callable, Dict, Iterator, List, Union

import pytest
import requests

from meetpoint.app import create_app
from meetpoint.config import Settings
from meetpoint.maps_service import (
    DISTANCE_MATRIX_URL,
    GEOCODE_URL,
    NEARBY_SEARCH_URL,
    GoogleMapsService,
)

SEATTLE = {'lat': 47.6062, 'lng': -122.3321}
PORTLAND = {'lat': 45.5152, 'lng': -122.6784}

Handler = Union[Dict, Exception, Callable[[Dict], Dict]]


class FakeResponse:
    def __init__(self, payload: Dict, status_code: int = 200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self) -> Dict:
        return self.payload


class FakeSession:
    """Stands in for requests.Session, answering each web service URL from a handler"""

    def __init__(self, routes: Dict[str, Handler]):
        self.routes = routes
        self.calls: List[Dict] = []

    def get(self, url: str, params=None, timeout=None) -> FakeResponse:
        self.calls.append({'url': url, 'params': dict(params or {}), 'timeout': timeout})
        handler = self.routes[url]
        if isinstance(handler, Exception):
            raise handler
        if callable(handler):
            handler = handler(params)
        return FakeResponse(handler)

    def calls_to(self, url: str) -> List[Dict]:
        return [call for call in self.calls if call['url'] == url]

    def close(self) -> None:
        pass


def geocode_body(location: Dict) -> Dict:
    return {'status': 'OK', 'results': [{'geometry': {'location': location}}]}


def geocode_by_address(locations: Dict[str, Dict]) -> Callable[[Dict], Dict]:
    def handler(params: Dict) -> Dict:
        if params['address'] in locations:
            return geocode_body(locations[params['address']])
        return {'status': 'ZERO_RESULTS', 'results': []}
    return handler


def place(name: str, vicinity: str, lat: float, lng: float, **extra) -> Dict:
    return {
        'name': name,
        'vicinity': vicinity,
        'geometry': {'location': {'lat': lat, 'lng': lng}},
        'rating': 4.5,
        'user_ratings_total': 120,
        'place_id': f"place-{name.lower().replace(' ', '-')}",
        **extra,
    }


def matrix_body(*seconds) -> Dict:
    elements = []
    for value in seconds:
        if value is None:
            elements.append({'status': 'ZERO_RESULTS'})
        else:
            elements.append({'status': 'OK', 'duration': {'value': value, 'text': ''}})
    return {'status': 'OK', 'rows': [{'elements': elements}]}


def matrix_by_origin(bodies: Dict[str, Dict]) -> Callable[[Dict], Dict]:
    def handler(params: Dict) -> Dict:
        return bodies[params['origins']]
    return handler


@pytest.fixture
def settings() -> Settings:
    return Settings(api_key="test-key", log_file=None, request_timeout_seconds=5)


@pytest.fixture
def routes() -> Dict[str, Handler]:
    """Default provider answers for the Seattle / Portland scenario"""
    return {
        GEOCODE_URL: geocode_by_address({'Seattle, WA': SEATTLE, 'Portland, OR': PORTLAND}),
        NEARBY_SEARCH_URL: {
            'status': 'OK',
            'results': [place('Example Diner', '100 Main St, Chehalis', 46.5607, -122.5053, price_level=2)],
        },
        DISTANCE_MATRIX_URL: matrix_by_origin({
            'Seattle, WA': matrix_body(5520),
            'Portland, OR': matrix_body(5280),
        }),
    }


@pytest.fixture
def session(routes: Dict[str, Handler]) -> FakeSession:
    return FakeSession(routes)


@pytest.fixture
def maps_service(settings: Settings, session: FakeSession) -> Iterator[GoogleMapsService]:
    service = GoogleMapsService(settings, session=session)
    yield service
    service.cleanup()


@pytest.fixture
def client(settings: Settings, maps_service: GoogleMapsService):
    app = create_app(settings, maps_service=maps_service)
    app.config['TESTING'] = True
    return app.test_client()
