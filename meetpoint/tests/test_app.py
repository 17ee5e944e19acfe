import pytest

from meetpoint.app import create_app
from meetpoint.config import Settings
from meetpoint.maps_service import GEOCODE_URL, NEARBY_SEARCH_URL


def find(client, **payload):
    body = {'address1': 'Seattle, WA', 'address2': 'Portland, OR', **payload}
    return client.post('/api/find-meeting-point', json=body)


def test_health_check(client):
    response = client.get('/')

    assert response.status_code == 200
    assert response.get_json()['status'] == 'healthy'
    assert response.get_json()['maps_configured'] is True
    assert 'X-Process-Time-ms' in response.headers


def test_find_meeting_point(client):
    response = find(client, category='restaurant')

    assert response.status_code == 200
    assert 'X-Compute-Time-ms' in response.headers
    payload = response.get_json()
    assert payload['success'] is True

    data = payload['data']
    assert data['midpoint']['lat'] == pytest.approx(46.5607)
    assert data['midpoint']['lng'] == pytest.approx(-122.5053, abs=1e-4)
    assert data['midpoint']['search_radius'] == 1000
    assert data['address1']['location'] == {'lat': 47.6062, 'lng': -122.3321}

    venue = data['venues'][0]
    assert venue['name'] == 'Example Diner'
    assert venue['drive_times'] == {'from_a': '92 mins', 'from_b': '88 mins'}
    assert venue['price_level'] == 2
    assert venue['static_map_url'].startswith('https://maps.googleapis.com/maps/api/staticmap?')


def test_find_meeting_point_defaults_to_restaurants(client, session):
    assert find(client).status_code == 200
    assert session.calls_to(NEARBY_SEARCH_URL)[0]['params']['type'] == 'restaurant'


def test_find_meeting_point_zero_results(client, routes):
    routes[NEARBY_SEARCH_URL] = {'status': 'ZERO_RESULTS', 'results': []}

    response = find(client)

    assert response.status_code == 200
    assert response.get_json()['data']['venues'] == []


def test_find_meeting_point_blank_address(client, session):
    response = find(client, address2='   ')

    assert response.status_code == 400
    assert response.get_json() == {'success': False, 'error': 'Please enter a valid address'}
    assert session.calls == []


def test_find_meeting_point_requires_json(client):
    response = client.post('/api/find-meeting-point', data='not json', content_type='text/plain')

    assert response.status_code == 400


@pytest.mark.parametrize('radius', [50, 60000, '1000', True, 1500.5])
def test_find_meeting_point_rejects_bad_radius(client, session, radius):
    response = find(client, search_radius=radius)

    assert response.status_code == 400
    assert session.calls == []


def test_find_meeting_point_geocoding_failure(client):
    response = find(client, address2='Atlantis')

    assert response.status_code == 404
    assert 'Atlantis' in response.get_json()['error']


def test_find_meeting_point_places_failure(client, routes):
    routes[NEARBY_SEARCH_URL] = {'status': 'OVER_QUERY_LIMIT'}

    response = find(client)

    assert response.status_code == 502
    assert response.get_json()['success'] is False


def test_geocode(client):
    response = client.post('/api/geocode', json={'address': 'Portland, OR'})

    assert response.status_code == 200
    assert response.get_json()['data'] == {'lat': 45.5152, 'lng': -122.6784}


def test_geocode_missing_address(client, session):
    response = client.post('/api/geocode', json={})

    assert response.status_code == 400
    assert session.calls_to(GEOCODE_URL) == []


def test_unconfigured_api_key():
    app = create_app(Settings(api_key=None, log_file=None))
    client = app.test_client()

    assert find(client).status_code == 500
    assert client.post('/api/geocode', json={'address': 'Seattle, WA'}).status_code == 500
    assert client.get('/api/config').get_json()['data']['mapsScriptUrl'] is None


def test_config_exposes_maps_script_when_enabled(client):
    data = client.get('/api/config').get_json()['data']

    assert data['mapsScriptUrl'].startswith('https://maps.googleapis.com/maps/api/js?')
    assert 'libraries=places' in data['mapsScriptUrl']
    assert data['searchRadius'] == 1000
    assert data['travelMode'] == 'driving'


def test_config_hides_maps_script_when_disabled(maps_service):
    settings = Settings(api_key='test-key', log_file=None, browser_maps_enabled=False)
    client = create_app(settings, maps_service=maps_service).test_client()

    assert client.get('/api/config').get_json()['data']['mapsScriptUrl'] is None


def test_unknown_route(client):
    response = client.get('/api/nope')

    assert response.status_code == 404
    assert response.get_json()['error'] == 'Endpoint not found'
