import json
import logging
from time import perf_counter
from typing import Optional

from flask import Flask, g, jsonify, request
from flask_cors import CORS

from .config import MAX_SEARCH_RADIUS_M, MIN_SEARCH_RADIUS_M, Settings
from .exceptions import (
    GeocodingFailedError,
    InvalidInputError,
    MeetPointError,
    ProviderError,
    ProviderTimeoutError,
)
from .finder import DEFAULT_CATEGORY, GeoLocator, MeetingPointFinder, MeetingPointResult
from .maps_service import GoogleMapsService
from .static_maps import build_maps_script_url, build_static_map_url

logger = logging.getLogger(__name__)

NOT_CONFIGURED = 'Google Maps API key not configured'


def configure_logging(settings: Settings):
    handlers = [logging.StreamHandler()]
    if settings.log_file:
        handlers.insert(0, logging.FileHandler(settings.log_file))
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )


def error_status(error: MeetPointError) -> int:
    if isinstance(error, InvalidInputError):
        return 400
    if isinstance(error, GeocodingFailedError):
        return 404
    if isinstance(error, ProviderTimeoutError):
        return 504
    if isinstance(error, ProviderError):
        return 502
    return 500


def serialize_result(result: MeetingPointResult, api_key: str) -> dict:
    venues = []
    for venue in result.venues:
        data = venue.to_dict()
        data['static_map_url'] = build_static_map_url(api_key, result.address1, result.address2, venue)
        venues.append(data)

    return {
        'address1': {'input': result.address1, 'location': result.location1.to_dict()},
        'address2': {'input': result.address2, 'location': result.location2.to_dict()},
        'midpoint': {
            **result.midpoint.coordinate.to_dict(),
            'search_radius': result.midpoint.search_radius_meters,
            'separation_km': result.separation_km,
        },
        'venues': venues,
    }


def create_app(settings: Optional[Settings] = None, maps_service: Optional[GoogleMapsService] = None) -> Flask:
    settings = settings or Settings.from_env()

    app = Flask(__name__)
    CORS(app)  # Enable CORS for all routes

    logger.info(f"API Key found: {'Yes' if settings.api_key_configured else 'No'}")
    if maps_service is None and settings.api_key_configured:
        logger.info("Initializing Google Maps service...")
        maps_service = GoogleMapsService(settings)
    elif maps_service is None:
        logger.warning("GOOGLE_MAPS_API_KEY not found or not configured in environment variables")

    finder = MeetingPointFinder(maps_service) if maps_service else None
    geolocator = GeoLocator(maps_service) if maps_service else None

    # Per-request timing: record start time and log duration on completion
    @app.before_request
    def _start_timer():
        g._start_time = perf_counter()

    @app.after_request
    def _log_request_duration(response):
        start = getattr(g, '_start_time', None)
        if start is not None:
            duration_ms = (perf_counter() - start) * 1000.0
            response.headers['X-Process-Time-ms'] = f"{duration_ms:.1f}"
            logger.info(
                "request completed: method=%s path=%s status=%s duration_ms=%.1f remote_addr=%s",
                request.method,
                request.full_path if request.query_string else request.path,
                response.status_code,
                duration_ms,
                request.remote_addr,
            )
        return response

    @app.errorhandler(MeetPointError)
    def _meetpoint_error(error):
        status = error_status(error)
        if status >= 500:
            logger.error(f"{type(error).__name__}: {error}")
        else:
            logger.warning(f"{type(error).__name__}: {error}")
        return jsonify({'success': False, 'error': str(error)}), status

    @app.errorhandler(404)
    def _not_found(error):
        return jsonify({'success': False, 'error': 'Endpoint not found'}), 404

    @app.errorhandler(500)
    def _internal_error(error):
        return jsonify({'success': False, 'error': 'Internal server error'}), 500

    @app.route('/', methods=['GET'])
    def health_check():
        """Health check endpoint"""
        return jsonify({
            'message': 'Meet Halfway API is running!',
            'endpoints': {
                'find_meeting_point': '/api/find-meeting-point',
                'geocode': '/api/geocode',
                'config': '/api/config',
                'health': '/'
            },
            'status': 'healthy',
            'maps_configured': maps_service is not None,
        })

    @app.route('/api/geocode', methods=['POST'])
    def geocode_address():
        """
        Geocode a single address
        Expected JSON: {"address": "123 Main St, City, State"}
        """
        if not geolocator:
            logger.error("Google Maps API key not configured - cannot geocode")
            return jsonify({'success': False, 'error': NOT_CONFIGURED}), 500

        data = request.get_json(silent=True) or {}
        address = data.get('address')
        logger.info(f"Attempting to geocode address: '{address}'")

        location = geolocator.resolve(address)
        return jsonify({'success': True, 'data': location.to_dict()})

    @app.route('/api/find-meeting-point', methods=['POST'])
    def find_meeting_point():
        """
        Find venues halfway between two addresses
        Expected JSON: {
            "address1": "Seattle, WA",
            "address2": "Portland, OR",
            "category": "restaurant",  // optional, "any" disables the type filter
            "search_radius": 1000      // optional, defaults to SEARCH_RADIUS_METERS
        }
        """
        logger.info("=== FIND MEETING POINT REQUEST ===")

        if not finder:
            logger.error("Google Maps API key not configured - cannot process request")
            return jsonify({'success': False, 'error': NOT_CONFIGURED}), 500

        data = request.get_json(silent=True)
        if not data:
            return jsonify({'success': False, 'error': 'JSON data is required'}), 400
        logger.debug(f"Request data received: {json.dumps(data)}")

        category = data.get('category') or DEFAULT_CATEGORY
        if not isinstance(category, str):
            return jsonify({'success': False, 'error': 'category must be a string'}), 400

        search_radius = data.get('search_radius')
        if search_radius is not None and (
            isinstance(search_radius, bool)
            or not isinstance(search_radius, int)
            or not MIN_SEARCH_RADIUS_M <= search_radius <= MAX_SEARCH_RADIUS_M
        ):
            logger.warning(f"Invalid search radius: {search_radius}")
            return jsonify({
                'success': False,
                'error': f'search_radius must be between {MIN_SEARCH_RADIUS_M} and {MAX_SEARCH_RADIUS_M} meters'
            }), 400

        _compute_start = perf_counter()
        result = finder.find_meeting_point(
            data.get('address1'),
            data.get('address2'),
            category,
            search_radius,
        )
        _compute_ms = (perf_counter() - _compute_start) * 1000.0
        logger.info("Time to find meeting point = %.1f ms (%d venues)", _compute_ms, len(result.venues))

        response = jsonify({'success': True, 'data': serialize_result(result, settings.api_key)})
        response.headers['X-Compute-Time-ms'] = f"{_compute_ms:.1f}"
        return response

    @app.route('/api/config', methods=['GET'])
    def get_config():
        """
        Get frontend configuration. The Maps JavaScript loader is only offered
        to browser clients when BROWSER_MAPS_ENABLED is set.
        """
        script_url = None
        if settings.browser_maps_enabled and settings.api_key_configured:
            script_url = build_maps_script_url(settings.api_key)
        return jsonify({
            'success': True,
            'data': {
                'mapsScriptUrl': script_url,
                'apiBaseUrl': request.host_url.rstrip('/'),
                'searchRadius': settings.search_radius_meters,
                'travelMode': settings.travel_mode,
            }
        })

    return app
