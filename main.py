#!/usr/bin/env python3
"""
Main entry point for the Meet Halfway API
"""

import logging

from meetpoint.app import configure_logging, create_app
from meetpoint.config import Settings

settings = Settings.from_env()
configure_logging(settings)
app = create_app(settings)

if __name__ == '__main__':
    if not settings.api_key_configured:
        logging.getLogger(__name__).warning(
            "GOOGLE_MAPS_API_KEY is not set; enable the Geocoding, Places and "
            "Distance Matrix APIs for your key and add it to .env"
        )
    app.run(debug=True, host=settings.host, port=settings.port)
