"""
WSGI entry point.

Usage:
    flask --app wsgi run            # development server
    gunicorn wsgi:app               # production
    flask --app wsgi migrate-data   # apply pending data migrations
"""

from release_planner import create_app

app = create_app()
