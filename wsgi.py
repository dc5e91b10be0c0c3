"""
WSGI entry point, also used by Flask-Migrate / Alembic.

Usage:
    gunicorn wsgi:app
    flask --app wsgi db upgrade
    flask --app wsgi seed-admin --email admin@example.com --password '...'
"""

from workhours import create_app

app = create_app()
