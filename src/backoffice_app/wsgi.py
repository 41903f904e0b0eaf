"""WSGI entry point: ``gunicorn backoffice_app.wsgi:app``."""

from backoffice_app.app import create_app

app = create_app()
