# backend/wsgi.py
from florist import create_app

app = create_app()
