# backend/wsgi.py
from agrokasir import create_app

app = create_app()
