# backend/wsgi.py
from coffeeshop import create_app

app = create_app()
