# backend/wsgi.py
from starweb import create_app, wait_for_database

app = create_app()
wait_for_database(app)
