# backend/starweb/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/starweb.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///starweb.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Per-commit operation cap for multi-document writes
    BATCH_WRITE_LIMIT = int(os.environ.get("BATCH_WRITE_LIMIT", "499"))

    # Startup gate only; individual operations have no timeout
    CONNECTION_WAIT_SECONDS = int(os.environ.get("CONNECTION_WAIT_SECONDS", "30"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    CONNECTION_WAIT_SECONDS = 0
