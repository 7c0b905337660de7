"""Test-wide environment.

Point the app at throwaway backends before any ``dueworker`` module is
imported, so importing the package never touches a real database file
or Redis broker.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")
os.environ.setdefault("SCHEDULER_BEAT_ENABLED", "true")
