"""Utility modules."""

from pokerboard.utils.db import engine, get_db, get_db_session
