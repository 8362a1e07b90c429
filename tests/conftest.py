"""Test environment.

Settings are read from the environment when ``pokerboard.config`` is first
imported, so the required values are set here before any test module
imports the application.
"""

import os

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("APP_DEBUG", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./pokerboard_test.db")
os.environ.setdefault("JWT_SECRET_KEY", "k9Xv2LqT7wZr4NbY8pHc3MdF6sJg1QaE")
os.environ.setdefault("APP_BASE_URL", "http://testserver")
