"""Default configuration for the Flask app.

Every key can be overridden from the environment with a ``FUNDCALC_`` prefix,
e.g. ``FUNDCALC_LOG_LEVEL=DEBUG``. Values are parsed as JSON where possible, so
``FUNDCALC_CORS_ORIGINS='["https://example.org"]'`` yields a list.
"""

from typing import List


class Config:
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]
    LOG_LEVEL = "INFO"
    JSON_SORT_KEYS = False


class TestingConfig(Config):
    TESTING = True
    LOG_LEVEL = "DEBUG"
