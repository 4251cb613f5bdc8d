from typing import Iterator, List

import pytest
from flask.testing import FlaskClient

from fundcalc.app import create_app
from fundcalc.app.config import TestingConfig


@pytest.fixture()
def client() -> Iterator[FlaskClient]:
    app = create_app(config=TestingConfig)
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture()
def raw_series() -> List[dict]:
    """Daily NAVs in the DD-MM-YYYY shape, newest first."""
    return [
        {"date": "05-01-2024", "nav": "110.0"},
        {"date": "04-01-2024", "nav": "99.0"},
        {"date": "03-01-2024", "nav": "120.0"},
        {"date": "02-01-2024", "nav": "105.0"},
        {"date": "01-01-2024", "nav": "100.0"},
    ]
