"""
Tests for configuration defaults.
"""

from pathlib import Path

from alembic.config import Config
from sqlalchemy.engine import make_url

from cylinder_audit.config import DEFAULT_DATABASE_URL

ROOT = Path(__file__).resolve().parents[1]


def test_default_database_url_names_the_installed_driver():
    url = make_url(DEFAULT_DATABASE_URL)
    assert url.get_backend_name() == "postgresql"
    assert url.get_driver_name() == "psycopg2"


def test_alembic_ini_names_the_installed_driver():
    config = Config(str(ROOT / "alembic.ini"))
    url = make_url(config.get_main_option("sqlalchemy.url"))
    assert url.get_driver_name() == "psycopg2"
