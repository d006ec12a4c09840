from sqlalchemy.engine import make_url

from cinema.core.config import Settings


def test_assembled_url_names_the_psycopg2_driver():
    app_settings = Settings(
        DATABASE_URL="",
        POSTGRES_USER="cinema",
        POSTGRES_PASSWORD="pw",
        POSTGRES_SERVER="db.internal",
        POSTGRES_PORT=5433,
        POSTGRES_DB="tickets",
    )
    url = make_url(app_settings.assemble_db_url())

    assert url.get_backend_name() == "postgresql"
    assert url.get_driver_name() == "psycopg2"
    assert (url.username, url.host, url.port, url.database) == ("cinema", "db.internal", 5433, "tickets")


def test_explicit_database_url_wins():
    app_settings = Settings(DATABASE_URL="sqlite:///cinema.db")
    assert app_settings.assemble_db_url() == "sqlite:///cinema.db"
