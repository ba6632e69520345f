import string

from dotenv import dotenv_values

from webschedulr.core.config import reload_settings
from webschedulr.installation.materializer import ConfigMaterializer
from webschedulr.schemas.installation import DatabaseConfig


def mysql_config(**overrides):
    values = {
        "type": "mysql",
        "host": "db.internal",
        "port": 3307,
        "username": "scheduler",
        "password": 'p@ss "word"',
        "database": "calendar",
    }
    values.update(overrides)
    return DatabaseConfig(**values)


class TestConfigMaterializer:

    def test_persist_writes_settings(self, app_root):
        materializer = ConfigMaterializer()
        assert materializer.persist(mysql_config()) is True

        values = dotenv_values(app_root / ".env")
        assert values["DB_TYPE"] == "mysql"
        assert values["DB_HOST"] == "db.internal"
        assert values["DB_PORT"] == "3307"
        assert values["DB_USER"] == "scheduler"
        assert values["DB_PASSWORD"] == 'p@ss "word"'
        assert values["DB_NAME"] == "calendar"
        assert values["ACCESS_TOKEN_EXPIRE_MINUTES"] == "1440"
        assert values["CORS_ORIGIN"] == "http://localhost:5173"
        assert "DB_FILENAME" not in values

    def test_secret_key_is_alphanumeric(self, app_root):
        ConfigMaterializer().persist(mysql_config())

        secret = dotenv_values(app_root / ".env")["SECRET_KEY"]
        assert len(secret) == 32
        assert set(secret) <= set(string.ascii_letters + string.digits)

    def test_persist_overwrites_previous_artifact(self, app_root):
        materializer = ConfigMaterializer()
        materializer.persist(mysql_config())
        first_secret = dotenv_values(app_root / ".env")["SECRET_KEY"]

        materializer.persist(DatabaseConfig(type="sqlite", filename="data/app.db"))
        values = dotenv_values(app_root / ".env")
        assert values["DB_TYPE"] == "sqlite"
        assert values["DB_FILENAME"] == "data/app.db"
        assert values["SECRET_KEY"] != first_secret

    def test_no_temporary_files_left_behind(self, app_root):
        ConfigMaterializer().persist(mysql_config())
        assert [p.name for p in app_root.iterdir()] == [".env"]

    def test_exists(self, app_root):
        materializer = ConfigMaterializer()
        assert materializer.exists() is False
        materializer.persist(mysql_config())
        assert materializer.exists() is True

    def test_persist_failure_returns_false(self, app_root):
        # A directory where the file should be makes the final rename fail
        (app_root / ".env").mkdir()
        assert ConfigMaterializer().persist(mysql_config()) is False

    def test_settings_load_from_artifact(self, app_root):
        ConfigMaterializer().persist(mysql_config())
        settings = reload_settings()

        assert settings.DB_TYPE == "mysql"
        assert settings.DB_PORT == 3307
        assert settings.DB_PASSWORD == 'p@ss "word"'
        url = settings.database_url
        assert url.drivername == "mysql+pymysql"
        assert url.database == "calendar"

    def test_mixed_case_type_is_written_lowercase(self, app_root):
        values = ConfigMaterializer().render(
            DatabaseConfig(type="SQLite", filename="app.db"), "secret"
        )
        assert values["DB_TYPE"] == "sqlite"
        assert values["DB_FILENAME"] == "app.db"

    def test_backslashes_survive_settings_load(self, app_root):
        password = 'back\\slash "quoted" $dollar'
        assert ConfigMaterializer().persist(mysql_config(password=password)) is True
        assert reload_settings().DB_PASSWORD == password

    def test_interpolated_value_fails_read_back(self, app_root):
        """A value the loader would rewrite is reported and not left behind."""
        materializer = ConfigMaterializer()
        assert materializer.persist(mysql_config(password="pa${HOME}ss")) is False
        assert materializer.exists() is False
