import pytest
from pydantic import ValidationError

from distref.workers import Env, TimeParser, load_env


@pytest.fixture
def clean_environ(monkeypatch: pytest.MonkeyPatch, tmp_path):
    for name in Env.types_map():
        monkeypatch.delenv(name, raising=False)

    monkeypatch.chdir(tmp_path)
    return monkeypatch


class TestLoadEnv:
    def test_defaults(self, clean_environ):
        env = load_env(Env)

        assert env.DISTREF_WORKER_COUNT == 4
        assert env.DISTREF_WORKER_START_TIMEOUT == "30s"
        assert env.DISTREF_MP_CONTEXT == "spawn"
        assert env.DISTREF_LOGS_DIRECTORY is None

    def test_environment_variables_are_typed(self, clean_environ):
        clean_environ.setenv("DISTREF_WORKER_COUNT", "7")
        clean_environ.setenv("DISTREF_LOG_LEVEL", "debug")

        env = load_env(Env)

        assert env.DISTREF_WORKER_COUNT == 7
        assert env.DISTREF_LOG_LEVEL == "debug"

    def test_env_file_overrides_environment(self, clean_environ, tmp_path):
        clean_environ.setenv("DISTREF_WORKER_COUNT", "7")
        env_file = tmp_path / "distref.env"
        env_file.write_text("DISTREF_WORKER_COUNT=3\nUNRELATED=value\n")

        env = load_env(Env, env_file=str(env_file))

        assert env.DISTREF_WORKER_COUNT == 3

    def test_dotenv_in_working_directory_is_read(self, clean_environ, tmp_path):
        (tmp_path / ".env").write_text("DISTREF_WORKER_STOP_TIMEOUT=1s\n")

        env = load_env(Env)

        assert env.DISTREF_WORKER_STOP_TIMEOUT == "1s"

    def test_override_wins(self, clean_environ):
        clean_environ.setenv("DISTREF_WORKER_COUNT", "7")
        clean_environ.setenv("DISTREF_LOG_LEVEL", "info")

        env = load_env(
            Env,
            override=Env(DISTREF_WORKER_COUNT=2),
        )

        assert env.DISTREF_WORKER_COUNT == 2
        assert env.DISTREF_LOG_LEVEL == "info"

    def test_negative_worker_count_is_rejected(self, clean_environ):
        clean_environ.setenv("DISTREF_WORKER_COUNT", "-1")

        with pytest.raises(ValidationError):
            load_env(Env)

    def test_unknown_start_method_is_rejected(self):
        with pytest.raises(ValidationError):
            Env(DISTREF_MP_CONTEXT="thread")


class TestTimeParser:
    @pytest.mark.parametrize(
        "amount,seconds",
        [
            ("30s", 30.0),
            ("2m", 120.0),
            ("1h", 3600.0),
            ("1m30s", 90.0),
            ("0.5s", 0.5),
            ("15", 15.0),
            (12, 12.0),
            (2.5, 2.5),
        ],
    )
    def test_parse(self, amount, seconds):
        assert TimeParser().parse(amount) == seconds

    def test_unparseable_duration_raises(self):
        with pytest.raises(ValueError):
            TimeParser().parse("soon")
