import pytest

from schedulr.schedulr_env import SchedulrConfig, SchedulrEnvironment, render_config


@pytest.mark.unit
class TestEnvironment:
    def test_home_from_env(self, schedulr_home):
        assert SchedulrEnvironment().home == schedulr_home

    def test_xdg_home(self, monkeypatch, tmp_path):
        monkeypatch.delenv("SCHEDULR_HOME")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        assert SchedulrEnvironment().home == tmp_path / "xdg" / "schedulr"

    def test_creates_default_config(self, schedulr_home, capsys):
        env = SchedulrEnvironment()
        config = env.load_config()
        assert capsys.readouterr().out == ""
        assert config == SchedulrConfig()
        text = (schedulr_home / "config.toml").read_text(encoding="utf-8")
        assert "port = 7540" in text
        assert 'file = "scheduler.db"' in text

    def test_defaults(self, test_env, schedulr_home):
        assert test_env.port == 7540
        assert test_env.db_path == schedulr_home / "scheduler.db"
        assert test_env.config.tasks.limit == 50

    def test_reads_values(self, schedulr_home):
        schedulr_home.mkdir(parents=True)
        config = SchedulrConfig.model_validate(
            {"server": {"port": 8080}, "db": {"file": "tasks.db"}, "tasks": {"limit": 10}}
        )
        (schedulr_home / "config.toml").write_text(render_config(config), encoding="utf-8")

        env = SchedulrEnvironment()
        assert env.port == 8080
        assert env.db_path == schedulr_home / "tasks.db"
        assert env.config.tasks.limit == 10

    def test_invalid_config_falls_back_and_is_rewritten(self, schedulr_home):
        schedulr_home.mkdir(parents=True)
        path = schedulr_home / "config.toml"
        path.write_text("[tasks]\nlimit = 0\n", encoding="utf-8")

        config = SchedulrEnvironment().load_config()
        assert config.tasks.limit == 50
        assert path.read_text(encoding="utf-8") == render_config(SchedulrConfig())

    def test_broken_toml(self, schedulr_home):
        schedulr_home.mkdir(parents=True)
        (schedulr_home / "config.toml").write_text("port = = 1", encoding="utf-8")
        assert SchedulrEnvironment().load_config() == SchedulrConfig()

    def test_todo_port_override(self, test_env, monkeypatch):
        monkeypatch.setenv("TODO_PORT", "9000")
        assert test_env.port == 9000

    @pytest.mark.parametrize("value", ["", "abc", "0", "-5"])
    def test_bad_todo_port_uses_config(self, test_env, monkeypatch, value):
        monkeypatch.setenv("TODO_PORT", value)
        assert test_env.port == 7540

    def test_todo_dbfile_override(self, test_env, monkeypatch, tmp_path, schedulr_home):
        monkeypatch.setenv("TODO_DBFILE", str(tmp_path / "abs.db"))
        assert test_env.db_path == tmp_path / "abs.db"
        monkeypatch.setenv("TODO_DBFILE", "rel.db")
        assert test_env.db_path == schedulr_home / "rel.db"


@pytest.mark.unit
def test_log_msg_writes_under_home(schedulr_home):
    from schedulr.shared import log_msg

    log_msg("hello from the test")
    logs = list((schedulr_home / "logs").glob("log_*.md"))
    assert len(logs) == 1
    text = logs[0].read_text(encoding="utf-8")
    assert "hello from the test" in text
    assert "test_log_msg_writes_under_home" in text
