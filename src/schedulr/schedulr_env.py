from pathlib import Path
import os
import tomllib
from pydantic import BaseModel, Field, ValidationError
from typing import Optional
from jinja2 import Template
import click

from .shared import log_msg


# ─── Config Schema ─────────────────────────────────────────────────
class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(7540, ge=1, le=65535)
    web_dir: str = "./web"


class DBConfig(BaseModel):
    file: str = "scheduler.db"


class TasksConfig(BaseModel):
    limit: int = Field(50, ge=1, le=1000)


class SchedulrConfig(BaseModel):
    title: str = "Schedulr Configuration"
    server: ServerConfig = ServerConfig()
    db: DBConfig = DBConfig()
    tasks: TasksConfig = TasksConfig()


# ─── Commented Template ────────────────────────────────────
CONFIG_TEMPLATE = """\
title = "{{ title }}"

[server]
# host: str - interface the API server binds to
host = "{{ server.host }}"

# port: int - overridden by $TODO_PORT when set
port = {{ server.port }}

# web_dir: str - static files served under "/" when the
# directory exists. Relative paths are taken from the
# directory the server is started in.
web_dir = "{{ server.web_dir }}"

[db]
# file: str - sqlite database file, overridden by $TODO_DBFILE.
# Relative paths are resolved against the schedulr home.
file = "{{ db.file }}"

[tasks]
# limit: int - maximum number of tasks returned by a listing,
# nearest dates first.
limit = {{ tasks.limit }}
"""

# ─── Save Config with Comments ───────────────────────────────


def render_config(config: SchedulrConfig) -> str:
    template = Template(CONFIG_TEMPLATE)
    return template.render(**config.model_dump()).strip() + "\n"


def save_config_from_template(config: SchedulrConfig, path: Path):
    path.write_text(render_config(config), encoding="utf-8")
    log_msg(f"config with comments written to {path}")


# ─── Main Environment Class ───────────────────────────────


class SchedulrEnvironment:
    def __init__(self):
        self._home = self._resolve_home()
        self._config: Optional[SchedulrConfig] = None

    @property
    def home(self) -> Path:
        return self._home

    @property
    def config_path(self) -> Path:
        return self.home / "config.toml"

    @property
    def db_path(self) -> Path:
        override = os.getenv("TODO_DBFILE")
        path = Path(override or self.config.db.file).expanduser()
        if path.is_absolute():
            return path
        return self.home / path

    @property
    def port(self) -> int:
        try:
            port = int(os.getenv("TODO_PORT", ""))
        except ValueError:
            port = 0
        return port if port > 0 else self.config.server.port

    @property
    def web_dir(self) -> Path:
        return Path(self.config.server.web_dir).expanduser()

    def ensure(self, init_config: bool = True):
        self.home.mkdir(parents=True, exist_ok=True)

        if init_config and not self.config_path.exists():
            save_config_from_template(SchedulrConfig(), self.config_path)

    def load_config(self) -> SchedulrConfig:
        # Step 1: Create the file if it doesn't exist
        if not os.path.exists(self.config_path):
            config = SchedulrConfig()
            self.home.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(render_config(config))
            log_msg(f"created new config file at {self.config_path}")
            self._config = config
            return config

        # Step 2: Try to load and validate the config
        try:
            with open(self.config_path, "rb") as f:
                data = tomllib.load(f)
            config = SchedulrConfig.model_validate(data)
        except (ValidationError, tomllib.TOMLDecodeError) as e:
            click.echo(
                f"⚠️ Config error in {self.config_path}: {e}\nUsing defaults.", err=True
            )
            config = SchedulrConfig()

        # Step 3: Always regenerate the canonical version
        rendered = render_config(config)

        with open(self.config_path, "r", encoding="utf-8") as f:
            current_text = f.read()

        if rendered != current_text:
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(rendered)
            log_msg(f"updated {self.config_path} with any missing defaults")

        self._config = config
        return config

    @property
    def config(self) -> SchedulrConfig:
        if self._config is None:
            return self.load_config()
        return self._config

    def _resolve_home(self) -> Path:
        cwd = Path.cwd()
        if (cwd / "config.toml").exists() and (cwd / "scheduler.db").exists():
            return cwd

        env_home = os.getenv("SCHEDULR_HOME")
        if env_home:
            return Path(env_home).expanduser()

        xdg_home = os.getenv("XDG_CONFIG_HOME")
        if xdg_home:
            return Path(xdg_home).expanduser() / "schedulr"
        else:
            return Path.home() / ".config" / "schedulr"
