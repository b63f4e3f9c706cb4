from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from dirpilot.app import App
from dirpilot.config import Config, default_config
from dirpilot.models import Entry, Listing
from dirpilot.pipe import Session


@pytest.fixture
def fake_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    return home


@pytest.fixture
def runtime_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    runtime = tmp_path / "runtime"
    runtime.mkdir()
    monkeypatch.setenv("XDG_RUNTIME_DIR", str(runtime))
    return runtime


@pytest.fixture
def config() -> Config:
    return default_config()


@pytest.fixture
def make_app(tmp_path: Path, runtime_dir: Path, config: Config) -> Callable[..., App]:
    def factory(pwd: Path | None = None, *, config: Config = config) -> App:
        session = Session.create(runtime_dir=runtime_dir, pid=4242)
        return App(config, pwd or tmp_path, session)

    return factory


def make_entry(parent: str, name: str, **overrides: object) -> Entry:
    values: dict[str, object] = {
        "parent": parent,
        "relative_path": name,
        "absolute_path": f"{parent.rstrip('/')}/{name}",
    }
    values.update(overrides)
    return Entry(**values)  # type: ignore[arg-type]


def make_listing(parent: str, *names: str, focus: int = 0) -> Listing:
    return Listing(parent, tuple(make_entry(parent, name) for name in names), focus)


@pytest.fixture
def app_with_listing(make_app: Callable[..., App], tmp_path: Path) -> App:
    """An app whose working directory holds ``a``, ``b`` and ``c``."""

    app = make_app()
    app.add_directory(app.pwd, make_listing(app.pwd, "a", "b", "c"))
    app.msg_out.clear()
    return app
