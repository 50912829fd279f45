import json
import pytest
from PySide6.QtCore import QCoreApplication
from icon_grid_layout import IconGridStore
from settings_store import SettingsStore

DEFAULT_LAYOUT = {
    "desktop": ["A", "B", "C", "F.directory"],
    "F.directory": ["p", "q"],
}


@pytest.fixture(scope="session")
def qapp():
    return QCoreApplication.instance() or QCoreApplication([])


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path, monkeypatch):
    monkeypatch.setenv("ICON_GRID_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "user"))
    monkeypatch.delenv("ICON_GRID_DEFAULTS_DIR", raising=False)


@pytest.fixture
def defaults_dir(tmp_path):
    path = tmp_path / "defaults"
    path.mkdir()
    (path / "icon-grid-default.json").write_text(json.dumps(DEFAULT_LAYOUT), encoding="utf-8")
    return path


@pytest.fixture
def substitutions_path(tmp_path):
    path = tmp_path / "substitutions.ini"
    path.write_text(
        "[Desktop Substitutions]\n"
        "old-app.desktop = new-app.desktop\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def settings_path(tmp_path):
    return str(tmp_path / "settings.ini")


@pytest.fixture
def settings(settings_path, qapp):
    return SettingsStore(settings_path)


@pytest.fixture
def make_store(settings, defaults_dir, substitutions_path, tmp_path):
    def _make(**kwargs):
        kwargs.setdefault("personality", "default")
        kwargs.setdefault("defaults_dir", str(defaults_dir))
        kwargs.setdefault("substitutions_path", str(substitutions_path))
        kwargs.setdefault("user_data_dir", str(tmp_path / "user"))
        return IconGridStore(settings, **kwargs)
    return _make


@pytest.fixture
def default_layout():
    return json.loads(json.dumps(DEFAULT_LAYOUT))
