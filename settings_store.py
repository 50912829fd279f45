import os
import json
import tempfile
import configparser
from PySide6.QtCore import QObject, Signal, QFileSystemWatcher
from config import SETTINGS_SECTION, get_settings_path


class SettingsStore(QObject):
    """
    JSON values kept under one section of settings.ini.

    Every write saves the whole file and emits `changed(key)` before
    returning, so listeners see their own writes too.
    """
    changed = Signal(str)

    def __init__(self, path=None, parent=None):
        super().__init__(parent)
        self.path = os.path.abspath(path or get_settings_path())
        self._watcher = None
        self._snapshot = self._read_section()

    def _read_config(self):
        """
        Returns (config, readable). An unreadable file gives an empty config
        so callers never see half-parsed values.
        """
        config = configparser.ConfigParser(interpolation=None)
        config.optionxform = str  # Preserve case
        if not os.path.exists(self.path):
            return config, True
        try:
            config.read(self.path, encoding="utf-8")
        except (OSError, UnicodeDecodeError, configparser.Error) as e:
            print(f"Error reading {self.path}: {e}")
            config = configparser.ConfigParser(interpolation=None)
            config.optionxform = str
            return config, False
        return config, True

    def is_readable(self):
        return self._read_config()[1]

    def _read_section(self):
        config, _readable = self._read_config()
        if not config.has_section(SETTINGS_SECTION):
            return {}
        return dict(config.items(SETTINGS_SECTION))

    def _write_config(self, config):
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".settings-", suffix=".ini", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                config.write(f)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        self._snapshot = self._read_section()

    def is_set(self, key):
        config, _readable = self._read_config()
        return config.has_option(SETTINGS_SECTION, key)

    def get(self, key, default=None):
        config, _readable = self._read_config()
        raw = config.get(SETTINGS_SECTION, key, fallback=None)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError as e:
            print(f"Ignoring unreadable value for '{key}' in {self.path}: {e}")
            return default

    def set(self, key, value):
        """Returns False, leaving the file alone, when it could not be read."""
        config, readable = self._read_config()
        if not readable:
            print(f"Not saving '{key}': {self.path} could not be read")
            return False
        if not config.has_section(SETTINGS_SECTION):
            config.add_section(SETTINGS_SECTION)
        config.set(SETTINGS_SECTION, key, json.dumps(value))
        self._write_config(config)
        self.changed.emit(key)
        return True

    def reset(self, key):
        config, readable = self._read_config()
        if not readable:
            print(f"Not resetting '{key}': {self.path} could not be read")
            return False
        if config.has_option(SETTINGS_SECTION, key):
            config.remove_option(SETTINGS_SECTION, key)
            self._write_config(config)
        self.changed.emit(key)
        return True

    def reload(self):
        """Pick up edits made to the file by someone else."""
        previous = self._snapshot
        current = self._read_section()
        self._snapshot = current
        changed_keys = [k for k in set(previous) | set(current) if previous.get(k) != current.get(k)]
        for key in sorted(changed_keys):
            self.changed.emit(key)
        return changed_keys

    def watch(self):
        if self._watcher is not None:
            return self._watcher
        self._watcher = QFileSystemWatcher(self)
        self._watcher.addPath(os.path.dirname(os.path.abspath(self.path)))
        if os.path.exists(self.path):
            self._watcher.addPath(self.path)
        self._watcher.fileChanged.connect(self._on_file_changed)
        self._watcher.directoryChanged.connect(self._on_file_changed)
        return self._watcher

    def _on_file_changed(self, _path):
        # os.replace swaps the inode, so the file has to be re-added
        if os.path.exists(self.path) and self.path not in self._watcher.files():
            self._watcher.addPath(self.path)
        self.reload()
