import os
import sys
import shutil
import configparser

APP_NAME = "Icon Grid"
APP_VERSION = "1.0.0"

DESKTOP_GRID_ID = "desktop"

SCHEMA_KEY = "icon-grid-layout"
SETTINGS_SECTION = "Shell"
OPTIONS_SECTION = "Settings"

DESKTOP_EXT = ".desktop"
DIRECTORY_EXT = ".directory"
APP_DIR_NAME = "applications"
FOLDER_DIR_NAME = "desktop-directories"

DEFAULT_CONFIG_NAME_BASE = "icon-grid"
DEFAULT_PERSONALITY = "default"

DESKTOP_SUBSTITUTIONS_GROUP = "Desktop Substitutions"
SUBSTITUTIONS_FILE_NAME = "desktop-substitutions.ini"

def get_base_dir():
    # When frozen, assets live alongside the .exe.
    if getattr(sys, "frozen", False):
        return os.path.dirname(sys.executable)
    return os.path.dirname(os.path.abspath(__file__))

def get_data_dir():
    data_dir = os.environ.get("ICON_GRID_DATA_DIR") or os.path.join(get_base_dir(), "data")
    os.makedirs(data_dir, exist_ok=True)
    return data_dir

def get_defaults_dir():
    override = os.environ.get("ICON_GRID_DEFAULTS_DIR")
    if override:
        return override
    return os.path.join(get_data_dir(), "personality-defaults")

def get_substitutions_path():
    return os.path.join(get_data_dir(), SUBSTITUTIONS_FILE_NAME)

def get_user_data_dir():
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return xdg
    return os.path.join(os.path.expanduser("~"), ".local", "share")

def get_settings_path():
    data_dir = get_data_dir()
    new_path = os.path.join(data_dir, "settings.ini")
    legacy_path = os.path.join(get_base_dir(), "settings.ini")
    if not os.path.exists(new_path) and os.path.exists(legacy_path):
        try:
            os.replace(legacy_path, new_path)
        except OSError:
            try:
                shutil.copy2(legacy_path, new_path)
            except OSError as e:
                print(f"Could not migrate legacy settings {legacy_path}: {e}")
    return new_path

def get_defaults_candidates(personality, defaults_dir=None):
    """
    Paths tried, in order, when the stored layout is empty. The generic
    file is only appended for non-default personalities.
    """
    defaults_dir = defaults_dir or get_defaults_dir()
    personality = (personality or "").strip() or DEFAULT_PERSONALITY
    paths = [os.path.join(defaults_dir, f"{DEFAULT_CONFIG_NAME_BASE}-{personality}.json")]
    if personality != DEFAULT_PERSONALITY:
        paths.append(os.path.join(defaults_dir, f"{DEFAULT_CONFIG_NAME_BASE}-{DEFAULT_PERSONALITY}.json"))
    return paths

def get_personality(settings_path=None):
    path = settings_path or get_settings_path()
    config = configparser.ConfigParser(interpolation=None)
    config.optionxform = str
    try:
        config.read(path, encoding="utf-8")
    except (OSError, UnicodeDecodeError, configparser.Error) as e:
        print(f"Error reading {path}: {e}")
        return DEFAULT_PERSONALITY
    value = config.get(OPTIONS_SECTION, "Personality", fallback="").strip()
    return value or DEFAULT_PERSONALITY

def get_app_display_name():
    return f"{APP_NAME} v{APP_VERSION}"
