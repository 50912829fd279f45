import json
from PySide6.QtCore import QObject, Signal, QThread
from config import (
    DESKTOP_GRID_ID,
    DIRECTORY_EXT,
    SCHEMA_KEY,
    get_defaults_candidates,
    get_personality,
    get_substitutions_path,
)
from desktop_substitutions import EMPTY_SUBSTITUTIONS, load_substitutions, replace_obsolete
from desktop_cleanup import DesktopCleanupWorker


def icon_tree_from_value(value, substitutions=EMPTY_SUBSTITUTIONS, unique=True):
    """
    Turns a stored layout into a {folder: [icon ids]} tree, rewriting
    obsolete ids on the way in. Entries that are not a string mapped to a
    list are dropped, as are non-string icon ids. With `unique`, an id seen
    earlier in the layout is dropped, so each icon sits in one place.
    """
    if value is None:
        return {}
    if not isinstance(value, dict):
        print(f"Ignoring icon grid layout of type {type(value).__name__}")
        return {}

    tree = {}
    seen = set()
    for folder, children in value.items():
        if not isinstance(folder, str) or not isinstance(children, list):
            continue
        icons = []
        for icon in children:
            if not isinstance(icon, str):
                continue
            icon = replace_obsolete(substitutions, icon)
            if unique:
                if icon in seen:
                    continue
                seen.add(icon)
            icons.append(icon)
        tree[folder] = icons
    return tree


def icon_tree_to_value(tree):
    return {folder: list(children) for folder, children in tree.items()}


def parse_layout_document(payload):
    if not isinstance(payload, dict):
        raise ValueError("expected an object of folder -> list of ids")
    for folder, children in payload.items():
        if not isinstance(children, list) or not all(isinstance(c, str) for c in children):
            raise ValueError(f"folder '{folder}' must hold a list of strings")
    return {folder: list(children) for folder, children in payload.items()}


def load_default_icons(personality, defaults_dir=None):
    tree = None
    for path in get_defaults_candidates(personality, defaults_dir):
        try:
            with open(path, "r", encoding="utf-8") as f:
                tree = parse_layout_document(json.load(f))
            break
        except (OSError, ValueError) as e:
            # Reported even when the fallback file loads
            print(f"Failed to read icon grid defaults file {path}: {e}")

    if not tree:
        print("No icon grid defaults found!")
        tree = {DESKTOP_GRID_ID: []}
    return tree


class IconGridStore(QObject):
    changed = Signal()
    cleanup_finished = Signal(dict)

    def __init__(self, settings, personality=None, defaults_dir=None,
                 substitutions_path=None, user_data_dir=None, parent=None):
        super().__init__(parent)
        self.settings = settings
        self.personality = personality
        self.defaults_dir = defaults_dir
        self.user_data_dir = user_data_dir
        self._icon_tree = {}
        self._cleanup_thread = None
        self._cleanup_worker = None

        self._substitutions = load_substitutions(substitutions_path or get_substitutions_path())

        # Connected first so a reset issued by the initial load is seen
        self.settings.changed.connect(self._on_settings_changed)
        self._update_icon_tree()

    def _on_settings_changed(self, key):
        if key != SCHEMA_KEY:
            return
        self._update_icon_tree()
        self.changed.emit()

    def _update_icon_tree(self):
        all_icons = self.settings.get(SCHEMA_KEY)
        icon_tree = icon_tree_from_value(all_icons, self._substitutions)

        if icon_tree and DESKTOP_GRID_ID not in icon_tree:
            # The reset notification reloads the tree
            print("Corrupted icon-grid-layout detected, resetting to defaults")
            self.settings.reset(SCHEMA_KEY)
            return

        if not icon_tree:
            icon_tree = icon_tree_from_value(self._get_default_icons(), self._substitutions)

        self._icon_tree = icon_tree

    def _get_default_icons(self):
        personality = self.personality or get_personality(getattr(self.settings, "path", None))
        return load_default_icons(personality, self.defaults_dir)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------
    def has_icon(self, icon_id):
        return any(icon_id in icons for icons in self._icon_tree.values())

    def get_icons(self, folder_id):
        return list(self._icon_tree.get(folder_id, []))

    def get_icon_tree(self):
        return icon_tree_to_value(self._icon_tree)

    def icon_is_folder(self, icon_id):
        return bool(icon_id) and isinstance(icon_id, str) and icon_id.endswith(DIRECTORY_EXT)

    def list_applications(self):
        return [icon for icons in self._icon_tree.values() for icon in icons
                if not self.icon_is_folder(icon)]

    def get_position_for_icon(self, icon_id):
        for folder_id, icons in self._icon_tree.items():
            if icon_id in icons:
                return folder_id, icons.index(icon_id)
        return None, -1

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------
    def append_icon(self, icon_id, folder_id):
        self.reposition_icon(icon_id, None, folder_id)

    def remove_icon(self, icon_id):
        self.reposition_icon(icon_id, None, None)

    def reposition_icon(self, icon_id, insert_id, new_folder):
        """
        Moves `icon_id` in front of `insert_id` inside `new_folder`, or to
        its end when `insert_id` is not there. A `new_folder` of None removes
        the icon. Unknown destination folders are ignored.

        The whole layout is written back as one value.
        """
        if new_folder is not None and new_folder not in self._icon_tree:
            return

        is_folder = self.icon_is_folder(icon_id)
        existing = False
        for icons in self._icon_tree.values():
            if icon_id in icons:
                icons.remove(icon_id)
                existing = True
                break

        if new_folder is not None:
            self._insert_icon(self._icon_tree[new_folder], icon_id, insert_id)
            if is_folder and icon_id not in self._icon_tree:
                self._icon_tree[icon_id] = []
        elif is_folder and existing:
            # Children are not moved to another folder
            self._icon_tree.pop(icon_id, None)

        if not self.settings.set(SCHEMA_KEY, icon_tree_to_value(self._icon_tree)):
            # Nothing was saved, go back to what storage holds
            self._update_icon_tree()

    # Positions are given by id rather than index because the stored layout
    # may list apps that are not installed on this system.
    def _insert_icon(self, icons, icon_id, insert_id):
        insert_idx = -1
        if insert_id is not None and insert_id in icons:
            insert_idx = icons.index(insert_id)

        # Dropped past the last icon, or asked to append
        if insert_idx == -1:
            insert_idx = len(icons)

        icons.insert(insert_idx, icon_id)

    # -------------------------------------------------------------------------
    # Reset
    # -------------------------------------------------------------------------
    def reset_desktop(self, cleanup=True):
        self.settings.reset(SCHEMA_KEY)
        if cleanup:
            self.start_cleanup()

    def start_cleanup(self):
        """
        Removes user desktop files on a worker thread. The outcome arrives
        through `cleanup_finished`; nothing waits for it.

        Needs a running Qt event loop on the calling thread: the thread is
        stopped and `cleanup_finished` delivered through queued connections,
        so without one `is_cleanup_running()` stays True.
        """
        if self.is_cleanup_running():
            return False

        self._cleanup_thread = QThread(self)
        self._cleanup_worker = DesktopCleanupWorker(self.user_data_dir)
        self._cleanup_worker.moveToThread(self._cleanup_thread)
        self._cleanup_thread.started.connect(self._cleanup_worker.run)
        self._cleanup_worker.finished.connect(self._cleanup_thread.quit)
        self._cleanup_worker.error.connect(self._cleanup_thread.quit)
        self._cleanup_worker.finished.connect(self._cleanup_worker.deleteLater)
        self._cleanup_worker.error.connect(self._cleanup_worker.deleteLater)
        self._cleanup_worker.finished.connect(self._on_cleanup_finished)
        self._cleanup_worker.error.connect(self._on_cleanup_error)
        self._cleanup_thread.start()
        return True

    def is_cleanup_running(self):
        return self._cleanup_thread is not None and self._cleanup_thread.isRunning()

    def wait_for_cleanup(self, msecs=5000):
        if self._cleanup_thread is None:
            return True
        return self._cleanup_thread.wait(msecs)

    def _on_cleanup_finished(self, result):
        print(result.get("message", ""))
        self.cleanup_finished.emit(result)

    def _on_cleanup_error(self, error):
        print(f"Error removing user desktop files: {error}")
        self.cleanup_finished.emit({"removed": 0, "failed": 0, "message": f"Cleanup failed: {error}"})
