import os
from PySide6.QtCore import QObject, Signal
from config import APP_DIR_NAME, FOLDER_DIR_NAME, DESKTOP_EXT, DIRECTORY_EXT, get_user_data_dir

# Subdirectory of the user data dir -> extension of the files removed from it
CLEANUP_TARGETS = (
    (APP_DIR_NAME, DESKTOP_EXT),
    (FOLDER_DIR_NAME, DIRECTORY_EXT),
)

def _remove_files(directory, extension):
    removed = 0
    failed = 0
    try:
        entries = list(os.scandir(directory))
    except FileNotFoundError:
        return 0, 0
    except OSError as e:
        print(f"Could not list {directory}: {e}")
        return 0, 1

    for entry in entries:
        if not entry.name.endswith(extension):
            continue
        try:
            if entry.is_dir(follow_symlinks=False):
                continue
            os.remove(entry.path)
            removed += 1
        except OSError as e:
            print(f"Could not remove {entry.path}: {e}")
            failed += 1
    return removed, failed

def remove_user_desktop_files(user_data_dir=None):
    """
    Deletes user-customized .desktop and .directory files so the default
    names come back. Failures are reported per file and never raised.
    """
    user_data_dir = user_data_dir or get_user_data_dir()
    removed = 0
    failed = 0
    for dir_name, extension in CLEANUP_TARGETS:
        r, f = _remove_files(os.path.join(user_data_dir, dir_name), extension)
        removed += r
        failed += f

    msg = f"Removed {removed} user desktop file(s)."
    if failed:
        msg += f" {failed} could not be removed."
    return {"removed": removed, "failed": failed, "message": msg}


class DesktopCleanupWorker(QObject):
    finished = Signal(dict)
    error = Signal(str)

    def __init__(self, user_data_dir=None):
        super().__init__()
        self.user_data_dir = user_data_dir

    def run(self):
        try:
            result = remove_user_desktop_files(self.user_data_dir)
            self.finished.emit(result)
        except Exception as e:
            self.error.emit(str(e))
