import os
import shutil
from config import DESKTOP_GRID_ID, DIRECTORY_EXT, SCHEMA_KEY, get_settings_path, get_substitutions_path
from desktop_substitutions import load_substitutions
from icon_grid_layout import icon_tree_from_value, icon_tree_to_value
from settings_store import SettingsStore

def repair_icon_tree(tree):
    """
    Drops repeated ids (the first occurrence wins) and gives folder icons
    without an entry of their own an empty one. Returns the number of fixes.
    """
    fixed = 0
    seen = set()
    for folder in list(tree):
        kept = []
        for icon in tree[folder]:
            if icon in seen:
                print(f"Removing duplicate '{icon}' from '{folder}'")
                fixed += 1
                continue
            seen.add(icon)
            kept.append(icon)
        tree[folder] = kept

    for icon in list(seen):
        if icon.endswith(DIRECTORY_EXT) and icon not in tree:
            print(f"Adding missing folder entry '{icon}'")
            tree[icon] = []
            fixed += 1
    return fixed

def fix_settings(settings_path=None, substitutions_path=None):
    settings_path = settings_path or get_settings_path()

    if not os.path.exists(settings_path):
        msg = "settings.ini not found."
        print(msg)
        return {"fixed": 0, "message": msg, "changed": False}

    print(f"Processing {settings_path}...")
    store = SettingsStore(settings_path)
    if not store.is_readable():
        msg = "settings.ini could not be read, left as is."
        print(msg)
        return {"fixed": 0, "message": msg, "changed": False}

    if not store.is_set(SCHEMA_KEY):
        msg = "No saved icon grid layout to fix."
        print(msg)
        return {"fixed": 0, "message": msg, "changed": False}

    stored = store.get(SCHEMA_KEY)
    substitutions = load_substitutions(substitutions_path or get_substitutions_path())
    tree = icon_tree_from_value(stored, substitutions, unique=False)

    if (tree and DESKTOP_GRID_ID not in tree) or (not tree and stored != {}):
        fixed = 1
        new_value = None
        print("Layout has no desktop folder, it will be reset.")
    else:
        fixed = repair_icon_tree(tree)
        new_value = icon_tree_to_value(tree)
        if new_value != stored:
            # Substitutions and dropped entries count as one fix
            fixed = max(fixed, 1)

    if fixed > 0:
        backup_path = settings_path + ".bak"
        shutil.copy2(settings_path, backup_path)
        print(f"Backed up original settings to {backup_path}")

        if new_value is None:
            store.reset(SCHEMA_KEY)
        else:
            store.set(SCHEMA_KEY, new_value)
        msg = f"Fixed {fixed} problem(s) in the icon grid layout."
        print(msg)
        return {"fixed": fixed, "message": msg, "changed": True}
    else:
        msg = "No icon grid layout problems found."
        print(msg)
        return {"fixed": 0, "message": msg, "changed": False}

if __name__ == "__main__":
    fix_settings()
