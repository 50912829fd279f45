import sys
import argparse
from PySide6.QtCore import QCoreApplication
from config import DESKTOP_GRID_ID, get_app_display_name
from fix_settings import fix_settings
from icon_grid_layout import IconGridStore
from settings_store import SettingsStore


def build_parser():
    parser = argparse.ArgumentParser(prog="icon-grid", description="Inspect and edit the desktop icon grid layout.")
    parser.add_argument("--version", action="version", version=get_app_display_name())
    parser.add_argument("--settings", help="settings.ini to use instead of the one in the data dir")
    parser.add_argument("--personality", help="defaults variant to load when no layout is saved")
    parser.add_argument("--defaults-dir", help="directory holding icon-grid-<personality>.json files")
    parser.add_argument("--substitutions", help="desktop substitutions .ini file")
    parser.add_argument("--user-data-dir", help="where user .desktop/.directory files live")

    sub = parser.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="print the layout or one folder")
    show.add_argument("folder", nargs="?")

    sub.add_parser("apps", help="list applications in the layout")

    position = sub.add_parser("position", help="print the folder and index of an icon")
    position.add_argument("icon")

    add = sub.add_parser("add", help="add or move an icon")
    add.add_argument("icon")
    add.add_argument("--folder", default=DESKTOP_GRID_ID)
    add.add_argument("--before", help="icon to insert in front of; appends when absent")

    remove = sub.add_parser("remove", help="remove an icon")
    remove.add_argument("icon")

    reset = sub.add_parser("reset", help="go back to the default layout")
    reset.add_argument("--no-cleanup", action="store_true", help="keep user .desktop/.directory files")

    sub.add_parser("fix", help="repair the saved layout")
    sub.add_parser("watch", help="print the desktop folder whenever the layout changes")
    return parser


def print_tree(tree):
    for folder, icons in tree.items():
        print(f"{folder}:")
        for icon in icons:
            print(f"  {icon}")


def print_folder(store, folder):
    for icon in store.get_icons(folder):
        print(icon)


def run_command(args, store, app=None):
    if args.command == "show":
        if args.folder:
            print_folder(store, args.folder)
        else:
            print_tree(store.get_icon_tree())
        return 0

    if args.command == "apps":
        for icon in store.list_applications():
            print(icon)
        return 0

    if args.command == "position":
        folder, index = store.get_position_for_icon(args.icon)
        if folder is None:
            print(f"{args.icon} is not in the layout")
            return 1
        print(f"{folder} {index}")
        return 0

    if args.command == "add":
        if args.folder not in store.get_icon_tree():
            print(f"Unknown folder '{args.folder}'")
            return 1
        store.reposition_icon(args.icon, args.before, args.folder)
        return 0

    if args.command == "remove":
        if not store.has_icon(args.icon):
            print(f"{args.icon} is not in the layout")
            return 1
        store.remove_icon(args.icon)
        return 0

    if args.command == "reset":
        if args.no_cleanup:
            store.reset_desktop(cleanup=False)
            return 0
        store.cleanup_finished.connect(lambda _result: app.quit())
        store.reset_desktop()
        app.exec()
        store.wait_for_cleanup()
        return 0

    if args.command == "watch":
        def _on_changed():
            print("--")
            print_folder(store, DESKTOP_GRID_ID)

        store.settings.watch()
        store.changed.connect(_on_changed)
        print_folder(store, DESKTOP_GRID_ID)
        return app.exec()

    raise ValueError(f"Unknown command {args.command}")


def main(argv=None):
    args = build_parser().parse_args(sys.argv[1:] if argv is None else argv)

    if args.command == "fix":
        fix_settings(args.settings, args.substitutions)
        return 0

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    settings = SettingsStore(args.settings)
    store = IconGridStore(
        settings,
        personality=args.personality,
        defaults_dir=args.defaults_dir,
        substitutions_path=args.substitutions,
        user_data_dir=args.user_data_dir,
    )
    return run_command(args, store, app)


if __name__ == "__main__":
    sys.exit(main())
