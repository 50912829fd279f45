import os
import configparser
from types import MappingProxyType
from config import DESKTOP_SUBSTITUTIONS_GROUP

EMPTY_SUBSTITUTIONS = MappingProxyType({})

def load_substitutions(path):
    """
    Reads `oldId = newId` pairs from the [Desktop Substitutions] group.
    Any problem with the file leaves the table empty.
    """
    if not path or not os.path.exists(path):
        print(f"Can't load desktop substitutions file: {path} not found")
        return EMPTY_SUBSTITUTIONS

    parser = configparser.ConfigParser(interpolation=None)
    parser.optionxform = str  # Desktop ids are case sensitive
    try:
        with open(path, "r", encoding="utf-8") as f:
            parser.read_file(f)
    except (OSError, UnicodeDecodeError, configparser.Error) as e:
        print(f"Can't load desktop substitutions file: {e}")
        return EMPTY_SUBSTITUTIONS

    if not parser.has_section(DESKTOP_SUBSTITUTIONS_GROUP):
        return EMPTY_SUBSTITUTIONS

    table = {}
    for old_id, new_id in parser.items(DESKTOP_SUBSTITUTIONS_GROUP):
        new_id = new_id.strip()
        if old_id and new_id:
            table[old_id] = new_id
    return MappingProxyType(table)

def replace_obsolete(substitutions, icon_id):
    return substitutions.get(icon_id, icon_id)
