"""Read-only access to gathered OVSDB files.

An OVSDB file is a sequence of records, each one an ``OVSDB JSON`` or
``OVSDB CLUSTER`` header line followed by a single line of JSON. The first
record holds the schema (standalone) or the cluster header; both carry the
database ``name``. Later records are transactions (standalone) or raft log
entries whose ``data`` / ``prev_data`` hold table updates.
"""

import json
import logging
import os
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ovndbrestore.models import ROLE_TOOLING, Role

HEADER_PREFIX = "OVSDB "
CLUSTER_HEADER = "OVSDB CLUSTER"

_FILENAME_MARKERS = {
    Role.NORTHBOUND: ("nbdb", "ovnnb", "_nb"),
    Role.SOUTHBOUND: ("sbdb", "ovnsb", "_sb"),
}

logger = logging.getLogger("ovndbrestore")


def iter_records(path: str) -> Iterator[Any]:
    """Yields the decoded JSON records of an OVSDB file, skipping garbage lines."""
    with open(path, "r", encoding="utf-8", errors="replace") as file_obj:
        for line in file_obj:
            line = line.strip()
            if not line or line.startswith(HEADER_PREFIX):
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                logger.debug("Skipping undecodable line in %s", path)


def first_record(path: str) -> Optional[Any]:
    try:
        for record in iter_records(path):
            return record
    except OSError as exc:
        logger.warning("Could not read %s: %s", path, exc)
    return None


def is_clustered_file(path: str) -> bool:
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as file_obj:
            return file_obj.readline().startswith(CLUSTER_HEADER)
    except OSError:
        return False


def classify(path: str) -> Optional[Role]:
    """Returns the database role of ``path``, or None when it cannot be told."""
    record = first_record(path)

    if isinstance(record, dict):
        name = record.get("name")
        for role, tooling in ROLE_TOOLING.items():
            if name == tooling.schema_name:
                return role

    if record is not None:
        text = json.dumps(record)
        matches = [role for role, tooling in ROLE_TOOLING.items() if tooling.schema_name in text]
        if len(matches) == 1:
            return matches[0]

    filename = os.path.basename(path).lower()
    matches = [
        role for role, markers in _FILENAME_MARKERS.items() if any(m in filename for m in markers)
    ]
    if len(matches) == 1:
        return matches[0]
    return None


def ovsdb_map(value: Any) -> Dict[str, Any]:
    """Converts an OVSDB ``["map", [[k, v], ...]]`` value to a dict."""
    if isinstance(value, list) and len(value) == 2 and value[0] == "map":
        return {key: val for key, val in value[1]}
    return {}


def _is_schema(node: Dict[str, Any]) -> bool:
    return "tables" in node and "version" in node


def _table_updates(node: Any, table: str) -> Iterator[Tuple[Dict[str, Any], bool]]:
    """Yields ``(row updates, is_diff)`` for every transaction touching ``table``."""
    if isinstance(node, dict):
        if _is_schema(node):
            return
        for key, value in node.items():
            if key == table and isinstance(value, dict):
                yield value, node.get("_is_diff") is True
            else:
                yield from _table_updates(value, table)
    elif isinstance(node, list):
        for item in node:
            yield from _table_updates(item, table)


def _set_members(value: Any) -> List[Any]:
    if isinstance(value, list) and len(value) == 2 and value[0] == "set":
        return list(value[1])
    return [value]


def _apply_diff(old: Any, diff: Any) -> Any:
    """Applies a map or set column diff to its previous value.

    Map: a new key is added, a changed value replaces the old one and an
    identical key/value pair removes the key. Set: each member is toggled.
    Anything else is a plain replacement.
    """
    if isinstance(diff, list) and len(diff) == 2 and diff[0] == "map":
        merged = ovsdb_map(old)
        for key, value in diff[1]:
            if key in merged and merged[key] == value:
                del merged[key]
            else:
                merged[key] = value
        return ["map", [[key, value] for key, value in merged.items()]]

    if isinstance(diff, list) and len(diff) == 2 and diff[0] == "set" and old is not None:
        members = _set_members(old)
        for member in diff[1]:
            if member in members:
                members.remove(member)
            else:
                members.append(member)
        return ["set", members]

    return diff


def iter_table_states(path: str, table: str) -> Iterator[Dict[str, Dict[str, Any]]]:
    """Applies the updates of ``table`` in file order, yielding the rows after each one.

    Transactions flagged ``_is_diff`` (OVS 2.15 and later) carry map and set
    columns of existing rows as diffs; earlier files carry full values.
    """
    rows: Dict[str, Dict[str, Any]] = {}
    for record in iter_records(path):
        for update, is_diff in _table_updates(record, table):
            for row_uuid, row in update.items():
                if row is None:
                    rows.pop(row_uuid, None)
                elif not isinstance(row, dict):
                    continue
                elif is_diff and row_uuid in rows:
                    current = rows[row_uuid]
                    for column, value in row.items():
                        current[column] = _apply_diff(current.get(column), value)
                else:
                    rows.setdefault(row_uuid, {}).update(row)
            yield rows


def replay_table(path: str, table: str) -> Dict[str, Dict[str, Any]]:
    """Returns the final rows of ``table`` after replaying the whole file."""
    rows: Dict[str, Dict[str, Any]] = {}
    for rows in iter_table_states(path, table):
        pass
    return rows


def _row_name(row: Dict[str, Any]) -> Optional[str]:
    name = ovsdb_map(row.get("options")).get("name") or row.get("name")
    if isinstance(name, str) and name.strip():
        return name.strip()
    return None


def global_name(path: str, role: Role) -> Optional[str]:
    """Returns the host name declared in the database's global record.

    The current value wins; when a later update dropped it, the last name
    seen in the file is used.
    """
    current = last_seen = None
    for rows in iter_table_states(path, role.tooling.global_table):
        current = None
        for row in rows.values():
            current = _row_name(row)
            if current:
                last_seen = current
                break
    return current or last_seen
