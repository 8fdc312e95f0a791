import json

import pytest

GLOBAL_TABLES = {"OVN_Northbound": "NB_Global", "OVN_Southbound": "SB_Global"}


def _schema(schema_name):
    table = GLOBAL_TABLES[schema_name]
    return {
        "name": schema_name,
        "version": "7.3.0",
        "tables": {
            table: {
                "columns": {
                    "name": {"type": "string"},
                    "options": {"type": {"key": "string", "value": "string", "min": 0, "max": "unlimited"}},
                },
                "isRoot": True,
                "maxRows": 1,
            }
        },
    }


def _global_row(hostname, as_column=False):
    if as_column:
        return {"name": hostname}
    return {"name": "", "options": ["map", [["name", hostname], ["e2e", "true"]]]}


@pytest.fixture
def write_ovsdb(tmp_path):
    """Writes a small standalone or clustered OVSDB file and returns its path."""

    def _write(
        filename,
        schema_name,
        hostname=None,
        clustered=False,
        directory=None,
        as_column=False,
    ):
        target_dir = directory or tmp_path
        target_dir.mkdir(parents=True, exist_ok=True)
        table = GLOBAL_TABLES[schema_name]
        rows = {"2f0e9c46-2b8d-4b6a-8f52-6e2b1f3f9a11": _global_row(hostname, as_column)} if hostname else {}

        if clustered:
            header = {
                "cluster_id": "5d8f3c3e-1111-4c1c-9d4f-000000000001",
                "local_address": "ssl:10.0.0.1:9643",
                "name": schema_name,
                "prev_data": [_schema(schema_name), {table: rows} if rows else {}],
                "prev_index": 1,
                "prev_term": 1,
                "server_id": "0a1b2c3d-0000-4000-8000-000000000002",
            }
            entry = {"term": 2, "index": 2, "data": [None, {"_comment": "noop"}], "eid": "e1"}
            records = [("OVSDB CLUSTER", header), ("OVSDB CLUSTER", entry)]
        else:
            records = [("OVSDB JSON", _schema(schema_name))]
            if rows:
                records.append(("OVSDB JSON", {table: rows, "_date": 1700000000000}))

        lines = []
        for magic, payload in records:
            body = json.dumps(payload)
            lines.append(f"{magic} {len(body)} 0000000000000000000000000000000000000000")
            lines.append(body)

        path = target_dir / filename
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write
