"""Actionable error catalog for ovndbrestore."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "db_directory_not_found": {
        "what": "Database directory not found: {path}",
        "next": "Point to the directory holding the gathered OVN database files.",
    },
    "db_file_not_found": {
        "what": "Database file not found: {path}",
        "next": "Check the path to the gathered OVN database file.",
    },
    "no_databases_found": {
        "what": "No {roles} databases found in {path}.",
        "next": "Check the directory contents or widen the role filter with `--role all`.",
    },
    "hostname_not_found": {
        "what": "Could not read the host name from {path}.",
        "next": "Make sure the file is an unmodified OVN database from an interconnect zone.",
    },
    "duplicate_container": {
        "what": "{first} and {second} both map to container {container}.",
        "next": "Move one of the files out of the directory and run again.",
    },
    "unclassified_database": {
        "what": "Could not tell whether {path} is a northbound or southbound database.",
        "next": "Pass `--role n` or `--role s` explicitly.",
    },
    "engine_not_found": {
        "what": "Container engine `{engine}` is not available.",
        "next": "Install {engine} or choose the other engine with `--engine`.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
