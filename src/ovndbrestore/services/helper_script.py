"""Generation of the sourceable helper script for a running fleet."""

import os
import re
import shlex
from typing import Iterable, List

from ovndbrestore.errors import RestoreError
from ovndbrestore.models import Fleet, LaunchResult, Role

HELPER_PREFIX = "ovndb"
SCRIPT_MODE = 0o644

_ALIAS_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")


def alias_token(value: str) -> str:
    return _ALIAS_UNSAFE.sub("_", value)


class HelperScriptService:
    """Renders bash functions and aliases bound to the fleet's containers."""

    def __init__(self, logger, console, prefix: str = HELPER_PREFIX):
        self.logger = logger
        self.console = console
        self.prefix = prefix

    def _index_list(self, indices: Iterable[int]) -> str:
        return " ".join(str(i) for i in indices)

    def render(self, fleet: Fleet, results: List[LaunchResult], engine: str) -> str:
        p = self.prefix
        live = [result.record for result in results if result.has_container]
        live_indices = [record.index for record in live]
        nb_indices = [r.index for r in live if r.role is Role.NORTHBOUND]
        sb_indices = [r.index for r in live if r.role is Role.SOUTHBOUND]

        lines = [
            "# Generated by ovn-db-run-multiple. Regenerated on every run.",
            f"# Fleet of {len(fleet)} database(s), {len(live)} container(s). Source this file, then run {p}_show.",
            "",
            f"{p.upper()}_ENGINE={shlex.quote(engine)}",
            f"declare -a {p.upper()}_CONTAINERS {p.upper()}_HOSTS {p.upper()}_ROLES",
        ]
        for record in live:
            lines += [
                f"{p.upper()}_CONTAINERS[{record.index}]={shlex.quote(record.container_name)}",
                f"{p.upper()}_HOSTS[{record.index}]={shlex.quote(record.hostname)}",
                f"{p.upper()}_ROLES[{record.index}]={record.role.tag}",
            ]

        engine_var = f'"${p.upper()}_ENGINE"'
        containers = f"{p.upper()}_CONTAINERS"
        lines += [
            "",
            f"{p}_show() {{",
            '    printf "%-6s %-4s %-40s %s\\n" INDEX ROLE HOST CONTAINER',
            "    local i",
            f'    for i in "${{!{containers}[@]}}"; do',
            f'        printf "%-6s %-4s %-40s %s\\n" "{p}_$i" "${{{p.upper()}_ROLES[$i]}}" '
            f'"${{{p.upper()}_HOSTS[$i]}}" "${{{containers}[$i]}}"',
            "    done",
            "}",
            "",
            f"{p}_check_index() {{",
            f'    if [[ ! "$1" =~ ^[0-9]+$ ]] || [[ -z "${{{containers}[$1]+x}}" ]]; then',
            f'        echo "{p}: invalid index \'$1\'. Run {p}_show for valid indices." >&2',
            "        return 1",
            "    fi",
            "}",
            "",
            f"{p}_cmd() {{",
            f'    [[ $# -ge 2 ]] || {{ echo "usage: {p}_cmd INDEX COMMAND [ARGS...]" >&2; return 1; }}',
            "    local idx=$1",
            "    shift",
            f'    {p}_check_index "$idx" || return 1',
            "    local flags=(-i)",
            "    [[ -t 0 ]] && flags+=(-t)",
            f'    {engine_var} exec "${{flags[@]}}" "${{{containers}[$idx]}}" "$@"',
            "}",
            "",
            f"{p}_dispatch() {{",
            "    local indices=$1 i",
            "    shift",
            "    for i in $indices; do",
            f'        echo "=== {p}_$i ${{{p.upper()}_ROLES[$i]}} ${{{p.upper()}_HOSTS[$i]}}"',
            f'        {engine_var} exec "${{{containers}[$i]}}" "$@"',
            "    done",
            "}",
            "",
            f'{p}_cmd_a() {{ {p}_dispatch "{self._index_list(live_indices)}" "$@"; }}',
            f'{p}_cmd_n() {{ {p}_dispatch "{self._index_list(nb_indices)}" "$@"; }}',
            f'{p}_cmd_s() {{ {p}_dispatch "{self._index_list(sb_indices)}" "$@"; }}',
            "",
            f"{p}_clean() {{",
            "    local i",
            f'    for i in "${{!{containers}[@]}}"; do',
            f'        {engine_var} stop "${{{containers}[$i]}}"',
            "    done",
            "}",
            "",
        ]

        for record in live:
            name = shlex.quote(record.container_name)
            ctl = record.role.tooling.ctl_tool
            short_ctl = f"{record.role.tag}ctl"
            exec_prefix = f"{shlex.quote(engine)} exec -it {name}"
            lines += [
                f"{p}_{record.index}() {{ {exec_prefix} bash; }}",
                f"alias {p}_{short_ctl}_{record.index}={shlex.quote(f'{exec_prefix} {ctl}')}",
                f"alias {p}_{short_ctl}_{alias_token(record.hostname)}="
                f"{shlex.quote(f'{exec_prefix} {ctl}')}",
            ]

        return "\n".join(lines) + "\n"

    def write(self, path: str, fleet: Fleet, results: List[LaunchResult], engine: str) -> str:
        content = self.render(fleet, results, engine)
        try:
            with open(path, "w", encoding="utf-8", newline="\n") as file_obj:
                file_obj.write(content)
            os.chmod(path, SCRIPT_MODE)
        except OSError as exc:
            raise RestoreError(f"Could not write helper script '{path}': {exc}") from exc

        self.logger.info("Helper script written to %s", path)
        return path
