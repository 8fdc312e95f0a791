"""Discovery and classification of gathered database files."""

import os
from typing import Callable, Dict, FrozenSet, List, Optional

from ovndbrestore.errors import (
    DuplicateContainerError,
    HostnameNotFoundError,
    NoDatabasesFoundError,
    RestoreError,
)
from ovndbrestore.errors_catalog import actionable_error
from ovndbrestore.models import DatabaseRecord, Fleet, Role, container_name_for
from ovndbrestore.services import ovsdb_file


class DiscoveryService:
    """Builds the ordered fleet of databases found in a directory."""

    def __init__(
        self,
        logger,
        console,
        prefix: str,
        classifier: Callable[[str], Optional[Role]] = ovsdb_file.classify,
        hostname_reader: Callable[[str, Role], Optional[str]] = ovsdb_file.global_name,
    ):
        self.logger = logger
        self.console = console
        self.prefix = prefix
        self.classifier = classifier
        self.hostname_reader = hostname_reader

    def list_candidates(self, db_directory: str) -> List[str]:
        if not os.path.isdir(db_directory):
            raise RestoreError(actionable_error("db_directory_not_found", path=db_directory))

        base = os.path.abspath(db_directory)
        return [
            os.path.join(base, name)
            for name in sorted(os.listdir(base))
            if os.path.isfile(os.path.join(base, name))
        ]

    def read_hostname(self, path: str, role: Role) -> str:
        hostname = self.hostname_reader(path, role)
        if not hostname:
            raise HostnameNotFoundError(actionable_error("hostname_not_found", path=path))
        return hostname

    def discover(self, db_directory: str, roles: FrozenSet[Role]) -> Fleet:
        self.console.print(f"[blue]Scanning {db_directory} for OVN databases...[/blue]")

        records: List[DatabaseRecord] = []
        seen: Dict[str, str] = {}
        found = 0

        for path in self.list_candidates(db_directory):
            role = self.classifier(path)
            if role is None:
                self.logger.warning(actionable_error("unclassified_database", path=path))
                continue

            found += 1
            if role not in roles:
                self.logger.debug("Skipping %s database %s (filtered out)", role.tag, path)
                continue

            hostname = self.read_hostname(path, role)
            container_name = container_name_for(self.prefix, role, hostname)
            if container_name in seen:
                raise DuplicateContainerError(
                    actionable_error(
                        "duplicate_container",
                        first=seen[container_name],
                        second=path,
                        container=container_name,
                    )
                )
            seen[container_name] = path

            records.append(
                DatabaseRecord(
                    index=len(records),
                    file_path=path,
                    role=role,
                    hostname=hostname,
                    container_name=container_name,
                )
            )
            self.logger.info(
                "Found %s %s database for host %s: %s",
                "clustered" if ovsdb_file.is_clustered_file(path) else "standalone",
                role.tag,
                hostname,
                path,
            )

        if not records:
            role_names = "/".join(sorted(role.tag for role in roles))
            raise NoDatabasesFoundError(
                actionable_error("no_databases_found", roles=role_names, path=db_directory)
            )

        self.console.print(
            f"[green]Found {found} database(s), {len(records)} selected.[/green]"
        )
        return Fleet(records=tuple(records))
