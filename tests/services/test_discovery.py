import pytest

from ovndbrestore.errors import (
    DuplicateContainerError,
    HostnameNotFoundError,
    NoDatabasesFoundError,
    RestoreError,
)
from ovndbrestore.models import ROLE_FILTERS, Role
from ovndbrestore.services.discovery import DiscoveryService


class DummyLogger:
    def __init__(self):
        self.warnings = []

    def info(self, *_args, **_kwargs):
        return None

    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, message, *_args, **_kwargs):
        self.warnings.append(message)


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


def _service(logger=None):
    return DiscoveryService(logger=logger or DummyLogger(), console=DummyConsole(), prefix="ovndb")


@pytest.fixture
def gathered_dir(tmp_path, write_ovsdb):
    directory = tmp_path / "gathered"
    write_ovsdb("a_nbdb", "OVN_Northbound", hostname="worker-1", directory=directory)
    write_ovsdb("b_sbdb", "OVN_Southbound", hostname="worker-1", directory=directory, clustered=True)
    write_ovsdb("c_nbdb", "OVN_Northbound", hostname="worker-2", directory=directory)
    (directory / "README").write_text("gathered with must-gather\n", encoding="utf-8")
    (directory / "nested").mkdir()
    return directory


def test_discover_keeps_recognised_files_in_order_and_warns_on_others(gathered_dir):
    logger = DummyLogger()

    fleet = _service(logger).discover(str(gathered_dir), ROLE_FILTERS["all"])

    assert [record.index for record in fleet] == [0, 1, 2]
    assert [record.container_name for record in fleet] == [
        "ovndb_nb_worker-1",
        "ovndb_sb_worker-1",
        "ovndb_nb_worker-2",
    ]
    assert [record.role for record in fleet] == [Role.NORTHBOUND, Role.SOUTHBOUND, Role.NORTHBOUND]
    assert len(logger.warnings) == 1
    assert "README" in logger.warnings[0]


@pytest.mark.parametrize(
    "role_filter, expected",
    [
        ("n", [Role.NORTHBOUND, Role.NORTHBOUND]),
        ("s", [Role.SOUTHBOUND]),
        ("all", [Role.NORTHBOUND, Role.SOUTHBOUND, Role.NORTHBOUND]),
    ],
)
def test_discover_applies_role_filter(gathered_dir, role_filter, expected):
    fleet = _service().discover(str(gathered_dir), ROLE_FILTERS[role_filter])

    assert [record.role for record in fleet] == expected
    assert [record.index for record in fleet] == list(range(len(expected)))


def test_discover_is_deterministic(gathered_dir):
    first = _service().discover(str(gathered_dir), ROLE_FILTERS["all"])
    second = _service().discover(str(gathered_dir), ROLE_FILTERS["all"])

    assert first == second


def test_discover_records_absolute_paths(gathered_dir, monkeypatch):
    monkeypatch.chdir(gathered_dir.parent)

    fleet = _service().discover("gathered", ROLE_FILTERS["all"])

    assert fleet[0].file_path == str(gathered_dir / "a_nbdb")


def test_discover_fails_when_hostname_is_missing(tmp_path, write_ovsdb):
    write_ovsdb("nbdb", "OVN_Northbound", directory=tmp_path / "dbs")

    with pytest.raises(HostnameNotFoundError, match="host name"):
        _service().discover(str(tmp_path / "dbs"), ROLE_FILTERS["all"])


def test_discover_rejects_duplicate_container_names(tmp_path, write_ovsdb):
    directory = tmp_path / "dbs"
    write_ovsdb("one_nbdb", "OVN_Northbound", hostname="worker-1", directory=directory)
    write_ovsdb("two_nbdb", "OVN_Northbound", hostname="worker-1", directory=directory)

    with pytest.raises(DuplicateContainerError, match="ovndb_nb_worker-1"):
        _service().discover(str(directory), ROLE_FILTERS["all"])


def test_discover_raises_when_filter_leaves_nothing(tmp_path, write_ovsdb):
    directory = tmp_path / "dbs"
    write_ovsdb("nbdb", "OVN_Northbound", hostname="worker-1", directory=directory)

    with pytest.raises(NoDatabasesFoundError):
        _service().discover(str(directory), ROLE_FILTERS["s"])


def test_discover_raises_for_missing_directory(tmp_path):
    with pytest.raises(RestoreError, match="Database directory not found"):
        _service().discover(str(tmp_path / "missing"), ROLE_FILTERS["all"])


def test_discover_uses_injected_classifier(tmp_path):
    directory = tmp_path / "dbs"
    directory.mkdir()
    (directory / "x").write_text("", encoding="utf-8")

    service = DiscoveryService(
        logger=DummyLogger(),
        console=DummyConsole(),
        prefix="lab",
        classifier=lambda _path: Role.SOUTHBOUND,
        hostname_reader=lambda _path, _role: "node-9",
    )

    fleet = service.discover(str(directory), ROLE_FILTERS["all"])

    assert fleet[0].container_name == "lab_sb_node-9"
