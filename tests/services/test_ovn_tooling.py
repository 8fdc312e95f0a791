import subprocess

from ovndbrestore.models import Role
from ovndbrestore.services.ovn_tooling import OVN_CTL, OvnToolingService


class DummyLogger:
    def info(self, *_args, **_kwargs):
        return None


class FakeEngine:
    def __init__(self, returncode=0):
        self.returncode = returncode
        self.calls = []

    def exec(self, name, args, check=True):
        self.calls.append(("exec", name, args))
        return subprocess.CompletedProcess(args, self.returncode, stdout="", stderr="")

    def exec_detached(self, name, args):
        self.calls.append(("exec_detached", name, args))


def test_is_clustered_follows_db_is_clustered_exit_code():
    assert OvnToolingService(FakeEngine(0), DummyLogger()).is_clustered("c", "/tmp/x") is True
    assert OvnToolingService(FakeEngine(1), DummyLogger()).is_clustered("c", "/tmp/x") is False


def test_cluster_to_standalone_writes_role_database():
    engine = FakeEngine()

    OvnToolingService(engine, DummyLogger()).cluster_to_standalone("c", "/tmp/x", Role.SOUTHBOUND)

    assert engine.calls[0][2] == ["ovsdb-tool", "cluster-to-standalone", "/etc/ovn/ovnsb_db.db", "/tmp/x"]


def test_start_service_and_show_use_role_tables():
    engine = FakeEngine()
    tooling = OvnToolingService(engine, DummyLogger())

    tooling.start_service("c", Role.NORTHBOUND)
    assert tooling.show("c", Role.NORTHBOUND) is True

    assert engine.calls[0] == ("exec_detached", "c", [OVN_CTL, "run_nb_ovsdb"])
    assert engine.calls[1] == ("exec", "c", ["ovn-nbctl", "show"])
