import json

from ovndbrestore.models import DatabaseRecord, LaunchResult, LaunchStatus, Role
from ovndbrestore.services.report import FleetReportService


class DummyLogger:
    def warning(self, *_args, **_kwargs):
        return None


def test_report_service_writes_per_database_status(tmp_path):
    report_file = tmp_path / "fleet.json"
    service = FleetReportService(str(report_file), logger=DummyLogger())
    record = DatabaseRecord(0, "/data/nbdb", Role.NORTHBOUND, "worker-1", "ovndb_nb_worker-1")

    service.start_run({"engine": "docker"})
    service.add_result(LaunchResult(record=record, status=LaunchStatus.TIMEOUT))
    service.set_helper_script("/tmp/ovndb_helpers.sh")
    service.finalize("success")

    data = json.loads(report_file.read_text(encoding="utf-8"))

    assert data["status"] == "success"
    assert data["settings"] == {"engine": "docker"}
    assert data["databases"][0]["status"] == "timeout"
    assert data["databases"][0]["container"] == "ovndb_nb_worker-1"
    assert data["helper_script"] == "/tmp/ovndb_helpers.sh"


def test_report_service_without_file_writes_nothing(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    service = FleetReportService(None, logger=DummyLogger())

    service.start_run({})
    service.finalize("failed", error="boom")

    assert list(tmp_path.iterdir()) == []


def test_report_service_only_warns_when_directory_cannot_be_created(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")
    warnings = []

    class RecordingLogger:
        def warning(self, *args, **_kwargs):
            warnings.append(args)

    service = FleetReportService(str(blocker / "fleet.json"), logger=RecordingLogger())

    service.start_run({})
    service.finalize("failed", error="boom")

    assert len(warnings) == 2
    assert "Could not write report file" in warnings[0][0]
    assert blocker.read_text(encoding="utf-8") == ""
