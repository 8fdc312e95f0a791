"""Fleet run report service."""

import json
import os
import tempfile
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ovndbrestore.models import LaunchResult


class FleetReportService:
    """Collects per-database outcomes and writes them as JSON."""

    def __init__(self, report_file: Optional[str], logger):
        self.report_file = report_file
        self.logger = logger
        self.report: Dict[str, Any] = {
            "status": "running",
            "started_at": None,
            "finished_at": None,
            "settings": {},
            "databases": [],
            "helper_script": None,
            "error": None,
        }

    def start_run(self, settings: Dict[str, Any]):
        self.report["status"] = "running"
        self.report["started_at"] = self._now()
        self.report["settings"] = settings
        self.write()

    def add_result(self, result: LaunchResult):
        record = result.record
        self.report["databases"].append(
            {
                "index": record.index,
                "file": record.file_path,
                "role": record.role.tag,
                "hostname": record.hostname,
                "container": record.container_name,
                "status": result.status.value,
                "error": result.error,
            }
        )
        self.write()

    def set_helper_script(self, path: str):
        self.report["helper_script"] = path
        self.write()

    def finalize(self, status: str, error: Optional[str] = None):
        self.report["status"] = status
        self.report["finished_at"] = self._now()
        self.report["error"] = error
        self.write()

    def write(self):
        if not self.report_file:
            return

        directory = os.path.dirname(self.report_file) or "."
        temp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(prefix="fleet-report-", suffix=".json", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as file_obj:
                json.dump(self.report, file_obj, indent=2, sort_keys=True)
                file_obj.write("\n")
            os.replace(temp_path, self.report_file)
        except OSError as exc:
            self.logger.warning("Could not write report file '%s': %s", self.report_file, exc)
            if temp_path:
                try:
                    os.remove(temp_path)
                except OSError:
                    pass

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()
