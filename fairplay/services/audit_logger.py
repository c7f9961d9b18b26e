"""Audit report logging service for fairplay.

Persists fee integrity reports as JSON for offline audit.
"""

import json
import logging
import os
import secrets
import time
from pathlib import Path
from typing import List, Optional

from fairplay.models.fees import FeeReport

# Storage directory for audit reports
AUDIT_DIR = os.getenv("AUDIT_DIR", "audit_reports")

logger = logging.getLogger(__name__)


class AuditLogger:
    """Service for saving and retrieving fee audit reports."""

    def __init__(self, audit_dir: str = AUDIT_DIR):
        self.audit_dir = Path(audit_dir)
        self.audit_dir.mkdir(parents=True, exist_ok=True)

    def _get_report_path(self, report_id: str) -> Path:
        """Get file path for a report."""
        return self.audit_dir / f"{report_id}.json"

    def save_report(self, report: FeeReport, label: Optional[str] = None) -> str:
        """Save a report to disk and return its id."""
        created_at = time.time()
        report_id = f"fees_{int(created_at)}_{secrets.token_hex(4)}"
        payload = {
            "report_id": report_id,
            "created_at": created_at,
            "label": label,
            "report": report.to_dict(),
        }
        with open(self._get_report_path(report_id), 'w') as f:
            json.dump(payload, f, indent=2)
        if not report.is_correct:
            logger.warning(
                "Fee audit %s failed: actual rate %.6f vs expected %.6f (%.4f%% off)",
                report_id, report.actual_rate, report.expected_rate, report.difference_percentage,
            )
        return report_id

    def get_report(self, report_id: str) -> Optional[dict]:
        """Retrieve a report by ID."""
        path = self._get_report_path(report_id)
        if not path.exists():
            return None

        with open(path, 'r') as f:
            return json.load(f)

    def list_reports(self, limit: int = 100, offset: int = 0) -> List[dict]:
        """List stored reports with summary metadata (newest first)."""
        reports = []

        for path in sorted(self.audit_dir.glob("*.json"), key=lambda p: p.stat().st_mtime, reverse=True):
            try:
                with open(path, 'r') as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Error loading report %s: %s", path.name, e)
                continue

            report = data.get("report", {})
            reports.append({
                "report_id": data["report_id"],
                "created_at": data["created_at"],
                "label": data.get("label"),
                "is_correct": report.get("is_correct"),
                "actual_rate": report.get("actual_rate"),
                "record_count": report.get("record_count", 0),
                "anomaly_count": len(report.get("anomalies", [])),
            })

        # Apply pagination
        return reports[offset:offset + limit]
