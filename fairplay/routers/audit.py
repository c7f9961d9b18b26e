"""Fee audit router for fairplay.

Runs the fee integrity analyzer and keeps the reports for offline review.
"""

from fastapi import APIRouter, HTTPException

from fairplay.config import settings
from fairplay.errors import ConfigurationError
from fairplay.models.fees import FeeRecord
from fairplay.models.requests import FeeAuditRequest
from fairplay.models.responses import FeeReportResponse
from fairplay.services import session
from fairplay.services.fee_analyzer import analyze_fees

router = APIRouter(prefix="/audit", tags=["audit"])


@router.post("/fees", response_model=FeeReportResponse)
async def audit_fees(request: FeeAuditRequest):
    """Analyze fee records against the expected rate and persist the report.

    Without explicit records the local network's settlement records are used.
    """
    if request.records is None:
        records = session.get_network().fee_records()
    else:
        records = [FeeRecord.from_dict(r.model_dump()) for r in request.records]

    expected_rate = request.expected_rate or settings.fee_rate
    try:
        report = analyze_fees(records, expected_rate, tolerance=request.tolerance)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    report_id = session.get_audit_logger().save_report(report, label=request.label)
    return {"report_id": report_id, **report.to_dict()}


@router.get("/fees/reports")
async def list_fee_reports(limit: int = 100, offset: int = 0):
    """List stored fee reports, newest first."""
    return {"reports": session.get_audit_logger().list_reports(limit=limit, offset=offset)}


@router.get("/fees/reports/{report_id}")
async def get_fee_report(report_id: str):
    report = session.get_audit_logger().get_report(report_id)
    if report is None:
        raise HTTPException(status_code=404, detail="Report not found")
    return report
