import logging
from datetime import date
from datetime import datetime
from datetime import UTC

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.data_source import fetch_instance_counts_per_user
from backend.models import ReportRun
from backend.services.export_service import build_result_data
from backend.services.month_window import generate_month_window
from backend.services.pivot_service import InvalidRawRowError
from backend.services.pivot_service import build_pivot
from backend.settings import Settings

logger = logging.getLogger(__name__)

REPORT_CODE = "user-provisioning-history"

REPORT_DEFINITION: dict[str, str | bool] = {
    "code": REPORT_CODE,
    "name": "User Provisioning History",
    "description": "View a history of the user provisioning",
    "category": "inventory",
    "owner_only": False,
    "master_only": False,
    "supports_all_zone_types": True,
}

STATUS_GENERATING = "generating"
STATUS_READY = "ready"
STATUS_FAILED = "failed"


class ReportDataSourceError(Exception):
    """Raised when report rows cannot be loaded from the database."""


class ReportDataInvalidError(Exception):
    """Raised when loaded rows are rejected by strict validation."""


def _mark_run_failed(db: Session, report_run: ReportRun, run_id: int, message: str) -> None:
    """Move a committed run to "failed"; a broken session only gets logged."""

    try:
        db.rollback()
        report_run.status = STATUS_FAILED
        report_run.error_message = message
        report_run.finished_at = datetime.now(UTC)
        db.commit()
    except SQLAlchemyError:
        logger.exception("Could not record failure for report run %s", run_id)
        db.rollback()


def run_user_provisioning_report(
    db: Session,
    settings: Settings,
    reference_date: date | None = None,
) -> ReportRun:
    """Execute the provisioning history report and persist the result.

    The run is committed with status "generating" before rows are loaded and
    moved to "ready" once the pivot is built. When loading or validating rows
    fails, the same run is moved to "failed" and the error is raised.

    Raises:
        ReportDataSourceError: If the database rejects the run or the query.
        ReportDataInvalidError: If strict validation rejects the rows.
    """

    if reference_date is None:
        reference_date = date.today()
    window = generate_month_window(reference_date)

    report_run = ReportRun(
        report_code=REPORT_CODE,
        status=STATUS_GENERATING,
        reference_date=reference_date,
    )
    try:
        db.add(report_run)
        db.commit()
        run_id = report_run.id
    except SQLAlchemyError as exc:
        logger.exception("Could not open report run")
        db.rollback()
        raise ReportDataSourceError("Report data source query failed") from exc

    try:
        raw_rows = fetch_instance_counts_per_user(
            db,
            window,
            description=settings.audit_event_description,
        )
    except SQLAlchemyError as exc:
        logger.exception("Report run %s failed while loading rows", run_id)
        _mark_run_failed(db, report_run, run_id, "Report data source query failed")
        raise ReportDataSourceError("Report data source query failed") from exc

    try:
        payload = build_pivot(
            raw_rows,
            window,
            strict=settings.strict_row_validation,
            reconcile_totals=settings.reconcile_totals,
        )
    except InvalidRawRowError as exc:
        logger.error("Report run %s rejected rows: %s", run_id, exc)
        _mark_run_failed(db, report_run, run_id, "Report data contains invalid rows")
        raise ReportDataInvalidError("Report data contains invalid rows") from exc

    try:
        report_run.result_data = build_result_data(payload)
        report_run.status = STATUS_READY
        report_run.error_message = None
        report_run.finished_at = datetime.now(UTC)
        db.commit()
        db.refresh(report_run)
    except SQLAlchemyError as exc:
        logger.exception("Report run %s failed while storing results", run_id)
        _mark_run_failed(db, report_run, run_id, "Report result could not be stored")
        raise ReportDataSourceError("Report result could not be stored") from exc

    logger.info(
        "Report run %s ready: %d users over %s..%s",
        run_id,
        len(payload.rows),
        window[0],
        window[-1],
    )
    return report_run


def get_report_run(db: Session, run_id: int) -> ReportRun | None:
    return db.scalar(
        select(ReportRun)
        .where(ReportRun.id == run_id)
        .where(ReportRun.report_code == REPORT_CODE)
    )
