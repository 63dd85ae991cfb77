from datetime import date

from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from fastapi import Query
from sqlalchemy import text
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from backend.api.schemas.report import ReportDefinition
from backend.api.schemas.report import ReportRunResponse
from backend.db import get_db
from backend.services.report_service import REPORT_DEFINITION
from backend.services.report_service import ReportDataInvalidError
from backend.services.report_service import ReportDataSourceError
from backend.services.report_service import get_report_run
from backend.services.report_service import run_user_provisioning_report
from backend.settings import Settings


router = APIRouter()


@router.get("/")
async def root() -> dict[str, str]:
    """Return a basic service greeting."""

    return {"message": "User Provisioning History"}


@router.get("/health/live")
def health_live() -> dict[str, str]:
    """Return liveness probe response for health checks."""

    return {"status": "ok"}


@router.get("/health/db")
def health_db() -> dict[str, str]:
    """Check that the configured database accepts connections."""

    settings = Settings()
    if not settings.database_url:
        raise HTTPException(status_code=500, detail="DATABASE_URL is not set")

    try:
        engine = create_engine(settings.database_url)
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        engine.dispose()
    except Exception as exc:
        raise HTTPException(
            status_code=500, detail="Database connection failed"
        ) from exc

    return {"status": "ok"}


@router.get("/reports")
def list_reports() -> list[ReportDefinition]:
    """Return the reports this service can run."""

    return [ReportDefinition(**REPORT_DEFINITION)]


@router.get("/reports/user-provisioning-history")
def get_report_definition() -> ReportDefinition:
    return ReportDefinition(**REPORT_DEFINITION)


@router.post("/reports/user-provisioning-history/runs", status_code=201)
def create_report_run(
    as_of: date | None = Query(default=None),
    db: Session = Depends(get_db),
) -> ReportRunResponse:
    """Run the report for the 12 months before as_of (defaults to today)."""

    settings = Settings()

    try:
        report_run = run_user_provisioning_report(
            db=db,
            settings=settings,
            reference_date=as_of,
        )
    except ReportDataSourceError as exc:
        raise HTTPException(
            status_code=502, detail="Report data source query failed"
        ) from exc
    except ReportDataInvalidError as exc:
        raise HTTPException(
            status_code=502, detail="Report data contains invalid rows"
        ) from exc

    return ReportRunResponse.model_validate(report_run)


@router.get("/reports/runs/{run_id}")
def read_report_run(run_id: int, db: Session = Depends(get_db)) -> ReportRunResponse:
    report_run = get_report_run(db, run_id)
    if report_run is None:
        raise HTTPException(status_code=404, detail="report run not found")
    return ReportRunResponse.model_validate(report_run)
