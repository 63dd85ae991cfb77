from datetime import datetime
from datetime import time

from sqlalchemy import extract
from sqlalchemy import func
from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.models import AuditLog
from backend.models import User
from backend.services.month_window import window_bounds
from backend.services.pivot_service import RawCountRow


def fetch_instance_counts_per_user(
    db: Session,
    window: tuple[str, ...],
    *,
    description: str,
) -> list[RawCountRow]:
    """Count matching audit events per user and calendar month inside window."""

    start_day, end_day = window_bounds(window)
    year_column = extract("year", AuditLog.date_created).label("year")
    month_column = extract("month", AuditLog.date_created).label("month")
    count_column = func.count(AuditLog.id).label("instance_count")

    statement = (
        select(User.username, year_column, month_column, count_column)
        .select_from(AuditLog)
        .join(User, AuditLog.user_id == User.id)
        .where(AuditLog.description == description)
        .where(AuditLog.date_created >= datetime.combine(start_day, time.min))
        .where(AuditLog.date_created < datetime.combine(end_day, time.min))
        .group_by(User.username, year_column, month_column)
        .order_by(count_column.desc(), User.username.asc())
    )

    return [
        RawCountRow(
            username=username,
            year_month=f"{int(year):04d}-{int(month):02d}",
            count=int(instance_count),
        )
        for username, year, month, instance_count in db.execute(statement).all()
    ]
