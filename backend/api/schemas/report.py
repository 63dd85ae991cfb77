from datetime import date
from datetime import datetime

from pydantic import BaseModel
from pydantic import ConfigDict


class MonthEntry(BaseModel):
    """Single month cell in a user's pivot row."""

    year_month: str
    count: int


class UserPivotRow(BaseModel):
    """Dense per-user row ordered by the shared month window."""

    username: str
    month_data: list[MonthEntry]
    total: int


class ReportResultData(BaseModel):
    """Report data serialized for tabular display and for charting."""

    user_json: list[UserPivotRow]
    user_json_chart: str
    year_month_list: list[str]
    year_month_list_chart: str


class ReportRunResponse(BaseModel):
    """Stored report run with its status and result data."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    report_code: str
    status: str
    reference_date: date
    result_data: ReportResultData | None
    error_message: str | None
    started_at: datetime
    finished_at: datetime | None


class ReportDefinition(BaseModel):
    code: str
    name: str
    description: str
    category: str
    owner_only: bool
    master_only: bool
    supports_all_zone_types: bool
