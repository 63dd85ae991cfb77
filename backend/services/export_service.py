import json

from backend.services.pivot_service import ReportPayload


def payload_to_rows(payload: ReportPayload) -> list[dict[str, object]]:
    """Flatten pivot rows into plain dicts for tabular display."""

    return [
        {
            "username": row.username,
            "month_data": [
                {"year_month": entry.year_month, "count": entry.count}
                for entry in row.month_data
            ],
            "total": row.total,
        }
        for row in payload.rows
    ]


def build_result_data(payload: ReportPayload) -> dict[str, object]:
    """Serialize a payload for both the table and the chart consumers."""

    rows = payload_to_rows(payload)
    year_months = list(payload.month_window)
    return {
        "user_json": rows,
        "user_json_chart": json.dumps(rows),
        "year_month_list": year_months,
        "year_month_list_chart": json.dumps(year_months),
    }
