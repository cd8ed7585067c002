from __future__ import annotations

from datetime import date

from fastapi import APIRouter, HTTPException, Query

from payroll_console.core.reporting import slip_detail_url
from payroll_console.core.statements import detail_view
from payroll_console.infrastructure import get_erp_client

router = APIRouter(prefix="/salary-slips", tags=["salary-slips"])


@router.get("")
async def list_salary_slips(
    employee: str = Query(...),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
) -> dict:
    if (start_date is None) != (end_date is None):
        raise HTTPException(status_code=400, detail="start_date and end_date must be given together")
    client = get_erp_client()
    slips = await client.list_pay_statements(employee, start_date, end_date)
    return {
        "items": [
            {**slip.model_dump(mode="json"), "detail_url": slip_detail_url(slip.name)}
            for slip in slips
        ]
    }


@router.get("/{name:path}")
async def get_salary_slip(name: str) -> dict:
    client = get_erp_client()
    statement = await client.get_pay_statement_detail(name)
    return detail_view(statement, pdf_url=client.pay_statement_pdf_url(statement.name))
