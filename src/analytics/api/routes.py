"""FastAPI routes for the Analytics domain (admin only)."""

from fastapi import APIRouter, Depends

from analytics.api.schemas import ReportResponse
from analytics.pipelines import SalesPeriod
from analytics.reports import ReportingService
from identity.principal import Principal, current_principal
from shared.dates import parse_date_range

analytics_router = APIRouter(prefix="/analytics", tags=["analytics"])


@analytics_router.get("/dashboard", response_model=ReportResponse)
async def dashboard(
    start_date: str | None = None,
    end_date: str | None = None,
    principal: Principal = Depends(current_principal),
) -> ReportResponse:
    report = ReportingService().dashboard(principal, parse_date_range(start_date, end_date))
    return ReportResponse(data=report)


@analytics_router.get("/users", response_model=ReportResponse)
async def user_report(
    start_date: str | None = None,
    end_date: str | None = None,
    principal: Principal = Depends(current_principal),
) -> ReportResponse:
    report = ReportingService().users(principal, parse_date_range(start_date, end_date))
    return ReportResponse(data=report)


@analytics_router.get("/products", response_model=ReportResponse)
async def product_report(principal: Principal = Depends(current_principal)) -> ReportResponse:
    return ReportResponse(data=ReportingService().products(principal))


@analytics_router.get("/sales", response_model=ReportResponse)
async def sales_report(
    period: SalesPeriod = SalesPeriod.DAILY,
    start_date: str | None = None,
    end_date: str | None = None,
    principal: Principal = Depends(current_principal),
) -> ReportResponse:
    report = ReportingService().sales(principal, period, parse_date_range(start_date, end_date))
    return ReportResponse(data=report)
