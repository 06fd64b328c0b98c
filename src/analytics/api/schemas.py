"""Pydantic response schemas for the Analytics API."""

from typing import Any

from pydantic import BaseModel


class ReportResponse(BaseModel):
    success: bool = True
    data: dict[str, Any]
