"""Admin statistics schemas."""

from typing import List

from pydantic import BaseModel, Field


class TechnicianRevenue(BaseModel):
    technicianName: str
    totalRevenue: float
    deviceCount: int


class RevenueReport(BaseModel):
    total: float = 0
    breakdown: List[TechnicianRevenue] = Field(default_factory=list)


class KeyStatistics(BaseModel):
    totalDevices: int = 0
    mostProcessedBrand: str = "N/A"
    mostCommonIssue: str = "N/A"
