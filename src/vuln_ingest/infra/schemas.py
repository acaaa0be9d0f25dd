from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SearchItem(BaseModel):
    """One hit of the code search API"""
    model_config = ConfigDict(extra="ignore")

    name: str
    path: str
    url: str


class SearchResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    total_count: int = 0
    items: list[SearchItem] = Field(default_factory=list)


class RawVulnerability(BaseModel):
    """A single vulnerability entry as written by the scanner"""
    model_config = ConfigDict(extra="ignore")

    id: str
    severity: str
    cvss: float = 0.0
    status: str = ""
    package_name: str = ""
    current_version: str = ""
    fixed_version: Optional[str] = None
    description: str = ""
    published_date: Optional[datetime] = None
    link: Optional[str] = None
    risk_factors: list[str] = Field(default_factory=list)

    # Scanners write null for unknown values; store the zero value instead
    @field_validator("cvss", mode="before")
    @classmethod
    def _none_as_zero(cls, v):
        return 0.0 if v is None else v

    @field_validator("status", "package_name", "current_version", "description", mode="before")
    @classmethod
    def _none_as_blank(cls, v):
        return "" if v is None else v

    @field_validator("risk_factors", mode="before")
    @classmethod
    def _none_as_empty(cls, v):
        return [] if v is None else v


class RawScanResults(BaseModel):
    model_config = ConfigDict(extra="ignore")

    vulnerabilities: list[RawVulnerability] = Field(default_factory=list)

    @field_validator("vulnerabilities", mode="before")
    @classmethod
    def _none_as_empty(cls, v):
        return [] if v is None else v


class RawScanBlock(BaseModel):
    """One element of the top-level array of a scan result file"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    scan_results: RawScanResults = Field(default_factory=RawScanResults, alias="scanResults")
