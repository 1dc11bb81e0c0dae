"""Entity profile — structured identity, scale, qualifications and history."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel
from pydantic import Field


class BasicInfo(BaseModel):
    founded_date: date | None = None
    employee_count: int | None = Field(default=None, ge=0)
    annual_revenue: float | None = Field(
        default=None,
        description="Annual revenue in the caller's reporting unit.",
    )
    region: str | None = None
    industry: str | None = None
    main_products: list[str] = Field(default_factory=list)


class Qualifications(BaseModel):
    certifications: list[str] = Field(default_factory=list)
    registrations: list[str] = Field(default_factory=list)
    patents: int = Field(default=0, ge=0)
    trademarks: int = Field(default=0, ge=0)


class ApplicationRecord(BaseModel):
    """One past application to a support program."""

    id: str
    program_name: str
    result: str = Field(description="selected, rejected, pending, ...")
    applied_at: date
    amount: int | None = None
    rejection_reason: str | None = None


class ApplicationHistory(BaseModel):
    total_applications: int = Field(default=0, ge=0)
    selection_count: int = Field(default=0, ge=0)
    rejection_count: int = Field(default=0, ge=0)
    applications: list[ApplicationRecord] = Field(default_factory=list)


class EntityProfile(BaseModel):
    """Structured description of an entity. Replaced wholesale on update."""

    id: str = Field(description="Entity id; also the memory block key.")
    name: str
    basic: BasicInfo = Field(default_factory=BasicInfo)
    qualifications: Qualifications = Field(default_factory=Qualifications)
    history: ApplicationHistory = Field(default_factory=ApplicationHistory)

    def age_in_years(self, as_of: date) -> int | None:
        """Whole years between the founding date and *as_of*."""
        founded = self.basic.founded_date
        if founded is None:
            return None
        years = as_of.year - founded.year
        if (as_of.month, as_of.day) < (founded.month, founded.day):
            years -= 1
        return max(years, 0)
