"""Pydantic models for the candidate profile stored alongside the library."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ProfileHeader(BaseModel):
    name: str = ""
    target_title: str = ""
    location: str = ""
    phone: str = ""
    email: str = ""
    linkedin: str | None = None


class ProfilePosition(BaseModel):
    number: int  # 1 = most recent
    company: str
    title: str
    location: str = ""
    start_date: str = ""
    end_date: str = ""


class Education(BaseModel):
    institution: str
    degree: str = ""
    field: str = ""
    year: str | None = None


class Profile(BaseModel):
    header: ProfileHeader = Field(default_factory=ProfileHeader)
    positions: list[ProfilePosition] = Field(default_factory=list)
    education: list[Education] = Field(default_factory=list)

    def position(self, number: int) -> ProfilePosition | None:
        for p in self.positions:
            if p.number == number:
                return p
        return None

    @property
    def early_positions(self) -> list[ProfilePosition]:
        return sorted((p for p in self.positions if 3 <= p.number <= 6), key=lambda p: p.number)
