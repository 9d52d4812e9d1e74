"""
records.py
==========
Structured records the LLM is asked to produce.

Field names on the wire are camelCase (that is what the format instructions
show the model); Python attributes are snake_case.  Records are immutable,
list fields included.
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class Pope(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    pontiff_number: int = Field(..., alias="pontiffNumber")
    pontiff_start_date: Optional[date] = Field(None, alias="pontiffStartDate")
    pontiff_end_date: Optional[date] = Field(None, alias="pontiffEndDate")
    birth_date: Optional[date] = Field(None, alias="birthDate")
    death_date: Optional[date] = Field(None, alias="deathDate")
    english_name: Optional[str] = Field(None, alias="englishName")
    latin_name: Optional[str] = Field(None, alias="latinName")
    personal_name: Optional[str] = Field(None, alias="personalName")
    nationalities: Tuple[str, ...] = Field(default_factory=tuple)
