from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from periods import Granularity


class RecordIn(BaseModel):
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    date: date
    income: float = Field(default=0, ge=0)
    expense: float = Field(default=0, ge=0)


class RecordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date: date
    income: float
    expense: float


class LoanIn(BaseModel):
    model_config = ConfigDict(
        extra="forbid", populate_by_name=True, allow_inf_nan=False
    )

    person: str = Field(..., min_length=1, max_length=120)
    amount: float = Field(..., ge=0)
    interest_rate: float = Field(default=0, ge=0, alias="interestRate")
    monthly_paid: float = Field(default=0, ge=0, alias="monthlyPaid")
    start_date: Optional[date] = Field(default=None, alias="startDate")


class LoanOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    person: str
    amount: float
    interest_rate: float = Field(alias="interestRate")
    paid: bool
    monthly_paid: float = Field(alias="monthlyPaid")
    start_date: date = Field(alias="startDate")


class ChatbotQuery(BaseModel):
    query: str


class ChatbotReply(BaseModel):
    reply: str


class BucketOut(BaseModel):
    key: str
    income: float
    expense: float
    balance: str


class SliceOut(BaseModel):
    name: str
    value: float


class SummaryOut(BaseModel):
    view: Granularity
    date: Optional[str] = None
    buckets: list[BucketOut]
    chart: list[SliceOut]
    years: list[int]
