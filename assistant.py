from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import Iterable, Optional

from openai import OpenAI

from config import get_settings
from models import Loan, Record


logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful financial assistant. The user has provided their "
    "financial data as a JSON object. Use this data to answer their "
    "questions. Here is the data: {context}"
)


def record_to_dict(record: Record) -> dict[str, object]:
    return {
        "id": record.id,
        "date": record.date.isoformat(),
        "income": record.income,
        "expense": record.expense,
    }


def loan_to_dict(loan: Loan) -> dict[str, object]:
    return {
        "id": loan.id,
        "person": loan.person,
        "amount": loan.amount,
        "interestRate": loan.interest_rate,
        "paid": loan.paid,
        "monthlyPaid": loan.monthly_paid,
        "startDate": loan.start_date.isoformat() if loan.start_date else None,
    }


def build_context(records: Iterable[Record], loans: Iterable[Loan]) -> str:
    return json.dumps(
        {
            "records": [record_to_dict(r) for r in records],
            "loans": [loan_to_dict(loan) for loan in loans],
        },
        ensure_ascii=False,
    )


class ExternalAssistant:
    """Thin wrapper over an OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str,
        timeout: float,
    ) -> None:
        self.model = model
        self.client = OpenAI(api_key=api_key, base_url=base_url, timeout=timeout)

    def complete(self, system_prompt: str, question: str) -> Optional[str]:
        logger.info(f"assistant_request: model={self.model}")
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": question},
            ],
        )
        if not response.choices:
            return None
        return response.choices[0].message.content


@lru_cache(maxsize=1)
def get_assistant() -> Optional[ExternalAssistant]:
    settings = get_settings()
    if not settings.assistant_api_key:
        return None
    return ExternalAssistant(
        api_key=settings.assistant_api_key,
        base_url=settings.assistant_base_url,
        model=settings.assistant_model,
        timeout=settings.assistant_timeout_secs,
    )
