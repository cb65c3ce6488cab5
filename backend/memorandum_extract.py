"""
Send an offering memorandum PDF to the extraction model and get back raw JSON text.
Parsing the text is a separate step (parse_extraction_output) so callers can tell
a failed call from an unparseable answer.
"""
from __future__ import annotations

import base64
import json
import logging
import re
import time
from typing import Any, Optional

from openai import OpenAI, OpenAIError

from config import Settings
from errors import ExtractionError, ParseError
from schemas import response_format

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = """Analyze this real estate offering memorandum and extract all available information. Return a JSON object matching the provided schema. For missing fields, use null for numbers and empty strings for text. Format dates as YYYY-MM-DD and ensure numeric values are actual numbers.

Focus on extracting:

1. Property Information:
   - Name, full address (street, city, state, zip, submarket)
   - Property type (e.g., logistics, warehouse, industrial)
   - Square footage, land area, year built, construction status

2. Offering Details:
   - Seller name, brokerage firm
   - Guidance price (USD), price per square foot
   - Offering type (e.g., fee simple)

3. Lease Information:
   - Primary tenant, percentage leased
   - Remaining lease term, expiration date
   - Rent escalations, cap rate

4. Financing Information:
   - Assumable status, loan amount
   - Interest rate, maturity date

5. Summary Points:
   - Investment highlights
   - Risk factors

6. Broker Contacts:
   - Name, title, phone, email

7. Document Info:
   - Set documentType to "Offering Memorandum"

Return only the JSON object with extracted data."""


class ExtractionClient:
    def __init__(self, settings: Settings, client: Any = None):
        self.model = settings.openai_model
        if client is None and settings.openai_api_key:
            client = OpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.extraction_timeout_seconds,
                max_retries=0,
            )
        self._client = client

    @property
    def configured(self) -> bool:
        return self._client is not None

    def _messages(self, document_bytes: bytes, file_name: str) -> list[dict[str, Any]]:
        encoded = base64.b64encode(document_bytes).decode("ascii")
        return [
            {
                "role": "user",
                "content": [
                    {
                        "type": "file",
                        "file": {
                            "filename": file_name,
                            "file_data": f"data:application/pdf;base64,{encoded}",
                        },
                    },
                    {"type": "text", "text": EXTRACTION_PROMPT},
                ],
            }
        ]

    def extract(self, document_bytes: bytes, file_name: str = "document.pdf") -> str:
        """One model call; returns the model's text unvalidated."""
        if self._client is None:
            raise ExtractionError("OPENAI_API_KEY not configured")
        t0 = time.perf_counter()
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=self._messages(document_bytes, file_name),
                response_format=response_format(),
            )
        except OpenAIError as e:
            logger.error("[ocr] model call failed model=%s error=%s", self.model, e)
            raise ExtractionError("Failed to extract information from document") from e
        elapsed = time.perf_counter() - t0
        logger.info(
            "[ocr] model call duration=%.2fs model=%s size_bytes=%d", elapsed, self.model, len(document_bytes)
        )
        content: Optional[str] = response.choices[0].message.content if response.choices else None
        if not content:
            raise ExtractionError("Extraction model returned no content")
        return content


def _reject_constant(name: str) -> Any:
    raise ParseError(f"Out of range float values are not JSON compliant: {name}")


def parse_extraction_output(raw: str) -> Any:
    """json.loads after stripping a markdown code fence; ParseError carries the decoder message.
    NaN and Infinity are rejected since they are not JSON.
    """
    text = (raw or "").strip()
    if text.startswith("```"):
        text = re.sub(r"^```\w*\n?", "", text)
        text = re.sub(r"\n?```\s*$", "", text)
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as e:
        raise ParseError(str(e)) from e
