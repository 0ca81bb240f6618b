# dormfix/services/classifier.py
"""
Ticket classification with a vision-language model.

The model sees the first ticket photo plus the location context and answers
with a JSON assessment. Classification is best-effort enrichment: any failure
is logged and replaced by a fixed fallback so ticket creation never depends on
the provider being up.
"""
import base64
import json
import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError as PydanticValidationError

from dormfix.errors import UpstreamError
from dormfix.schemas.ticket import Category, Classification, Severity

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = """You are an expert facilities maintenance ticket analyzer. Analyze this maintenance issue photo and provide a structured assessment.

Context:
- Location: {building}, Room {room}
{note_line}
Provide your response in this EXACT JSON format:
{{
  "category": "Plumbing|Electrical|HVAC|Pest|Furniture|Safety|Other",
  "severity": "Low|Medium|High",
  "summary": "Brief 1-sentence description of the issue",
  "facilitiesDescription": "Clear, professional description for facilities staff (2-3 sentences)",
  "followUpQuestions": ["Question 1", "Question 2"],
  "safetyNotes": ["Safety warning if applicable, otherwise empty array"]
}}

Rules:
- Be conservative with severity (only High if truly urgent)
- Safety notes only for genuine hazards (electrical, structural, water damage)
- Follow-up questions should help clarify the issue for repair
- Facilities description should be professional and actionable

Respond ONLY with valid JSON, no additional text."""

FALLBACK_SUMMARY = "Maintenance issue reported. Manual review needed."
FALLBACK_QUESTION = "Can you provide more details about the issue?"


class ClassificationError(UpstreamError):
    pass


@dataclass(frozen=True)
class Enrichment:
    """A classification and whether it came from the model or the fallback."""

    classification: Classification
    from_model: bool


def build_prompt(building: str, room: str, user_note: Optional[str] = None) -> str:
    note_line = f"- User note: {user_note}\n" if user_note else ""
    return PROMPT_TEMPLATE.format(building=building, room=room, note_line=note_line)


def fallback_classification(building: str, room: str, user_note: Optional[str] = None) -> Classification:
    return Classification(
        category=Category.OTHER,
        severity=Severity.LOW,
        summary=FALLBACK_SUMMARY,
        facilities_description=(
            f"Maintenance issue reported in {building}, Room {room}. "
            f"{user_note or 'No additional details provided.'}"
        ),
        follow_up_questions=[FALLBACK_QUESTION],
        safety_notes=[],
    )


def extract_json_object(text: str) -> str:
    """Return the first balanced {...} block in text, skipping braces inside strings."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
            elif char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start:index + 1]
        # unbalanced from here; try the next opening brace
        start = text.find("{", start + 1)
    raise ClassificationError("Invalid JSON response from model")


def parse_classification(text: str) -> Classification:
    try:
        data = json.loads(extract_json_object(text))
    except json.JSONDecodeError as exc:
        raise ClassificationError("Invalid JSON response from model", str(exc))

    if not isinstance(data, dict):
        raise ClassificationError("Invalid JSON response from model")

    missing = [key for key in ("category", "severity", "summary") if not str(data.get(key) or "").strip()]
    if missing:
        raise ClassificationError("Incomplete analysis from model", missing)

    data["summary"] = str(data["summary"]).strip()
    try:
        return Classification.model_validate(data)
    except PydanticValidationError as exc:
        raise ClassificationError("Incomplete analysis from model", str(exc))


class TicketClassifier:
    def __init__(self, client: Optional[AsyncOpenAI], http: httpx.AsyncClient, model: str):
        self.client = client
        self.http = http
        self.model = model

    async def _fetch_image(self, image_url: str) -> tuple[str, str]:
        response = await self.http.get(image_url)
        response.raise_for_status()
        mime_type = response.headers.get("content-type", "").split(";")[0].strip()
        if not mime_type.startswith("image/"):
            mime_type = "image/jpeg"
        return mime_type, base64.b64encode(response.content).decode("ascii")

    async def analyze(self, image_url: str, building: str, room: str, user_note: Optional[str] = None) -> Classification:
        """Single model call. Raises ClassificationError on any failure."""
        if self.client is None:
            raise ClassificationError("Vision model is not configured")

        try:
            mime_type, encoded = await self._fetch_image(image_url)
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": build_prompt(building, room, user_note)},
                            {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{encoded}"}},
                        ],
                    }
                ],
                temperature=0.2,
                max_tokens=800,
            )
        except (httpx.HTTPError, OpenAIError) as exc:
            raise ClassificationError("Vision model request failed", str(exc))

        text = completion.choices[0].message.content if completion.choices else None
        if not text:
            raise ClassificationError("Empty response from model")
        return parse_classification(text)

    async def enrich(self, image_url: str, building: str, room: str, user_note: Optional[str] = None) -> Enrichment:
        try:
            classification = await self.analyze(image_url, building, room, user_note)
        except Exception as exc:
            # Never past this point: the ticket is created regardless
            details = getattr(exc, "details", None)
            logger.warning("Classification failed, using fallback: %s %s", exc, details or "")
            return Enrichment(fallback_classification(building, room, user_note), from_model=False)
        return Enrichment(classification, from_model=True)

    async def classify(self, image_url: str, building: str, room: str, user_note: Optional[str] = None) -> Classification:
        enrichment = await self.enrich(image_url, building, room, user_note)
        return enrichment.classification
