from __future__ import annotations

import json
import logging
import os
from typing import Any, Literal

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = """You are a medical triage assistant. Analyze symptoms and provide guidance.

IMPORTANT RULES:
1. You do NOT provide medical diagnosis
2. Always recommend professional consultation
3. Be empathetic but clear about severity
4. For emergency symptoms, clearly indicate immediate action needed

Respond with a JSON object in this exact format:
{
  "severity": "emergency" | "urgent" | "moderate" | "mild",
  "doctorType": "recommended specialist or care type",
  "precautions": ["list of 3-4 precautions"],
  "doActions": ["list of 3-4 recommended actions"],
  "avoidActions": ["list of 3-4 things to avoid"],
  "explanation": "Brief explanation of assessment (2-3 sentences)"
}

Emergency indicators: chest pain, difficulty breathing, stroke symptoms, severe bleeding, loss of consciousness, severe allergic reaction, suicidal thoughts.

For emergencies, doctorType should be "Emergency Room / Call 911"."""


class SymptomAnalysis(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    severity: Literal["emergency", "urgent", "moderate", "mild"]
    doctor_type: str = Field(alias="doctorType")
    precautions: list[str] = Field(default_factory=list)
    do_actions: list[str] = Field(default_factory=list, alias="doActions")
    avoid_actions: list[str] = Field(default_factory=list, alias="avoidActions")
    explanation: str = ""


class SymptomAnalysisError(Exception):
    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


def _provider_error_message(response: httpx.Response) -> str:
    message = response.text.strip()
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        err = payload.get("error")
        if isinstance(err, dict):
            msg = err.get("message")
            if isinstance(msg, str) and msg.strip():
                return msg.strip()
        msg = payload.get("message")
        if isinstance(msg, str) and msg.strip():
            return msg.strip()
    return message or f"HTTP {response.status_code}"


def _coerce_completion_text(response_json: dict[str, Any]) -> str:
    choices = response_json.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    content = (choices[0].get("message") or {}).get("content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "\n".join(
            item["text"] for item in content if isinstance(item, dict) and isinstance(item.get("text"), str)
        )
    return ""


def _extract_json_object(raw_text: str) -> dict[str, Any] | None:
    text = (raw_text or "").strip()
    if not text:
        return None
    try:
        payload = json.loads(text)
        if isinstance(payload, dict):
            return payload
    except json.JSONDecodeError:
        pass
    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        payload = json.loads(text[start : end + 1])
    except json.JSONDecodeError:
        return None
    return payload if isinstance(payload, dict) else None


class HostedSymptomAnalyzer:
    """Client for the hosted completion API that turns symptom text into triage guidance."""

    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.api_key = (os.getenv("CAREASSIST_AI_API_KEY") or "").strip()
        self.base_url = (os.getenv("CAREASSIST_AI_BASE_URL") or "https://api.openai.com/v1").rstrip("/")
        self.model = (os.getenv("CAREASSIST_AI_MODEL") or "gpt-4o-mini").strip()
        self.timeout = float(os.getenv("CAREASSIST_AI_TIMEOUT_SECONDS", "60.0"))
        self._transport = transport

    async def analyze(self, symptoms: str) -> SymptomAnalysis:
        text = (symptoms or "").strip()
        if not text:
            raise SymptomAnalysisError(400, "Please provide symptoms to analyze")
        if not self.api_key:
            raise SymptomAnalysisError(503, "AI API key is not configured.")

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": _SYSTEM_PROMPT},
                {"role": "user", "content": f"Analyze these symptoms and provide guidance: {text}"},
            ],
            "response_format": {"type": "json_object"},
        }
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout, connect=10.0),
                transport=self._transport,
            ) as client:
                response = await client.post(f"{self.base_url}/chat/completions", headers=headers, json=payload)
        except httpx.TimeoutException as exc:
            raise SymptomAnalysisError(504, "Symptom analysis provider timed out.") from exc
        except httpx.HTTPError as exc:
            raise SymptomAnalysisError(502, "Failed to reach symptom analysis provider.") from exc

        if response.status_code >= 400:
            provider_error = _provider_error_message(response)
            logger.warning("Symptom analysis provider error %s: %s", response.status_code, provider_error)
            if response.status_code == 429:
                raise SymptomAnalysisError(429, "Rate limit exceeded. Please try again later.")
            if response.status_code == 402:
                raise SymptomAnalysisError(402, "Service temporarily unavailable. Please try again later.")
            raise SymptomAnalysisError(502, "AI service error")

        try:
            completion_payload = response.json()
        except ValueError as exc:
            raise SymptomAnalysisError(502, "Symptom analysis provider returned invalid JSON.") from exc
        if not isinstance(completion_payload, dict):
            raise SymptomAnalysisError(502, "Symptom analysis provider returned invalid JSON.")

        parsed = _extract_json_object(_coerce_completion_text(completion_payload))
        if parsed is None:
            raise SymptomAnalysisError(502, "No response from AI")
        try:
            return SymptomAnalysis.model_validate(parsed)
        except ValidationError as exc:
            raise SymptomAnalysisError(502, "Symptom analysis provider returned an unexpected shape.") from exc
