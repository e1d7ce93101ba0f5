"""
Gemini ``generateContent`` client for adaptation plans.

Endpoint::

    POST {base_url}/models/{model}:generateContent?key={api_key}

The request asks for ``application/json`` output constrained by
``PLAN_RESPONSE_SCHEMA``; the first candidate's text is parsed and
validated as a ``GeneratedPlan``. Every transport, HTTP status, JSON or
validation failure is re-raised as ``PlanServiceError`` so the composer has
a single exception to fall back on.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from crop_advisor.config import PlannerConfig
from crop_advisor.engine.errors import PlanServiceError
from crop_advisor.models.plan import GeneratedPlan

logger = logging.getLogger(__name__)

_CROP_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "name": {"type": "STRING"},
        "planting_date": {"type": "STRING"},
        "irrigation_schedule": {"type": "STRING"},
        "expected_yield_improvement": {"type": "STRING"},
        "risk_factor": {"type": "STRING"},
    },
    "required": [
        "name", "planting_date", "irrigation_schedule",
        "expected_yield_improvement", "risk_factor",
    ],
}

_STRUCTURE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "name": {"type": "STRING"},
        "purpose": {"type": "STRING"},
        "location_type": {"type": "STRING"},
        "estimated_cost": {"type": "NUMBER"},
    },
    "required": ["name", "purpose", "location_type", "estimated_cost"],
}

_BLUEPRINT_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "id": {"type": "STRING"},
        "title": {"type": "STRING"},
        "description": {"type": "STRING"},
        "visual_type": {"type": "STRING", "enum": ["pond", "dam", "drainage", "layout"]},
        "technical_specs": {"type": "ARRAY", "items": {"type": "STRING"}},
        "estimated_timeline": {"type": "STRING"},
        "material_list": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "name": {"type": "STRING"},
                    "quantity": {"type": "STRING"},
                },
            },
        },
    },
    "required": [
        "id", "title", "description", "technical_specs",
        "estimated_timeline", "material_list",
    ],
}

PLAN_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "regional_context": {"type": "STRING"},
        "strategies": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "id": {"type": "STRING"},
                    "label": {"type": "STRING"},
                    "focus": {"type": "STRING"},
                    "summary": {"type": "STRING"},
                    "total_investment": {"type": "NUMBER"},
                    "crops": {"type": "ARRAY", "items": _CROP_SCHEMA},
                    "structures": {"type": "ARRAY", "items": _STRUCTURE_SCHEMA},
                    "blueprints": {"type": "ARRAY", "items": _BLUEPRINT_SCHEMA},
                },
                "required": [
                    "id", "label", "focus", "summary", "crops",
                    "structures", "blueprints", "total_investment",
                ],
            },
        },
    },
    "required": ["strategies", "regional_context"],
}


class GeminiPlanClient:
    """Thin synchronous client for plan generation.

    Args:
        config:    Planner settings (model, endpoint, timeout, key variable).
        transport: Optional ``httpx`` transport, e.g. ``httpx.MockTransport``
                   in tests.
    """

    def __init__(
        self,
        config: PlannerConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.config = config
        self._transport = transport

    @property
    def has_credentials(self) -> bool:
        return self.config.api_key is not None

    def generate_plan(self, prompt: str) -> GeneratedPlan:
        """Send ``prompt`` and return the validated plan.

        Raises:
            PlanServiceError: On missing credentials, transport or HTTP
                errors, an empty response, or output that does not match
                the plan schema.
        """
        api_key = self.config.api_key
        if api_key is None:
            raise PlanServiceError(
                f"{self.config.api_key_env} is not set; cannot call the plan service."
            )

        url = f"{self.config.base_url.rstrip('/')}/models/{self.config.model}:generateContent"
        body = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": PLAN_RESPONSE_SCHEMA,
            },
        }

        try:
            with httpx.Client(transport=self._transport, timeout=self.config.timeout_seconds) as client:
                resp = client.post(url, params={"key": api_key}, json=body)
                resp.raise_for_status()
                payload = resp.json()
        except httpx.HTTPError as exc:
            raise PlanServiceError(f"Plan service request failed: {exc}") from exc
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise PlanServiceError(f"Plan service returned non-JSON body: {exc}") from exc

        text = _first_candidate_text(payload)
        if not text:
            raise PlanServiceError("Plan service returned no content.")

        try:
            return GeneratedPlan.model_validate_json(text)
        except ValidationError as exc:
            raise PlanServiceError(
                f"Plan service output failed validation ({exc.error_count()} errors)."
            ) from exc


def _first_candidate_text(payload: Any) -> str:
    """Concatenate the text parts of the first response candidate.

    Raises:
        PlanServiceError: If the body or the candidate is not a JSON object.
    """
    if not isinstance(payload, dict):
        raise PlanServiceError(
            f"Plan service returned {type(payload).__name__}, expected a JSON object."
        )
    candidates = payload.get("candidates") or []
    if not isinstance(candidates, list) or not candidates:
        return ""
    candidate = candidates[0]
    if not isinstance(candidate, dict):
        raise PlanServiceError("Plan service returned a malformed candidate.")
    content = candidate.get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return ""
    return "".join(
        p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)
    )
