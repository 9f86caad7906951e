"""
Language-model collaborators: free-text loan extraction and plan explanations.

Both calls go to an OpenAI-compatible Responses endpoint over httpx. Failures raise
LanguageModelError subclasses; the caller decides how to surface them. No plan state
is kept here, the plan to explain is always passed in.
"""
import json
import logging
from typing import Any, Dict, List, Optional

import httpx

import config as cfg
from intake import coerce_offers, coerce_target
from prompts import SYSTEM_PROMPT_EXPLAINER, parse_prompt
from schemas import ParseResponse, Plan

logger = logging.getLogger(__name__)

NO_EXPLANATION = "No explanation available."


class LanguageModelError(Exception):
    """Base class for failures talking to the language model."""


class UpstreamError(LanguageModelError):
    """The service could not be reached or answered with an error status."""


class InvalidModelOutput(LanguageModelError):
    """The service answered, but not with the JSON we asked for."""


def explanation_payload(plan: Plan) -> Dict[str, Any]:
    allocation = []
    for entry in plan.allocation:
        offer = entry.offer
        line = {
            "name": offer.name,
            "interestRate": offer.interest_rate,
            "feePct": offer.origination_fee_percent,
            "cap": offer.borrowing_cap,
            "termYears": offer.term_years,
            "accrualMonths": offer.in_school_months,
            "subsidized": offer.subsidized_in_school,
            "principal": entry.principal_used,
            "costPerDollar": entry.cost_per_dollar,
        }
        if entry.stats is not None:
            line["fee"] = entry.stats.origination_fee
            line["inSchoolInterest"] = entry.stats.in_school_interest
            line["monthlyPayment"] = entry.stats.monthly_payment
        allocation.append(line)

    return {
        "target": plan.target,
        "allocation": allocation,
        "blendedCPD": plan.summary.blended_cost_per_dollar,
        "feasible": plan.feasible,
        "shortfall": plan.shortfall,
    }


def _output_text(data: Dict[str, Any]) -> Optional[str]:
    # Responses API: output[] items, message items carry content[] parts with text
    for item in data.get("output") or []:
        if not isinstance(item, dict):
            continue
        for part in item.get("content") or []:
            if isinstance(part, dict) and part.get("text"):
                return part["text"]
    return data.get("output_text")


class LanguageModelClient:
    def __init__(
        self,
        api_key: str = cfg.OPENAI_API_KEY,
        model: str = cfg.LLM_MODEL,
        url: str = cfg.LLM_API_URL,
        timeout: float = cfg.LLM_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.model = model
        self.url = url
        self._http = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
        )

    def close(self) -> None:
        self._http.close()

    def _respond(self, body: Dict[str, Any]) -> str:
        try:
            r = self._http.post(self.url, json={"model": self.model, **body})
        except httpx.HTTPError as e:
            logger.error(f"Language model request failed: {e}")
            raise UpstreamError("Could not reach the language model service") from e

        if r.is_error:
            logger.error(f"Language model error status={r.status_code} body={r.text[:500]}")
            raise UpstreamError(f"Language model service returned {r.status_code}")

        try:
            data = r.json()
        except ValueError as e:
            raise UpstreamError("Language model service returned a non-JSON body") from e
        if not isinstance(data, dict):
            raise UpstreamError("Language model service returned an unexpected body")
        return _output_text(data) or ""

    def extract_offers(self, text: str) -> ParseResponse:
        raw = self._respond({
            "input": parse_prompt(text),
            "text": {"format": {"type": "json_object"}},
        })
        try:
            parsed = json.loads(raw or "{}")
        except json.JSONDecodeError as e:
            logger.warning(f"JSON parse failed. Raw: {raw[:500]}")
            raise InvalidModelOutput("Invalid JSON from parser. Try simplifying your text.") from e

        if not isinstance(parsed, dict):
            parsed = {}
        raw_loans = parsed.get("loans") if isinstance(parsed.get("loans"), list) else []
        raw_errors = parsed.get("errors") if isinstance(parsed.get("errors"), list) else []
        errors: List[str] = [str(e) for e in raw_errors if e]

        target = coerce_target(parsed.get("target"))
        if target is None:
            errors.append("No positive target amount found.")
        return ParseResponse(target=target, loans=coerce_offers(raw_loans), errors=errors)

    def explain_plan(self, plan: Plan) -> str:
        user = json.dumps(explanation_payload(plan))
        text = self._respond({
            "input": [
                {"role": "system", "content": SYSTEM_PROMPT_EXPLAINER},
                {"role": "user", "content": user},
            ],
        })
        return text.strip() or NO_EXPLANATION
