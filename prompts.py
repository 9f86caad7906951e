"""
Prompts sent to the language model for loan extraction and plan explanations.
"""
import json

PARSE_SCHEMA_HINT = {
    "target": 0,
    "loans": [
        {
            "name": "",
            "interestRate": 0,
            "feePct": 0,
            "cap": 0,
            "termYears": 10,
            "accrualMonths": 0,
            "subsidized": False,
        }
    ],
    "errors": [],
}

PARSE_PROMPT = """
Extract ONLY a JSON object matching this exact schema:
{schema}

Rules:
- Use numbers (not strings) for numeric fields.
- interestRate and feePct are percents (6.53 means 6.53%).
- If a value is missing or ambiguous, set it to null and add a short note to "errors".
- Output ONLY JSON. No extra commentary.

Text:
\"\"\"{text}\"\"\"
""".strip()

SYSTEM_PROMPT_EXPLAINER = """
You are a neutral financial explainer for education loans.
Write 4-6 concise bullet points. Be precise and avoid personal advice.
Cover the ordering rationale (interest rate, fees, caps, term), the blended cost per dollar,
the key trade-offs, and one common what-if.
If the plan has a shortfall, say how much of the target is not covered.
""".strip()


def parse_prompt(text: str) -> str:
    return PARSE_PROMPT.format(schema=json.dumps(PARSE_SCHEMA_HINT, indent=2), text=text)
