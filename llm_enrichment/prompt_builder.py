"""Deterministic prompts for product enrichment."""

import json
from typing import Optional

from llm_enrichment.schema import ProductAnalysis, ProductMatchJudgement

_ANALYSIS_SCHEMA_JSON = json.dumps(ProductAnalysis.model_json_schema(), indent=2)
_MATCH_SCHEMA_JSON = json.dumps(ProductMatchJudgement.model_json_schema(), indent=2)

_SYSTEM_INSTRUCTIONS = """\
You are a retail catalog analyst for automotive and power tool products.

STRICT RULES:
- Use ONLY the listing data provided below.
- Return strictly valid JSON matching the schema defined below.
- Do NOT include any text outside the JSON object.
- Do NOT wrap the JSON in markdown code fences.
"""


class EnrichmentPromptBuilder:
    """Builds prompts for title analysis and product matching."""

    def build_analysis_prompt(self, title: str) -> str:
        return (
            f"{_SYSTEM_INSTRUCTIONS}\n"
            "Extract the brand, model number, category, subcategory and key "
            "specifications from the product title. Set confidence between 0 and 1.\n\n"
            f"## Output schema\n```json\n{_ANALYSIS_SCHEMA_JSON}\n```\n\n"
            f"Title: {title}"
        )

    def build_match_prompt(
        self,
        first_title: str,
        first_price: Optional[str],
        second_title: str,
        second_price: Optional[str],
    ) -> str:
        listings = json.dumps(
            [
                {"title": first_title, "price": first_price},
                {"title": second_title, "price": second_price},
            ],
            indent=2,
        )
        return (
            f"{_SYSTEM_INSTRUCTIONS}\n"
            "Decide whether the two listings below are the same product. Consider "
            "brand, model numbers, specifications and price similarity.\n\n"
            f"## Output schema\n```json\n{_MATCH_SCHEMA_JSON}\n```\n\n"
            f"## Listings\n```json\n{listings}\n```\n"
        )
