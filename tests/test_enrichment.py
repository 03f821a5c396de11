"""
tests/test_enrichment.py

Tests for the LLM enrichment package and the post-normalization hook.

Coverage
--------
- validate_llm_output: fences, bad JSON, schema violations
- generate_with_retry: recovery and exhaustion
- LLMProductEnricher: analysis and degraded match judgements
- enrich_products: upgrade, low confidence, failure isolation
"""

from __future__ import annotations

import asyncio
import json
import unittest
from decimal import Decimal

from llm_enrichment import LLMProductEnricher, MockLLMAdapter, ProductAnalysis, ProductMatchJudgement
from llm_enrichment.prompt_builder import EnrichmentPromptBuilder
from llm_enrichment.retry import LLMRetryExhaustedError, generate_with_retry
from llm_enrichment.validator import LLMOutputValidationError, validate_llm_output
from pricescout.scraping.enrichment import ProductEnrichmentCollaborator, enrich_products
from pricescout.scraping.types import ScrapedProduct


def _product(title: str = "NOCO Genius10 10A Smart Charger", **overrides: object) -> ScrapedProduct:
    values: dict[str, object] = {
        "sku": "NOCO-GENIUS10-1",
        "title": title,
        "price": Decimal("199.00"),
        "image_url": None,
        "product_url": "https://example.com/p/genius10",
        "brand": "NOCO",
        "competitor": "Example",
        "fingerprint": "abc123",
        "category": "Battery Chargers",
    }
    values.update(overrides)
    return ScrapedProduct(**values)  # type: ignore[arg-type]


def _analysis(**overrides: object) -> str:
    payload: dict[str, object] = {
        "brand": "NOCO",
        "model": "GENIUS10",
        "category": "Battery Chargers",
        "subcategory": "Smart Chargers",
        "specifications": ["10A", "6V/12V"],
        "confidence": 0.92,
    }
    payload.update(overrides)
    return json.dumps(payload)


class TestValidateLLMOutput(unittest.TestCase):
    def test_accepts_fenced_json(self) -> None:
        result = validate_llm_output(f"```json\n{_analysis()}\n```", ProductAnalysis)
        self.assertEqual(result.model, "GENIUS10")

    def test_bad_json_is_json_parse_stage(self) -> None:
        with self.assertRaises(LLMOutputValidationError) as ctx:
            validate_llm_output("not json", ProductAnalysis)
        self.assertEqual(ctx.exception.stage, "json_parse")

    def test_top_level_array_is_schema_stage(self) -> None:
        with self.assertRaises(LLMOutputValidationError) as ctx:
            validate_llm_output("[1, 2]", ProductAnalysis)
        self.assertEqual(ctx.exception.stage, "schema")

    def test_confidence_out_of_range_is_rejected(self) -> None:
        with self.assertRaises(LLMOutputValidationError) as ctx:
            validate_llm_output(_analysis(confidence=1.5), ProductAnalysis)
        self.assertTrue(any("confidence" in error for error in ctx.exception.errors))


class TestGenerateWithRetry(unittest.TestCase):
    def test_recovers_after_a_malformed_response(self) -> None:
        adapter = MockLLMAdapter(responses=["{oops", _analysis()])
        result = generate_with_retry(adapter, "prompt", ProductAnalysis, max_retries=2)
        self.assertEqual(result.brand, "NOCO")
        self.assertEqual(len(adapter.prompts), 2)

    def test_exhaustion_raises(self) -> None:
        adapter = MockLLMAdapter(responses=["{", "{", "{"])
        with self.assertRaises(LLMRetryExhaustedError) as ctx:
            generate_with_retry(adapter, "prompt", ProductAnalysis, max_retries=2)
        self.assertEqual(ctx.exception.attempts, 3)
        self.assertEqual(len(ctx.exception.history), 3)


class TestLLMProductEnricher(unittest.TestCase):
    def test_analysis_prompt_carries_the_title(self) -> None:
        adapter = MockLLMAdapter()
        analysis = LLMProductEnricher(adapter).analyze_title("Projecta IC1500 Charger")
        self.assertEqual(analysis.brand, "Projecta")
        self.assertTrue(adapter.prompts[0].endswith("Title: Projecta IC1500 Charger"))

    def test_match_degrades_to_undetermined(self) -> None:
        adapter = MockLLMAdapter(responses=["{", "{", "{"])
        judgement = LLMProductEnricher(adapter).match_products(_product(), _product(title="NOCO GENIUS10AU"))
        self.assertFalse(judgement.is_same_product)
        self.assertEqual(judgement.confidence, 0.0)
        self.assertEqual(judgement.reasoning, "Error during matching")

    def test_match_prompt_lists_both_listings(self) -> None:
        prompt = EnrichmentPromptBuilder().build_match_prompt("A charger", "10.00", "B charger", None)
        self.assertIn('"title": "A charger"', prompt)
        self.assertIn('"price": null', prompt)


class _FailingEnricher(ProductEnrichmentCollaborator):
    def analyze_title(self, title: str) -> ProductAnalysis:
        if "boom" in title:
            raise RuntimeError("upstream 503")
        return ProductAnalysis.model_validate_json(_analysis())

    def match_products(self, first: ScrapedProduct, second: ScrapedProduct) -> ProductMatchJudgement:
        return ProductMatchJudgement.undetermined("unused")


class TestEnrichProducts(unittest.IsolatedAsyncioTestCase):
    async def test_confident_analysis_replaces_heuristics(self) -> None:
        enricher = LLMProductEnricher(MockLLMAdapter(responses=[_analysis()]))

        products, errors = await enrich_products([_product(brand="Noco", model=None)], enricher)

        self.assertEqual(errors, [])
        self.assertEqual(products[0].brand, "NOCO")
        self.assertEqual(products[0].model, "GENIUS10")
        self.assertEqual(products[0].attributes["subcategory"], "Smart Chargers")
        self.assertEqual(products[0].attributes["specifications"], "10A; 6V/12V")
        self.assertEqual(products[0].fingerprint, "abc123")

    async def test_low_confidence_keeps_heuristics(self) -> None:
        enricher = LLMProductEnricher(MockLLMAdapter(responses=[_analysis(brand="Other", confidence=0.2)]))

        products, errors = await enrich_products([_product()], enricher)

        self.assertEqual(errors, [])
        self.assertEqual(products[0].brand, "NOCO")

    async def test_failure_is_isolated_per_product(self) -> None:
        products, errors = await enrich_products(
            [_product(title="boom box"), _product(title="NOCO Genius5")],
            _FailingEnricher(),
        )

        self.assertEqual(len(products), 2)
        self.assertEqual(products[0].title, "boom box")
        self.assertEqual(products[0].model, None)
        self.assertEqual(products[1].model, "GENIUS10")
        self.assertEqual(len(errors), 1)
        self.assertIn("upstream 503", errors[0])

    async def test_untitled_products_are_skipped(self) -> None:
        adapter = MockLLMAdapter()

        products, _ = await enrich_products([_product(title="")], LLMProductEnricher(adapter))

        self.assertEqual(products[0].title, "")
        self.assertEqual(adapter.prompts, [])
