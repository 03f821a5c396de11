"""
tests/test_api.py

HTTP contract tests for the scrape job endpoints, with the service
replaced through FastAPI dependency overrides.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from pricescout.main import create_app
from pricescout.scraping.config.models import PaginationMode, ScrapingConfig
from pricescout.scraping.types import PromoScrapeResult, PromoSlide, ScrapedProduct, ScrapingResult
from pricescout.services.scrape_job_service import get_scrape_job_service


class RecordingService:
    def __init__(self) -> None:
        self.submitted: list[tuple[ScrapingConfig, bool]] = []

    async def submit(self, config: ScrapingConfig, *, preview: bool = False) -> ScrapingResult:
        self.submitted.append((config, preview))
        product = ScrapedProduct(
            sku="GB40",
            title="NOCO Boost Plus GB40",
            price=Decimal("199.95"),
            image_url="https://example.com/img/gb40.jpg",
            product_url="https://example.com/p/gb40",
            brand="NOCO",
            competitor=config.name or "",
            fingerprint="0123456789abcdef",
            model="GB40",
        )
        return ScrapingResult(success=True, data=[product], total_items=1, pages=1, errors=[], execution_time_ms=42)

    async def scrape_promotions(self, url: str) -> PromoScrapeResult:
        slide = PromoSlide(image="https://example.com/hero.jpg", link=None, label="SALE", fingerprint="beef")
        return PromoScrapeResult(
            success=True,
            url=url,
            slides=[slide],
            carousels=[{"competitor": "Example", "promo_text": "SALE"}],
            errors=[],
            execution_time_ms=7,
        )


@pytest.fixture()
def service() -> RecordingService:
    return RecordingService()


@pytest.fixture()
def client(service: RecordingService) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_scrape_job_service] = lambda: service
    return TestClient(app)


JOB = {
    "startUrl": "https://www.toolkitdepot.com.au/automotive",
    "listSelector": ".product-item",
    "paginationMode": "click",
    "paginationNext": "a.next",
    "maxPages": 3,
    "delay": 0,
    "fields": [
        {"label": "title", "css": ".product-item-link", "required": True},
        {"label": "url", "css": ".product-item-link", "attr": "href", "uniqueKey": True},
    ],
}


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_submit_scrape_job(client: TestClient, service: RecordingService) -> None:
    response = client.post("/scrape-jobs", json=JOB)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["total_items"] == 1
    assert body["data"][0]["sku"] == "GB40"
    assert Decimal(str(body["data"][0]["price"])) == Decimal("199.95")

    config, preview = service.submitted[0]
    assert preview is False
    assert config.pagination_mode is PaginationMode.CLICK
    assert config.max_pages == 3
    assert config.delay_ms == 0
    assert config.name == "Toolkitdepot"


def test_preview_endpoint_sets_preview_flag(client: TestClient, service: RecordingService) -> None:
    response = client.post("/scrape-jobs/preview", json=JOB)

    assert response.status_code == 200
    assert service.submitted[0][1] is True


def test_invalid_config_is_rejected_with_400(client: TestClient) -> None:
    payload = dict(JOB)
    payload["fields"] = [{"label": "title", "css": ".product-item-link"}]

    response = client.post("/scrape-jobs", json=payload)

    assert response.status_code == 400
    assert "unique_key" in response.json()["detail"]


def test_request_schema_validation_is_422(client: TestClient) -> None:
    response = client.post("/scrape-jobs", json={"startUrl": "not a url", "listSelector": ".x", "fields": []})

    assert response.status_code == 422


def test_promotions(client: TestClient) -> None:
    response = client.post("/promotions", json={"url": "https://www.example.com/"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["slides"][0]["label"] == "SALE"
    assert body["carousels"][0]["promo_text"] == "SALE"
