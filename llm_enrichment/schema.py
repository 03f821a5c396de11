"""Structured output contracts for product enrichment."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class ProductAnalysis(BaseModel):
    """Brand/model/category breakdown of one product title."""

    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
        str_strip_whitespace=True,
    )

    brand: str = Field(min_length=1)
    model: str = ""
    category: str = Field(min_length=1)
    subcategory: str = ""
    specifications: List[str] = Field(default_factory=list)
    confidence: float = Field(ge=0.0, le=1.0)


class ProductMatchJudgement(BaseModel):
    """Whether two listings describe the same product."""

    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
        str_strip_whitespace=True,
    )

    is_same_product: bool
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str = Field(min_length=1)

    @classmethod
    def undetermined(cls, reason: str) -> "ProductMatchJudgement":
        return cls(is_same_product=False, confidence=0.0, reasoning=reason)
