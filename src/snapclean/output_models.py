from __future__ import annotations

from pydantic import BaseModel, Field

from snapclean.formatting import format_size
from snapclean.models import CategorySummary, CategoryView


class SectionOutput(BaseModel):
    title: str
    layout_style: str
    assets: list[str] = Field(default_factory=list)


class CategoryOutput(BaseModel):
    category: str
    title: str
    total_items: int
    total_size: float
    total_size_label: str
    sections: list[SectionOutput] = Field(default_factory=list)

    @classmethod
    def from_view(cls, view: CategoryView) -> "CategoryOutput":
        return cls(
            category=view.category.value,
            title=view.category.label,
            total_items=view.total_items,
            total_size=view.total_size,
            total_size_label=format_size(view.total_size),
            sections=[
                SectionOutput(
                    title=s.title,
                    layout_style=s.layout_style.value,
                    assets=list(s.assets),
                )
                for s in view.sections
            ],
        )


class SummaryOutput(BaseModel):
    category: str
    title: str
    total_items: int
    total_size: float
    total_size_label: str

    @classmethod
    def from_summary(cls, summary: CategorySummary) -> "SummaryOutput":
        return cls(
            category=summary.category.value,
            title=summary.title,
            total_items=summary.total_items,
            total_size=summary.total_size,
            total_size_label=format_size(summary.total_size),
        )
