"""Stat cards and the few filters the backend does not apply itself."""

from typing import Iterable, Optional

from aquafeed_admin.models.alternatives import RuleSummary
from aquafeed_admin.models.categories import CategorySummary
from aquafeed_admin.models.farms import FarmProfile
from aquafeed_admin.models.formulations import Formulation
from aquafeed_admin.models.ingredients import IngredientSummary
from aquafeed_admin.models.standards import StandardSummary
from aquafeed_admin.models.templates import FeedTemplate
from aquafeed_admin.models.transactions import TransactionSummary

StatCards = list[tuple[str, object]]


def ingredient_stats(summary: IngredientSummary) -> StatCards:
    return [
        ("Total", summary.total),
        ("Active", summary.active),
        ("Inactive", summary.inactive),
    ]


def ingredient_category_counts(
    summary: IngredientSummary, options: Iterable[tuple[str, str]]
) -> list[dict]:
    """Per-category ingredient counts for the category chips."""
    return [
        {
            "value": value,
            "label": label,
            "count": summary.by_category.get(value, 0),
            "active": summary.by_category_active.get(value, 0),
        }
        for value, label in options
    ]


def category_stats(summary: CategorySummary) -> StatCards:
    return [
        ("Total", summary.total),
        ("Active", summary.active),
        ("Inactive", summary.inactive),
        ("Ingredient", summary.by_type.get("ingredient", 0)),
        ("Fish Type", summary.by_type.get("fish_type", 0)),
        ("Feed Stage", summary.by_type.get("stage", 0)),
    ]


def standard_stats(summary: StandardSummary) -> StatCards:
    return [
        ("Total", summary.total),
        ("Fish", summary.fish),
        ("Poultry", summary.poultry),
        ("Active", summary.active),
    ]


def rule_stats(summary: RuleSummary) -> StatCards:
    return [
        ("Total", summary.total),
        ("Active", summary.active),
        ("Fish", summary.fish),
        ("Poultry", summary.poultry),
        ("Both", summary.both),
    ]


def template_stats(templates: list[FeedTemplate]) -> StatCards:
    return [
        ("Total", len(templates)),
        ("Catfish", sum(1 for t in templates if t.feed_category == "Catfish")),
        ("Poultry", sum(1 for t in templates if t.feed_category == "Poultry")),
        ("Active", sum(1 for t in templates if t.is_active)),
    ]


def filter_templates(
    templates: list[FeedTemplate], search: str = "", feed_category: str = ""
) -> list[FeedTemplate]:
    needle = search.lower()
    return [
        t
        for t in templates
        if (not needle or needle in t.name.lower())
        and (not feed_category or t.feed_category == feed_category)
    ]


def farm_stats(farms: list[FarmProfile], total: int) -> StatCards:
    """Counts over the farms on the current page (total comes from the backend)."""
    ponds = [p for f in farms for p in f.ponds]
    return [
        ("Total Farms", total),
        ("Total Ponds", len(ponds)),
        ("Total Fish", sum(f.total_fish for f in farms)),
        ("Catfish Ponds", sum(1 for p in ponds if p.fish_type == "Catfish")),
    ]


def filter_farms(farms: list[FarmProfile], search: str = "") -> list[FarmProfile]:
    """Match the farm name, its location or its owner's name."""
    if not search:
        return list(farms)
    needle = search.lower()
    matches = []
    for farm in farms:
        owner = (farm.user_id.name if farm.user_id else None) or ""
        if needle in (farm.name or "").lower() or needle in farm.location_text.lower() or needle in owner.lower():
            matches.append(farm)
    return matches


def formulation_stats(formulations: list[Formulation], total: int) -> StatCards:
    return [
        ("Total", total),
        ("Unlocked", sum(1 for f in formulations if f.is_unlocked)),
        ("Demo", sum(1 for f in formulations if f.is_demo)),
        ("Green Compliance", sum(1 for f in formulations if f.compliance_color == "Green")),
    ]


def filter_formulations(
    formulations: list[Formulation], status: str = "", compliance: str = ""
) -> list[Formulation]:
    """Status is unlocked, demo or locked (neither unlocked nor demo)."""
    rows = list(formulations)
    if status == "unlocked":
        rows = [f for f in rows if f.is_unlocked]
    elif status == "demo":
        rows = [f for f in rows if f.is_demo]
    elif status == "locked":
        rows = [f for f in rows if not f.is_unlocked and not f.is_demo]
    if compliance:
        rows = [f for f in rows if f.compliance_color == compliance]
    return rows


def transaction_stats(summary: TransactionSummary) -> StatCards:
    return [
        ("Credits", summary.credits),
        ("Debits", summary.debits),
        ("Net Revenue", summary.net_revenue),
    ]


def in_thousands(amount: Optional[float]) -> str:
    """Naira amount rendered as e.g. ``₦12k``."""
    return f"₦{(amount or 0) / 1000:.0f}k"
