"""
Form parsing and inline validation.

Each ``parse_*`` function turns a posted HTML form into the JSON payload the
backend expects, or raises FormValidationError with per-field messages.
The checks mirror the backend's own invariants.
"""

import math
from typing import Any, Iterable, Optional, Protocol

from pydantic.alias_generators import to_camel

from aquafeed_admin.errors import FormValidationError
from aquafeed_admin.models.categories import CategoryType
from aquafeed_admin.models.ingredients import IngredientNutrients
from aquafeed_admin.models.standards import STANDARD_NUTRIENTS

RATIO_TOTAL = 100.0
RATIO_TOLERANCE = 1e-6

FEED_CATEGORIES = ("Catfish", "Poultry")
POULTRY_TYPES = ("Broiler", "Layer")
RULE_FEED_TYPES = ("fish", "poultry", "both")
USER_ROLES = ("farmer", "admin", "consultant")
TRUTHY = {"on", "true", "1", "yes"}


class FormInput(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def getlist(self, key: str) -> list[Any]: ...


class _Errors(dict):
    def check(self):
        if self:
            raise FormValidationError(dict(self))


def _text(form: FormInput, name: str, errors: _Errors, label: str, required: bool = False) -> str:
    value = str(form.get(name) or "").strip()
    if required and not value:
        errors[name] = f"{label} is required"
    return value


def _number(
    form: FormInput,
    name: str,
    errors: _Errors,
    label: str,
    default: Optional[float] = 0.0,
    minimum: Optional[float] = None,
) -> Optional[float]:
    raw = str(form.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        errors[name] = f"{label} must be a number"
        return default
    if not math.isfinite(value):
        errors[name] = f"{label} must be a number"
        return default
    if minimum is not None and value < minimum:
        errors[name] = f"{label} must be at least {minimum:g}"
    return value


def _integer(form: FormInput, name: str, errors: _Errors, label: str, default: int = 0) -> int:
    raw = str(form.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        errors[name] = f"{label} must be a whole number"
        return default


def _flag(form: FormInput, name: str) -> bool:
    return str(form.get(name) or "").strip().lower() in TRUTHY


def _choice(form: FormInput, name: str, errors: _Errors, label: str, choices: Iterable[str], default: str) -> str:
    value = str(form.get(name) or default).strip()
    choices = tuple(choices)
    if value not in choices:
        errors[name] = f"{label} must be one of: {', '.join(choices)}"
    return value


def split_tags(raw: str) -> list[str]:
    """Comma-separated tags, trimmed, blanks dropped."""
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def parse_ingredient(form: FormInput) -> dict:
    errors = _Errors()
    payload: dict[str, Any] = {
        "name": _text(form, "name", errors, "Name", required=True),
        "category": _text(form, "category", errors, "Category", required=True),
        "defaultPrice": _number(form, "defaultPrice", errors, "Default price", minimum=0),
        "bagWeight": _number(form, "bagWeight", errors, "Bag weight", default=None, minimum=0),
        "specificGravity": _number(form, "specificGravity", errors, "Specific gravity", default=None, minimum=0),
        "isAutoCalculated": _flag(form, "isAutoCalculated"),
        "autoCalcRatio": _number(form, "autoCalcRatio", errors, "Auto-calc ratio", default=None, minimum=0),
        "isActive": _flag(form, "isActive"),
        "tags": split_tags(str(form.get("tags") or "")),
    }
    if payload["isAutoCalculated"] and not payload["autoCalcRatio"]:
        errors["autoCalcRatio"] = "Auto-calculated ingredients need a ratio greater than 0"

    nutrients = {}
    for field_name, field in IngredientNutrients.model_fields.items():
        key = to_camel(field_name)
        nutrients[key] = _number(
            form, f"nutrients.{key}", errors, key, default=field.default, minimum=0
        )
    payload["nutrients"] = nutrients

    constraints = {}
    for bound in ("min_inclusion", "max_inclusion"):
        value = _number(form, f"constraints.{bound}", errors, bound.replace("_", " "), default=None, minimum=0)
        if value is not None:
            constraints[bound] = value
    if (
        "min_inclusion" in constraints
        and "max_inclusion" in constraints
        and constraints["min_inclusion"] > constraints["max_inclusion"]
    ):
        errors["constraints.max_inclusion"] = "Max inclusion must not be below min inclusion"
    payload["constraints"] = constraints

    errors.check()
    return payload


def parse_category(form: FormInput) -> dict:
    errors = _Errors()
    payload = {
        "name": _text(form, "name", errors, "Name", required=True),
        "displayName": _text(form, "displayName", errors, "Display name", required=True),
        "type": _choice(
            form, "type", errors, "Type", [t.value for t in CategoryType], CategoryType.INGREDIENT.value
        ),
        "description": _text(form, "description", errors, "Description"),
        "sortOrder": _integer(form, "sortOrder", errors, "Sort order"),
        "isActive": _flag(form, "isActive"),
    }
    errors.check()
    return payload


def parse_standard(form: FormInput) -> dict:
    errors = _Errors()
    feed_category = _choice(form, "feedCategory", errors, "Feed category", FEED_CATEGORIES, "Catfish")
    payload: dict[str, Any] = {
        "name": _text(form, "name", errors, "Name", required=True),
        "feedCategory": feed_category,
        "stage": _text(form, "stage", errors, "Stage", required=True),
        "description": _text(form, "description", errors, "Description"),
        "isActive": _flag(form, "isActive"),
        "isDefault": _flag(form, "isDefault"),
    }
    if feed_category == "Poultry":
        payload["poultryType"] = _choice(form, "poultryType", errors, "Poultry type", POULTRY_TYPES, "Broiler")

    targets = {}
    for nutrient in STANDARD_NUTRIENTS:
        low = _number(form, f"targetNutrients.{nutrient}.min", errors, f"{nutrient} min", minimum=0)
        high = _number(form, f"targetNutrients.{nutrient}.max", errors, f"{nutrient} max", minimum=0)
        if low is not None and high is not None and low > high:
            errors[f"targetNutrients.{nutrient}.max"] = f"{nutrient} max must not be below its min"
        targets[nutrient] = {"min": low, "max": high}
    payload["targetNutrients"] = targets

    errors.check()
    return payload


def _ratio(item: dict) -> float:
    try:
        return float(item.get("ratio") or 0)
    except (TypeError, ValueError):
        return math.nan


def ratio_total(items: Iterable[dict]) -> float:
    return sum(_ratio(item) for item in items)


def validate_template_items(items: list[dict]) -> dict[str, str]:
    """Errors for a template's ingredient lines; empty when they can be submitted."""
    errors: dict[str, str] = {}
    if not items:
        errors["items"] = "Add at least one ingredient"
        return errors

    seen: set[str] = set()
    for idx, item in enumerate(items):
        ingredient_id = item.get("ingredientId") or ""
        if not ingredient_id:
            errors[f"items.{idx}.ingredientId"] = "Select an ingredient"
        elif ingredient_id in seen:
            errors[f"items.{idx}.ingredientId"] = "Ingredient is listed twice"
        seen.add(ingredient_id)
        ratio = _ratio(item)
        if not math.isfinite(ratio):
            errors[f"items.{idx}.ratio"] = "Ratio must be a number"
        elif ratio <= 0:
            errors[f"items.{idx}.ratio"] = "Ratio must be greater than 0"

    total = ratio_total(items)
    if not math.isfinite(total):
        errors["items"] = "Total ratio must be 100%"
    elif abs(total - RATIO_TOTAL) > RATIO_TOLERANCE:
        errors["items"] = f"Total ratio must be 100% (currently {total:g}%)"
    return errors


def can_submit_template(items: list[dict]) -> bool:
    return not validate_template_items(items)


def parse_template(form: FormInput) -> dict:
    errors = _Errors()
    feed_category = _text(form, "feedCategory", errors, "Feed category") or "Catfish"
    payload: dict[str, Any] = {
        "name": _text(form, "name", errors, "Template name", required=True),
        "feedCategory": feed_category,
        "stage": _text(form, "stage", errors, "Stage", required=True),
        "description": _text(form, "description", errors, "Description"),
        "isActive": _flag(form, "isActive"),
        "totalWeight": RATIO_TOTAL,
    }
    if feed_category == "Poultry":
        payload["poultryType"] = _text(form, "poultryType", errors, "Poultry type", required=True)

    items = []
    ingredient_ids = form.getlist("items.ingredientId")
    ratios = form.getlist("items.ratio")
    for idx, ingredient_id in enumerate(ingredient_ids):
        raw_ratio = str(ratios[idx] if idx < len(ratios) else "").strip()
        ingredient_id = str(ingredient_id or "").strip()
        if not ingredient_id and not raw_ratio:
            continue
        try:
            ratio = float(raw_ratio) if raw_ratio else 0.0
        except ValueError:
            ratio = math.nan
        if not math.isfinite(ratio):
            errors[f"items.{idx}.ratio"] = "Ratio must be a number"
            ratio = 0.0
        items.append({"ingredientId": ingredient_id, "ratio": ratio})
    payload["items"] = items

    for key, message in validate_template_items(items).items():
        errors.setdefault(key, message)

    errors.check()
    return payload


def parse_rule(form: FormInput) -> dict:
    errors = _Errors()
    payload = {
        "originalIngredientId": _text(form, "originalIngredientId", errors, "Original ingredient", required=True),
        "alternativeIngredientId": _text(
            form, "alternativeIngredientId", errors, "Alternative ingredient", required=True
        ),
        "feedType": _choice(form, "feedType", errors, "Feed type", RULE_FEED_TYPES, "both"),
        "maxBlendPercent": _number(form, "maxBlendPercent", errors, "Max blend percent", default=100.0),
        "notes": _text(form, "notes", errors, "Notes"),
        "isActive": _flag(form, "isActive"),
    }
    if (
        payload["originalIngredientId"]
        and payload["originalIngredientId"] == payload["alternativeIngredientId"]
    ):
        errors["alternativeIngredientId"] = "An ingredient cannot replace itself"
    blend = payload["maxBlendPercent"]
    if "maxBlendPercent" not in errors and not (0 < blend <= 100):
        errors["maxBlendPercent"] = "Max blend percent must be between 0 and 100"
    errors.check()
    return payload


def parse_user(form: FormInput) -> dict:
    errors = _Errors()
    payload = {
        "name": _text(form, "name", errors, "Name", required=True),
        "role": _choice(form, "role", errors, "Role", USER_ROLES, "farmer"),
        "walletBalance": _number(form, "walletBalance", errors, "Wallet balance", minimum=0),
        "hasFullAccess": _flag(form, "hasFullAccess"),
    }
    errors.check()
    return payload


def parse_config_value(value_type: str, raw: Optional[str]) -> Any:
    """Coerce a posted configuration value to the entry's declared type."""
    raw = (raw or "").strip()
    if value_type == "boolean":
        return raw.lower() in TRUTHY
    if value_type == "number":
        try:
            value = float(raw)
        except ValueError:
            raise FormValidationError({"value": "Value must be a number"}) from None
        if not math.isfinite(value):
            raise FormValidationError({"value": "Value must be a number"}) from None
        return int(value) if value.is_integer() else value
    return raw


def parse_config(form: FormInput, value_type: str) -> dict:
    return {"value": parse_config_value(value_type, form.get("value"))}


PARSERS = {
    "ingredient": parse_ingredient,
    "category": parse_category,
    "standard": parse_standard,
    "template": parse_template,
    "rule": parse_rule,
    "user": parse_user,
}
