"""
Typed shapes for the JSON blobs stored on dishes and recipes.

Dish.ingredients holds a list of declared ingredients; Recipe.ingredient_quantities
holds the resolved quantity mapping snapshotted when the recipe was written.
Both are validated here when read from or written to the store.
"""
import json
import logging
import re
from typing import Any, Optional

from pydantic import BaseModel, ValidationError, field_validator, model_validator

logger = logging.getLogger(__name__)

_QUANTITY_RE = re.compile(r"(\d+(?:\.\d+)?)\s*([^\d\s]*)")


class DeclaredIngredient(BaseModel):
    """One entry of a dish's ingredient list, relative to 100 servings."""
    name: str
    quantity: Optional[float] = None
    unit: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _split_quantity_string(cls, data: Any) -> Any:
        # "100g" -> quantity=100, unit="g"; unparseable strings leave quantity unset
        if isinstance(data, str):
            data = {"name": data}
        if isinstance(data, dict) and isinstance(data.get("quantity"), str):
            data = dict(data)
            match = _QUANTITY_RE.search(data["quantity"])
            if match:
                data["quantity"] = float(match.group(1))
                if match.group(2) and not data.get("unit"):
                    data["unit"] = match.group(2)
            else:
                data["quantity"] = None
        return data

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("ingredient name must not be empty")
        return v


class ResolvedQuantity(BaseModel):
    quantity: float
    unit: str = "g"
    category: Optional[str] = None


def _load_json(raw: Any) -> Any:
    if isinstance(raw, (str, bytes)):
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            return None
    return raw


def parse_declared_ingredients(raw: Any) -> list[DeclaredIngredient]:
    """Parse a stored ingredient list. Malformed entries are dropped, the rest kept."""
    data = _load_json(raw)
    if not isinstance(data, list):
        return []
    declared = []
    for item in data:
        try:
            declared.append(DeclaredIngredient.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Dropping malformed dish ingredient {item!r}: {e.error_count()} error(s)")
    return declared


def dump_declared_ingredients(items: list) -> list[dict]:
    """Normalize declared ingredients for storage."""
    return [
        DeclaredIngredient.model_validate(item).model_dump()
        for item in items or []
    ]


def parse_quantities(raw: Any) -> dict[str, ResolvedQuantity]:
    """Parse a stored ingredient-quantity snapshot, dropping malformed entries."""
    data = _load_json(raw)
    if not isinstance(data, dict):
        return {}
    quantities = {}
    for name, value in data.items():
        try:
            quantities[name] = ResolvedQuantity.model_validate(value)
        except ValidationError:
            logger.warning(f"Dropping malformed quantity entry for {name!r}")
    return quantities


def dump_quantities(quantities: dict) -> dict[str, dict]:
    return {
        name: ResolvedQuantity.model_validate(value).model_dump()
        for name, value in (quantities or {}).items()
    }
