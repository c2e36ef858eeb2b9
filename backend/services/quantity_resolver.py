"""
Ingredient quantity resolution for a dish served to N children.

Declared dish quantities are per 100 servings and scale linearly. Dishes
without a usable ingredient list fall back to a per-meal-slot template of
generic roles (staple, meat dish, milk...).
"""
import logging

from backend.models.dish import Dish, MealSlot
from backend.models.ingredient import IngredientCategory
from backend.models.payloads import ResolvedQuantity
from backend.repositories.catalog import CatalogStore

logger = logging.getLogger(__name__)

BASELINE_SERVINGS = 100
DEFAULT_BASE_QUANTITY = 50.0

# role name -> (quantity per 100 servings, unit, ingredient category)
DEFAULT_INGREDIENT_TEMPLATES = {
    MealSlot.BREAKFAST: {
        "主食": (80, "g", IngredientCategory.GRAINS),
        "配菜": (60, "g", IngredientCategory.VEGETABLES),
        "饮品": (200, "ml", IngredientCategory.DAIRY),
    },
    MealSlot.MORNING_SNACK: {
        "水果": (150, "g", IngredientCategory.FRUITS),
    },
    MealSlot.LUNCH: {
        "主食": (100, "g", IngredientCategory.GRAINS),
        "荤菜": (80, "g", IngredientCategory.MEAT),
        "素菜": (120, "g", IngredientCategory.VEGETABLES),
        "鲜牛奶": (250, "ml", IngredientCategory.DAIRY),  # milk served after lunch
    },
    MealSlot.AFTERNOON_SNACK: {
        "点心": (80, "g", IngredientCategory.GRAINS),
        "饮品": (200, "ml", IngredientCategory.DAIRY),
    },
    MealSlot.AFTERNOON_TEA: {
        "主食": (60, "g", IngredientCategory.GRAINS),
        "点心": (80, "g", IngredientCategory.GRAINS),
        "鲜牛奶": (250, "ml", IngredientCategory.DAIRY),
    },
}


def scale_quantity(base: float, servings: int) -> float:
    return base * servings / BASELINE_SERVINGS


def default_quantities(servings: int, meal_slot) -> dict[str, ResolvedQuantity]:
    """Template quantities for a meal slot; unknown slots use the lunch template."""
    try:
        template = DEFAULT_INGREDIENT_TEMPLATES[MealSlot(meal_slot)]
    except ValueError:
        template = DEFAULT_INGREDIENT_TEMPLATES[MealSlot.LUNCH]

    return {
        name: ResolvedQuantity(
            quantity=scale_quantity(base, servings),
            unit=unit,
            category=category.value,
        )
        for name, (base, unit, category) in template.items()
    }


class QuantityResolver:
    def __init__(self, catalog: CatalogStore):
        self.catalog = catalog

    async def resolve_quantities(
        self,
        dish: Dish,
        servings: int,
        meal_slot: MealSlot,
    ) -> dict[str, ResolvedQuantity]:
        """Map ingredient name -> scaled quantity, unit and category.

        Unit and category come from the ingredient catalog, not the dish.
        Ingredients missing from the catalog are logged and dropped.
        """
        declared = dish.declared_ingredients
        if not declared:
            logger.debug(f"Dish {dish.name!r} declares no ingredients, using {meal_slot} template")
            return default_quantities(servings, meal_slot)

        catalog_entries = await self.catalog.get_ingredients_by_names(item.name for item in declared)

        quantities: dict[str, ResolvedQuantity] = {}
        for item in declared:
            ingredient = catalog_entries.get(item.name)
            if ingredient is None:
                logger.warning(f"Ingredient {item.name!r} of dish {dish.name!r} not in catalog, skipped")
                continue

            base = item.quantity or DEFAULT_BASE_QUANTITY
            quantities[item.name] = ResolvedQuantity(
                quantity=scale_quantity(base, servings),
                unit=ingredient.unit or "g",
                category=IngredientCategory(ingredient.category).value,
            )

        return quantities
