"""
Editing of individual recipe entries outside a generation run.
Every change refreshes the statistics of the generations it touches.
"""
import logging
from typing import Optional

from backend.config import get_settings
from backend.models.dish import Dish, MealSlot, MEAL_SLOTS, MEAL_SLOT_LABELS
from backend.models.payloads import parse_quantities
from backend.models.recipe import Recipe, GenerationStatus
from backend.repositories.catalog import CatalogStore
from backend.repositories.recipes import RecipeStore
from backend.services.quantity_resolver import QuantityResolver
from backend.services.statistics_aggregator import StatisticsAggregator
from backend.utils.exceptions import NotFoundError, ValidationFailure
from backend.utils.helpers import parse_date, week_window, weekdays_between

logger = logging.getLogger(__name__)
settings = get_settings()


def _meal_slot(value) -> MealSlot:
    try:
        return MealSlot(value)
    except ValueError:
        raise ValidationFailure([f"Unknown meal slot: {value}"])


def _recipe_dict(recipe: Recipe, dish_name: Optional[str] = None, campus_name: Optional[str] = None) -> dict:
    meal_slot = MealSlot(recipe.meal_slot)
    return {
        "id": recipe.id,
        "campus_id": recipe.campus_id,
        "campus_name": campus_name,
        "dish_id": recipe.dish_id,
        "dish_name": dish_name,
        "date": recipe.date.isoformat(),
        "meal_slot": meal_slot.value,
        "meal_slot_label": MEAL_SLOT_LABELS[meal_slot],
        "generation_id": recipe.generation_id,
        "servings": recipe.servings,
        "ingredient_quantities": {
            name: q.model_dump() for name, q in parse_quantities(recipe.ingredient_quantities).items()
        },
    }


class RecipeService:
    def __init__(
        self,
        catalog: CatalogStore,
        recipes: RecipeStore,
        resolver: QuantityResolver,
        aggregator: StatisticsAggregator,
        servings: Optional[int] = None,
    ):
        self.catalog = catalog
        self.recipes = recipes
        self.resolver = resolver
        self.aggregator = aggregator
        self.servings = servings or settings.DEFAULT_SERVINGS

    async def get_detail(self, recipe_id: int) -> dict:
        recipe = await self._get_recipe(recipe_id)
        dish = await self.catalog.get_dish(recipe.dish_id)
        campus = await self.catalog.get_campus(recipe.campus_id)
        return _recipe_dict(
            recipe,
            dish.name if dish else None,
            campus.name if campus else None,
        )

    async def list_recipes(self, campus_id=None, start_date=None, end_date=None, meal_slot=None, generation_id=None) -> list[dict]:
        rows = await self.recipes.list_recipes(
            campus_id=campus_id,
            start_date=parse_date(start_date),
            end_date=parse_date(end_date),
            meal_slot=_meal_slot(meal_slot) if meal_slot else None,
            generation_id=generation_id,
        )
        return [_recipe_dict(recipe, dish_name, campus_name) for recipe, dish_name, campus_name in rows]

    async def update(
        self,
        recipe_id: int,
        dish_id: Optional[int] = None,
        dish_name: Optional[str] = None,
        day=None,
        meal_slot=None,
        servings: Optional[int] = None,
        ingredient_quantities: Optional[dict] = None,
    ) -> dict:
        """Change a recipe's dish, date, slot or servings.

        Quantities are re-resolved from the dish unless given explicitly.
        """
        recipe = await self._get_recipe(recipe_id)

        dish = await self._find_dish(dish_id, dish_name) if (dish_id or dish_name) else None
        if dish is None:
            dish = await self.catalog.get_dish(recipe.dish_id)
            if dish is None:
                raise NotFoundError("Dish", recipe.dish_id)

        new_day = recipe.date
        if day is not None:
            new_day = parse_date(day)
            if new_day is None:
                raise ValidationFailure(["Invalid date format. Please use YYYY-MM-DD format."])
        new_slot = _meal_slot(meal_slot) if meal_slot is not None else MealSlot(recipe.meal_slot)
        new_servings = servings or recipe.servings

        if (new_day, new_slot) != (recipe.date, MealSlot(recipe.meal_slot)):
            clash = await self.recipes.get_recipe_by_slot(recipe.campus_id, new_day, new_slot)
            if clash is not None and clash.id != recipe.id:
                raise ValidationFailure([
                    f"Campus already has a recipe for {new_day} {MEAL_SLOT_LABELS[new_slot]}"
                ])

        if ingredient_quantities is None:
            ingredient_quantities = await self.resolver.resolve_quantities(dish, new_servings, new_slot)

        await self.recipes.update_recipe(
            recipe,
            dish_id=dish.id,
            date=new_day,
            meal_slot=new_slot,
            servings=new_servings,
            ingredient_quantities=ingredient_quantities,
        )
        logger.info(f"Updated recipe {recipe.id}: dish {dish.name!r}, {new_day} {new_slot.value}")

        if recipe.generation_id is not None:
            await self.aggregator.refresh(recipe.generation_id)
        return await self.get_detail(recipe.id)

    async def delete(self, recipe_id: int) -> None:
        recipe = await self._get_recipe(recipe_id)
        generation_id = recipe.generation_id
        await self.recipes.delete_recipe(recipe)
        logger.info(f"Deleted recipe {recipe_id}")
        if generation_id is not None:
            await self.aggregator.refresh(generation_id)

    async def create_manual(
        self,
        campus_id: int,
        dish_name: str,
        day,
        meal_slot,
        servings: Optional[int] = None,
    ) -> dict:
        """Add one recipe by hand under its own single-day generation.

        An unknown dish name is added to the catalog under the slot's category.
        """
        errors = []
        if not dish_name or not dish_name.strip():
            errors.append("Dish name is required")
        parsed_day = parse_date(day)
        if parsed_day is None:
            errors.append("Invalid date format. Please use YYYY-MM-DD format.")
        if errors:
            raise ValidationFailure(errors)
        slot = _meal_slot(meal_slot)
        servings = servings or self.servings

        campus = await self.catalog.get_campus(campus_id)
        if campus is None:
            raise NotFoundError("Campus", campus_id)

        dish = await self.catalog.get_dish_by_name_or_id(name=dish_name)
        if dish is None:
            category = await self.catalog.get_category_for_meal_slot(slot, create=True)
            dish = await self.catalog.create_dish(
                name=dish_name,
                category_id=category.id,
                description=f"{MEAL_SLOT_LABELS[slot]}菜品",
            )
            logger.info(f"Added dish {dish.name!r} to the catalog from a manual recipe")

        generation = await self.recipes.create_recipe_generation(parsed_day, parsed_day, notes="manual entry")
        quantities = await self.resolver.resolve_quantities(dish, servings, slot)
        recipe, previous_generation_id = await self.recipes.upsert_recipe(
            campus_id=campus.id,
            dish_id=dish.id,
            day=parsed_day,
            meal_slot=slot,
            generation_id=generation.id,
            servings=servings,
            ingredient_quantities=quantities,
        )
        await self.recipes.update_generation_status(generation.id, GenerationStatus.COMPLETED, 1)
        await self.aggregator.precompute(generation.id)
        if previous_generation_id is not None and previous_generation_id != generation.id:
            await self.aggregator.refresh(previous_generation_id)

        return _recipe_dict(recipe, dish.name, campus.name)

    async def weekly_schedule(self, campus_id: int, any_date) -> dict:
        """Monday-Friday grid for the week containing any_date: {date: {slot: recipe or None}}"""
        day = parse_date(any_date)
        if day is None:
            raise ValidationFailure(["Invalid date format. Please use YYYY-MM-DD format."])
        if await self.catalog.get_campus(campus_id) is None:
            raise NotFoundError("Campus", campus_id)

        week_start, week_end = week_window(day)
        schedule = {
            d.isoformat(): {slot.value: None for slot in MEAL_SLOTS}
            for d in weekdays_between(week_start, week_end)
        }
        rows = await self.recipes.list_recipes(campus_id=campus_id, start_date=week_start, end_date=week_end)
        for recipe, dish_name, campus_name in rows:
            schedule[recipe.date.isoformat()][MealSlot(recipe.meal_slot).value] = _recipe_dict(
                recipe, dish_name, campus_name
            )
        return schedule

    async def _get_recipe(self, recipe_id: int) -> Recipe:
        recipe = await self.recipes.get_recipe(recipe_id)
        if recipe is None:
            raise NotFoundError("Recipe", recipe_id)
        return recipe

    async def _find_dish(self, dish_id: Optional[int], dish_name: Optional[str]) -> Dish:
        dish = await self.catalog.get_dish_by_name_or_id(name=dish_name, dish_id=dish_id)
        if dish is None:
            raise NotFoundError("Dish", dish_id or dish_name)
        return dish
