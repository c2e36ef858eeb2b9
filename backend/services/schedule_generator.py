"""
Weekly meal schedule generation.

For every campus, weekday and meal slot, picks the configured number of
dishes, resolves their ingredient quantities and writes the recipes under
one RecipeGeneration. A failing slot is logged and skipped; the run carries on.
"""
import logging
import random
from datetime import date
from typing import Iterable, Optional

from backend.config import get_settings
from backend.models.campus import Campus
from backend.models.dish import MEAL_SLOTS, MEAL_SLOT_DISH_COUNTS, MealSlot
from backend.models.recipe import GenerationStatus
from backend.repositories.catalog import CatalogStore
from backend.repositories.recipes import RecipeStore
from backend.services.dish_selector import DishSelector
from backend.services.quantity_resolver import QuantityResolver
from backend.services.statistics_aggregator import StatisticsAggregator
from backend.utils.exceptions import NotFoundError
from backend.utils.helpers import weekdays_between
from backend.utils.validators import validate_generation_request

logger = logging.getLogger(__name__)
settings = get_settings()


class ScheduleGenerator:
    def __init__(
        self,
        catalog: CatalogStore,
        recipes: RecipeStore,
        selector: DishSelector,
        resolver: QuantityResolver,
        aggregator: StatisticsAggregator,
        rng: Optional[random.Random] = None,
        servings: Optional[int] = None,
    ):
        self.catalog = catalog
        self.recipes = recipes
        self.selector = selector
        self.resolver = resolver
        self.aggregator = aggregator
        self.rng = rng or selector.rng
        self.servings = servings or settings.DEFAULT_SERVINGS

    async def generate(self, campus_ids: Iterable[int], start_date, end_date) -> dict:
        """Generate recipes for the campuses over the weekdays of [start_date, end_date].

        Raises ValidationFailure for a bad request and NotFoundError for an
        unknown campus, both before anything is written.
        """
        campus_ids = list(dict.fromkeys(campus_ids or []))
        start, end = validate_generation_request(campus_ids, start_date, end_date)

        campuses = await self.catalog.get_campuses_by_ids(campus_ids)
        for campus_id in campus_ids:
            if campus_id not in campuses:
                raise NotFoundError("Campus", campus_id)

        generation = await self.recipes.create_recipe_generation(
            start,
            end,
            notes=f"Generated for {len(campus_ids)} campus(es) from {start} to {end}",
        )
        generation_id = generation.id
        displaced_generations: set[int] = set()

        try:
            total_recipes = 0
            results = []
            for campus_id in campus_ids:
                campus_result = await self.generate_campus(
                    campuses[campus_id], start, end, generation_id, displaced_generations
                )
                total_recipes += len(campus_result["recipes"])
                results.append(campus_result)

            await self.recipes.update_generation_status(
                generation_id, GenerationStatus.COMPLETED, total_recipes
            )
            await self.aggregator.precompute(generation_id)
        except Exception:
            logger.exception(f"Recipe generation {generation_id} failed")
            await self.recipes.update_generation_status(generation_id, GenerationStatus.FAILED)
            raise

        # Older generations lost recipes to upserts; their totals are stale
        for previous_id in sorted(displaced_generations - {generation_id}):
            await self.aggregator.refresh(previous_id)

        return {
            "generation_id": generation_id,
            "total_recipes": total_recipes,
            "results": results,
        }

    async def generate_campus(
        self,
        campus: Campus,
        start: date,
        end: date,
        generation_id: int,
        displaced_generations: Optional[set[int]] = None,
    ) -> dict:
        if displaced_generations is None:
            displaced_generations = set()
        recipes: list[dict] = []
        used_dishes: set[int] = set()  # no repeats for this campus across the whole run

        for day in weekdays_between(start, end):
            for meal_slot in MEAL_SLOTS:
                try:
                    async with self.recipes.savepoint():
                        written = await self._fill_slot(
                            campus.id, day, meal_slot, generation_id, used_dishes, displaced_generations
                        )
                except Exception as e:
                    logger.error(
                        f"Error generating recipe for campus {campus.id}, date {day}, "
                        f"meal {meal_slot.value}: {e}"
                    )
                    continue
                recipes.extend(written)

        return {
            "campus": {"id": campus.id, "name": campus.name, "code": campus.code},
            "recipes": recipes,
            "stats": {
                "total_recipes": len(recipes),
                "unique_dishes": len(used_dishes),
                "date_range": f"{start} to {end}",
            },
        }

    async def _fill_slot(
        self,
        campus_id: int,
        day: date,
        meal_slot: MealSlot,
        generation_id: int,
        used_dishes: set[int],
        displaced_generations: set[int],
    ) -> list[dict]:
        min_dishes, max_dishes = MEAL_SLOT_DISH_COUNTS[meal_slot]
        dish_count = self.rng.randint(min_dishes, max_dishes)

        written = []
        for _ in range(dish_count):
            dish = await self.selector.select_dish(campus_id, day, meal_slot, used_dishes)
            quantities = await self.resolver.resolve_quantities(dish, self.servings, meal_slot)

            recipe, previous_generation_id = await self.recipes.upsert_recipe(
                campus_id=campus_id,
                dish_id=dish.id,
                day=day,
                meal_slot=meal_slot,
                generation_id=generation_id,
                servings=self.servings,
                ingredient_quantities=quantities,
            )
            if previous_generation_id is not None:
                displaced_generations.add(previous_generation_id)

            used_dishes.add(dish.id)
            written.append({
                "id": recipe.id,
                "date": day.isoformat(),
                "meal_slot": meal_slot.value,
                "dish_id": dish.id,
                "dish_name": dish.name,
                "servings": self.servings,
            })
        return written
