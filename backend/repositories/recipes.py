"""
Recipe, generation and statistics-projection data access.
Does not commit; the caller owns the transaction.
"""
import logging
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.models.campus import Campus
from backend.models.dish import Dish, MealSlot
from backend.models.ingredient import Ingredient, IngredientCategory
from backend.models.payloads import dump_quantities
from backend.models.recipe import Recipe, RecipeGeneration, RecipeIngredient, GenerationStatus
from backend.models.statistics_cache import StatisticsCacheEntry

logger = logging.getLogger(__name__)


class RecipeStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    def savepoint(self):
        """Nested transaction; rolled back on its own if the block raises"""
        return self.session.begin_nested()

    # ------------------------------------------------------------------ #
    # Generations
    # ------------------------------------------------------------------ #
    async def create_recipe_generation(
        self,
        start_date: date,
        end_date: date,
        notes: Optional[str] = None,
    ) -> RecipeGeneration:
        generation = RecipeGeneration(
            start_date=start_date,
            end_date=end_date,
            status=GenerationStatus.PENDING,
            total_recipes=0,
            notes=notes,
        )
        self.session.add(generation)
        await self.session.flush()
        return generation

    async def update_generation_status(
        self,
        generation_id: int,
        status: GenerationStatus,
        total_recipes: Optional[int] = None,
    ) -> Optional[RecipeGeneration]:
        generation = await self.get_generation(generation_id)
        if generation is None:
            return None
        generation.status = status
        if total_recipes is not None:
            generation.total_recipes = total_recipes
        await self.session.flush()
        logger.info(f"Generation {generation_id} -> {status.value} ({generation.total_recipes} recipes)")
        return generation

    async def get_generation(self, generation_id: int) -> Optional[RecipeGeneration]:
        result = await self.session.execute(
            select(RecipeGeneration).where(RecipeGeneration.id == generation_id)
        )
        return result.scalar_one_or_none()

    async def list_generations(self) -> list[RecipeGeneration]:
        result = await self.session.execute(
            select(RecipeGeneration).order_by(
                RecipeGeneration.generated_at.desc(), RecipeGeneration.id.desc()
            )
        )
        return list(result.scalars().all())

    async def get_latest_generation_with_statistics(self) -> Optional[RecipeGeneration]:
        """Most recent completed generation that has a persisted statistics projection"""
        result = await self.session.execute(
            select(RecipeGeneration)
            .where(
                RecipeGeneration.status == GenerationStatus.COMPLETED,
                RecipeGeneration.id.in_(select(StatisticsCacheEntry.generation_id)),
            )
            .order_by(RecipeGeneration.generated_at.desc(), RecipeGeneration.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------ #
    # Recipes
    # ------------------------------------------------------------------ #
    async def get_recipe(self, recipe_id: int) -> Optional[Recipe]:
        result = await self.session.execute(select(Recipe).where(Recipe.id == recipe_id))
        return result.scalar_one_or_none()

    async def get_recipe_by_slot(
        self,
        campus_id: int,
        day: date,
        meal_slot: MealSlot,
    ) -> Optional[Recipe]:
        result = await self.session.execute(
            select(Recipe).where(
                Recipe.campus_id == campus_id,
                Recipe.date == day,
                Recipe.meal_slot == meal_slot,
            )
        )
        return result.scalar_one_or_none()

    async def upsert_recipe(
        self,
        campus_id: int,
        dish_id: int,
        day: date,
        meal_slot: MealSlot,
        generation_id: Optional[int],
        servings: int,
        ingredient_quantities: dict,
    ) -> tuple[Recipe, Optional[int]]:
        """Insert the recipe for (campus, date, meal slot) or overwrite the existing one.

        Returns the recipe and, when an existing row was overwritten, the
        generation id it belonged to before.
        """
        quantities = dump_quantities(ingredient_quantities)
        existing = await self.get_recipe_by_slot(campus_id, day, meal_slot)

        if existing is None:
            recipe = Recipe(
                campus_id=campus_id,
                dish_id=dish_id,
                date=day,
                meal_slot=meal_slot,
                generation_id=generation_id,
                servings=servings,
                ingredient_quantities=quantities,
            )
            try:
                async with self.session.begin_nested():
                    self.session.add(recipe)
                    await self.session.flush()
            except IntegrityError:
                # Another writer took the slot between our read and insert
                logger.info(f"Recipe slot taken for campus {campus_id} {day} {meal_slot.value}, updating")
                existing = await self.get_recipe_by_slot(campus_id, day, meal_slot)
                if existing is None:
                    raise
            else:
                await self.replace_recipe_ingredients(recipe.id, quantities)
                return recipe, None

        previous_generation_id = existing.generation_id
        existing.dish_id = dish_id
        existing.generation_id = generation_id
        existing.servings = servings
        existing.ingredient_quantities = quantities
        await self.session.flush()
        await self.replace_recipe_ingredients(existing.id, quantities)
        return existing, previous_generation_id

    async def update_recipe(self, recipe: Recipe, **fields: Any) -> Recipe:
        if "ingredient_quantities" in fields:
            fields["ingredient_quantities"] = dump_quantities(fields["ingredient_quantities"])
        for key, value in fields.items():
            setattr(recipe, key, value)
        await self.session.flush()
        if "ingredient_quantities" in fields:
            await self.replace_recipe_ingredients(recipe.id, fields["ingredient_quantities"])
        return recipe

    async def delete_recipe(self, recipe: Recipe) -> None:
        await self.delete_recipe_ingredients(recipe.id)
        await self.session.delete(recipe)
        await self.session.flush()

    async def delete_recipe_ingredients(self, recipe_id: int) -> None:
        await self.session.execute(
            delete(RecipeIngredient).where(RecipeIngredient.recipe_id == recipe_id)
        )

    async def replace_recipe_ingredients(self, recipe_id: int, ingredient_quantities: dict) -> int:
        """Rebuild the recipe_ingredients rows from a quantity mapping.

        Only names present in the ingredient catalog get a row; returns the row count.
        """
        await self.delete_recipe_ingredients(recipe_id)
        if not ingredient_quantities:
            return 0

        result = await self.session.execute(
            select(Ingredient).where(Ingredient.name.in_(list(ingredient_quantities)))
        )
        by_name = {i.name: i for i in result.scalars().all()}

        count = 0
        for name, data in ingredient_quantities.items():
            ingredient = by_name.get(name)
            if ingredient is None:
                logger.debug(f"No catalog ingredient named {name!r}, not tracked in statistics")
                continue
            self.session.add(RecipeIngredient(
                recipe_id=recipe_id,
                ingredient_id=ingredient.id,
                quantity=data.get("quantity") or 0,
                unit=data.get("unit") or ingredient.unit or "g",
            ))
            count += 1
        await self.session.flush()
        return count

    async def list_recipes(
        self,
        campus_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        meal_slot: Optional[MealSlot] = None,
        generation_id: Optional[int] = None,
    ) -> list[tuple[Recipe, str, str]]:
        """Recipes with their dish and campus names, newest date first"""
        query = (
            select(Recipe, Dish.name.label("dish_name"), Campus.name.label("campus_name"))
            .join(Dish, Recipe.dish_id == Dish.id)
            .join(Campus, Recipe.campus_id == Campus.id)
        )
        if campus_id is not None:
            query = query.where(Recipe.campus_id == campus_id)
        if start_date is not None:
            query = query.where(Recipe.date >= start_date)
        if end_date is not None:
            query = query.where(Recipe.date <= end_date)
        if meal_slot is not None:
            query = query.where(Recipe.meal_slot == meal_slot)
        if generation_id is not None:
            query = query.where(Recipe.generation_id == generation_id)
        query = query.order_by(Recipe.date.desc(), Recipe.meal_slot, Campus.name)

        result = await self.session.execute(query)
        return [(row.Recipe, row.dish_name, row.campus_name) for row in result.all()]

    async def get_used_dish_ids_in_week(
        self,
        campus_id: int,
        week_start: date,
        week_end: date,
    ) -> set[int]:
        result = await self.session.execute(
            select(Recipe.dish_id)
            .where(
                Recipe.campus_id == campus_id,
                Recipe.date >= week_start,
                Recipe.date <= week_end,
            )
            .distinct()
        )
        return set(result.scalars().all())

    async def get_recipes_for_day_and_campus(self, campus_id: int, day: date) -> list[Recipe]:
        result = await self.session.execute(
            select(Recipe).where(Recipe.campus_id == campus_id, Recipe.date == day)
        )
        return list(result.scalars().all())

    async def get_generation_ids_using_ingredient(self, ingredient_id: int) -> list[int]:
        result = await self.session.execute(
            select(Recipe.generation_id)
            .join(RecipeIngredient, RecipeIngredient.recipe_id == Recipe.id)
            .where(RecipeIngredient.ingredient_id == ingredient_id, Recipe.generation_id.is_not(None))
            .distinct()
            .order_by(Recipe.generation_id)
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------ #
    # Statistics
    # ------------------------------------------------------------------ #
    async def aggregate_category_usage(
        self,
        generation_id: int,
        category: IngredientCategory,
    ) -> list[Any]:
        """Summed quantity per (campus, ingredient) for one generation and category.

        Ordered by campus name, then total quantity descending.
        """
        total = func.sum(RecipeIngredient.quantity)
        result = await self.session.execute(
            select(
                Recipe.campus_id,
                Campus.name.label("campus_name"),
                Ingredient.name.label("ingredient_name"),
                Ingredient.category,
                Ingredient.unit,
                total.label("total_quantity"),
            )
            .select_from(RecipeIngredient)
            .join(Ingredient, RecipeIngredient.ingredient_id == Ingredient.id)
            .join(Recipe, RecipeIngredient.recipe_id == Recipe.id)
            .join(Campus, Recipe.campus_id == Campus.id)
            .where(Recipe.generation_id == generation_id, Ingredient.category == category)
            .group_by(
                Recipe.campus_id, Campus.name, Ingredient.id,
                Ingredient.name, Ingredient.category, Ingredient.unit,
            )
            .order_by(Campus.name, total.desc())
        )
        return list(result.all())

    async def upsert_statistics_entry(
        self,
        generation_id: int,
        category: str,
        campus_id: int,
        total_quantity: float,
        unit: str,
    ) -> StatisticsCacheEntry:
        result = await self.session.execute(
            select(StatisticsCacheEntry).where(
                StatisticsCacheEntry.generation_id == generation_id,
                StatisticsCacheEntry.ingredient_category == category,
                StatisticsCacheEntry.campus_id == campus_id,
            )
        )
        entry = result.scalar_one_or_none()
        if entry is None:
            entry = StatisticsCacheEntry(
                generation_id=generation_id,
                ingredient_category=category,
                campus_id=campus_id,
            )
            self.session.add(entry)
        entry.total_quantity = total_quantity
        entry.unit = unit
        entry.calculated_at = datetime.utcnow()
        await self.session.flush()
        return entry

    async def clear_statistics(self, generation_id: int) -> None:
        await self.session.execute(
            delete(StatisticsCacheEntry).where(StatisticsCacheEntry.generation_id == generation_id)
        )

    async def get_cached_statistics(self, generation_id: int, category: str) -> list[Any]:
        result = await self.session.execute(
            select(StatisticsCacheEntry, Campus.name.label("campus_name"))
            .outerjoin(Campus, StatisticsCacheEntry.campus_id == Campus.id)
            .where(
                StatisticsCacheEntry.generation_id == generation_id,
                StatisticsCacheEntry.ingredient_category == category,
            )
            .order_by(Campus.name)
        )
        return list(result.all())

    async def get_statistics_summary(self, generation_id: int) -> list[Any]:
        result = await self.session.execute(
            select(
                StatisticsCacheEntry.ingredient_category,
                StatisticsCacheEntry.unit,
                func.sum(StatisticsCacheEntry.total_quantity).label("grand_total"),
                func.count(StatisticsCacheEntry.id).label("campus_count"),
            )
            .where(StatisticsCacheEntry.generation_id == generation_id)
            .group_by(StatisticsCacheEntry.ingredient_category, StatisticsCacheEntry.unit)
            .order_by(StatisticsCacheEntry.ingredient_category)
        )
        return list(result.all())
