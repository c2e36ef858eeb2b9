"""
Catalog data access: campuses, dish categories, dishes and ingredients.
Does not commit; the caller owns the transaction.
"""
import logging
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.models.campus import Campus
from backend.models.dish import Dish, DishCategory, MealSlot, MEAL_SLOT_LABELS
from backend.models.ingredient import Ingredient
from backend.models.payloads import dump_declared_ingredients

logger = logging.getLogger(__name__)


class CatalogStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    # ------------------------------------------------------------------ #
    # Campuses
    # ------------------------------------------------------------------ #
    async def get_campuses_all(self) -> list[Campus]:
        result = await self.session.execute(select(Campus).order_by(Campus.name))
        return list(result.scalars().all())

    async def get_campus(self, campus_id: int) -> Optional[Campus]:
        result = await self.session.execute(select(Campus).where(Campus.id == campus_id))
        return result.scalar_one_or_none()

    async def get_campuses_by_ids(self, campus_ids: Iterable[int]) -> dict[int, Campus]:
        ids = list(campus_ids)
        if not ids:
            return {}
        result = await self.session.execute(select(Campus).where(Campus.id.in_(ids)))
        return {c.id: c for c in result.scalars().all()}

    # ------------------------------------------------------------------ #
    # Dishes
    # ------------------------------------------------------------------ #
    async def get_dish(self, dish_id: int) -> Optional[Dish]:
        result = await self.session.execute(select(Dish).where(Dish.id == dish_id))
        return result.scalar_one_or_none()

    async def get_dish_by_name_or_id(
        self,
        name: Optional[str] = None,
        dish_id: Optional[int] = None,
    ) -> Optional[Dish]:
        """Look a dish up by id, or by name among active dishes."""
        if dish_id is not None:
            return await self.get_dish(dish_id)
        if not name:
            return None
        result = await self.session.execute(
            select(Dish)
            .where(Dish.name == name.strip(), Dish.is_active == True)
            .order_by(Dish.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_dishes(
        self,
        meal_slot: Optional[MealSlot] = None,
        active_only: bool = True,
    ) -> list[tuple[Dish, DishCategory]]:
        query = (
            select(Dish, DishCategory)
            .join(DishCategory, Dish.category_id == DishCategory.id)
            .order_by(DishCategory.meal_slot, Dish.name)
        )
        if meal_slot is not None:
            query = query.where(DishCategory.meal_slot == meal_slot)
        if active_only:
            query = query.where(Dish.is_active == True)
        result = await self.session.execute(query)
        return [(row.Dish, row.DishCategory) for row in result.all()]

    async def get_random_dish_by_meal_slot(
        self,
        meal_slot: MealSlot,
        exclude_ids: Iterable[int],
        rng,
    ) -> Optional[Dish]:
        """Pick one active dish of the meal slot uniformly at random, skipping exclude_ids."""
        query = (
            select(Dish)
            .join(DishCategory, Dish.category_id == DishCategory.id)
            .where(DishCategory.meal_slot == meal_slot, Dish.is_active == True)
            .order_by(Dish.id)
        )
        excluded = list(exclude_ids)
        if excluded:
            query = query.where(Dish.id.not_in(excluded))

        result = await self.session.execute(query)
        candidates = list(result.scalars().all())
        if not candidates:
            return None
        return rng.choice(candidates)

    async def get_dish_meal_slot(self, dish_id: int) -> Optional[MealSlot]:
        result = await self.session.execute(
            select(DishCategory.meal_slot)
            .join(Dish, Dish.category_id == DishCategory.id)
            .where(Dish.id == dish_id)
        )
        return result.scalar_one_or_none()

    async def get_category_for_meal_slot(
        self,
        meal_slot: MealSlot,
        create: bool = False,
    ) -> Optional[DishCategory]:
        result = await self.session.execute(
            select(DishCategory)
            .where(DishCategory.meal_slot == meal_slot)
            .order_by(DishCategory.id)
            .limit(1)
        )
        category = result.scalar_one_or_none()
        if category is None and create:
            category = DishCategory(name=f"{MEAL_SLOT_LABELS[meal_slot]}菜品", meal_slot=meal_slot)
            self.session.add(category)
            await self.session.flush()
            logger.info(f"Created dish category {category.name!r} for {meal_slot.value}")
        return category

    async def create_dish(
        self,
        name: str,
        category_id: int,
        description: Optional[str] = None,
        ingredients: Optional[list] = None,
        nutrition_info: Optional[dict] = None,
    ) -> Dish:
        dish = Dish(
            name=name.strip(),
            category_id=category_id,
            description=description,
            ingredients=dump_declared_ingredients(ingredients or []),
            nutrition_info=nutrition_info or {},
            is_active=True,
        )
        self.session.add(dish)
        await self.session.flush()
        return dish

    # ------------------------------------------------------------------ #
    # Ingredients
    # ------------------------------------------------------------------ #
    async def get_ingredients_by_names(self, names: Iterable[str]) -> dict[str, Ingredient]:
        wanted = list(set(names))
        if not wanted:
            return {}
        result = await self.session.execute(select(Ingredient).where(Ingredient.name.in_(wanted)))
        return {i.name: i for i in result.scalars().all()}
