"""
Dish selection for one campus/date/meal slot.

Stages are tried in order until one yields a dish:
  1. not used by the campus this week (Mon-Fri) nor earlier in the current run
  2. not already served to the campus on the same day
  3. any active dish of the meal slot
  4. a canned dish synthesized into the catalog (always succeeds)
"""
import logging
import random
from datetime import date
from typing import Iterable, Optional

from backend.config import get_settings
from backend.models.dish import Dish, MealSlot, MEAL_SLOT_LABELS
from backend.repositories.catalog import CatalogStore
from backend.repositories.recipes import RecipeStore
from backend.utils.helpers import week_window

logger = logging.getLogger(__name__)
settings = get_settings()


def _canned(name: str, ingredients: list[str], calories, protein, carbs, fat) -> dict:
    return {
        "name": name,
        "ingredients": [{"name": i, "quantity": "100g"} for i in ingredients],
        "nutrition_info": {"calories": calories, "protein": protein, "carbs": carbs, "fat": fat},
    }


# Used when the catalog has no active dish for a meal slot
CANNED_DISHES = {
    MealSlot.BREAKFAST: [
        _canned("小米粥", ["小米", "水"], 50, 1.2, 11, 0.3),
        _canned("豆浆", ["黄豆", "水"], 35, 3.0, 2, 1.8),
        _canned("煮鸡蛋", ["鸡蛋"], 155, 13, 1.1, 11),
        _canned("蒸包子", ["面粉", "酵母", "肉馅"], 120, 6, 18, 3),
        _canned("煎饼", ["面粉", "鸡蛋", "葱"], 150, 5, 20, 6),
    ],
    MealSlot.MORNING_SNACK: [
        _canned("苹果", ["苹果"], 52, 0.3, 14, 0.2),
        _canned("香蕉", ["香蕉"], 89, 1.1, 23, 0.3),
        _canned("橙子", ["橙子"], 47, 0.9, 12, 0.1),
        _canned("葡萄", ["葡萄"], 69, 0.7, 18, 0.2),
    ],
    MealSlot.LUNCH: [
        _canned("白米饭", ["大米"], 130, 2.7, 28, 0.3),
        _canned("红烧肉", ["猪肉", "生抽", "老抽", "冰糖"], 250, 25, 5, 15),
        _canned("炒青菜", ["青菜", "蒜", "植物油"], 60, 2, 6, 4),
        _canned("番茄鸡蛋汤", ["番茄", "鸡蛋", "葱"], 80, 6, 8, 3),
        _canned("清炒时蔬", ["时令蔬菜", "蒜"], 45, 2, 6, 2),
        _canned("宫保鸡丁", ["鸡肉", "花生", "干辣椒"], 180, 20, 8, 12),
    ],
    MealSlot.AFTERNOON_SNACK: [
        _canned("小饼干", ["面粉", "黄油", "糖"], 100, 2, 15, 4),
        _canned("酸奶", ["牛奶", "菌种"], 70, 4, 12, 2),
        _canned("果汁", ["水果", "水"], 50, 0.5, 12, 0),
        _canned("小蛋糕", ["鸡蛋", "面粉", "糖"], 120, 4, 20, 3),
    ],
    MealSlot.AFTERNOON_TEA: [
        _canned("小馒头", ["面粉", "酵母"], 90, 3, 18, 1),
        _canned("蒸蛋糕", ["鸡蛋", "面粉", "糖"], 120, 4, 20, 3),
        _canned("牛奶", ["牛奶"], 42, 3.4, 5, 1),
        _canned("水果拼盘", ["苹果", "香蕉", "橙子"], 70, 1, 17, 0.2),
    ],
}


class DishSelector:
    def __init__(
        self,
        catalog: CatalogStore,
        recipes: RecipeStore,
        rng: Optional[random.Random] = None,
        max_attempts: Optional[int] = None,
    ):
        self.catalog = catalog
        self.recipes = recipes
        self.rng = rng or random.Random()
        self.max_attempts = max_attempts or settings.DISH_SELECTION_ATTEMPTS
        self.stages = [
            self.pick_unused_this_week,
            self.pick_not_served_today,
            self.pick_any_active,
            self.synthesize_dish,
        ]

    async def select_dish(
        self,
        campus_id: int,
        day: date,
        meal_slot: MealSlot,
        exclude_ids: Iterable[int] = (),
    ) -> Dish:
        """Pick a dish for the slot. Store errors propagate to the caller."""
        excluded = set(exclude_ids)
        for stage in self.stages:
            dish = await stage(campus_id, day, meal_slot, excluded)
            if dish is not None:
                return dish
        raise RuntimeError(f"No dish could be selected for {meal_slot.value}")

    async def pick_unused_this_week(
        self, campus_id: int, day: date, meal_slot: MealSlot, exclude_ids: set[int]
    ) -> Optional[Dish]:
        week_start, week_end = week_window(day)
        used_this_week = await self.recipes.get_used_dish_ids_in_week(campus_id, week_start, week_end)
        excluded = used_this_week | exclude_ids

        for _ in range(self.max_attempts):
            dish = await self.catalog.get_random_dish_by_meal_slot(meal_slot, excluded, self.rng)
            if dish is not None:
                return dish
        return None

    async def pick_not_served_today(
        self, campus_id: int, day: date, meal_slot: MealSlot, exclude_ids: set[int]
    ) -> Optional[Dish]:
        todays = await self.recipes.get_recipes_for_day_and_campus(campus_id, day)
        dish = await self.catalog.get_random_dish_by_meal_slot(
            meal_slot, {r.dish_id for r in todays}, self.rng
        )
        if dish is not None:
            logger.info(f"Campus {campus_id} {day} {meal_slot.value}: reusing a dish from earlier this week")
        return dish

    async def pick_any_active(
        self, campus_id: int, day: date, meal_slot: MealSlot, exclude_ids: set[int]
    ) -> Optional[Dish]:
        dish = await self.catalog.get_random_dish_by_meal_slot(meal_slot, (), self.rng)
        if dish is not None:
            logger.info(f"Campus {campus_id} {day} {meal_slot.value}: repeating a dish served today")
        return dish

    async def synthesize_dish(
        self, campus_id: int, day: date, meal_slot: MealSlot, exclude_ids: set[int]
    ) -> Dish:
        """Create a canned dish for the meal slot and add it to the catalog"""
        template = self.rng.choice(CANNED_DISHES.get(meal_slot) or CANNED_DISHES[MealSlot.LUNCH])
        category = await self.catalog.get_category_for_meal_slot(meal_slot, create=True)

        dish = await self.catalog.create_dish(
            name=template["name"],
            category_id=category.id,
            description=f"{MEAL_SLOT_LABELS[meal_slot]}菜品",
            ingredients=template["ingredients"],
            nutrition_info=template["nutrition_info"],
        )
        logger.warning(f"No {meal_slot.value} dishes in catalog, created default dish {dish.name!r}")
        return dish
