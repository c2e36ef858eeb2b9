"""
Dish catalog: dish categories (one meal slot each) and dishes.
A dish belongs to exactly one meal slot through its category.
"""
from enum import Enum

from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey, DateTime, JSON, Enum as SQLEnum, func
from sqlalchemy.orm import relationship
from backend.database import Base
from backend.models.payloads import parse_declared_ingredients


class MealSlot(str, Enum):
    BREAKFAST = "breakfast"
    MORNING_SNACK = "morning_snack"
    LUNCH = "lunch"
    AFTERNOON_SNACK = "afternoon_snack"
    AFTERNOON_TEA = "afternoon_tea"


# Daily order in which the slots are served and generated
MEAL_SLOTS = [
    MealSlot.BREAKFAST,
    MealSlot.MORNING_SNACK,
    MealSlot.LUNCH,
    MealSlot.AFTERNOON_SNACK,
    MealSlot.AFTERNOON_TEA,
]

# Chinese labels for display
MEAL_SLOT_LABELS = {
    MealSlot.BREAKFAST: "早餐",
    MealSlot.MORNING_SNACK: "上午加餐",
    MealSlot.LUNCH: "午餐",
    MealSlot.AFTERNOON_SNACK: "下午加餐",
    MealSlot.AFTERNOON_TEA: "午点",
}

# How many dishes each slot gets per day: (min, max), inclusive
MEAL_SLOT_DISH_COUNTS = {
    MealSlot.BREAKFAST: (3, 3),
    MealSlot.MORNING_SNACK: (1, 1),  # fruit
    MealSlot.LUNCH: (3, 5),
    MealSlot.AFTERNOON_SNACK: (1, 1),  # pastry
    MealSlot.AFTERNOON_TEA: (2, 3),
}


def meal_slot_column(**kwargs) -> Column:
    return Column(
        SQLEnum(MealSlot, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        **kwargs,
    )


class DishCategory(Base):
    """Classifies dishes into a meal slot, e.g. 午餐荤菜 -> lunch."""
    __tablename__ = "dish_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    meal_slot = meal_slot_column(nullable=False, index=True)


class Dish(Base):
    __tablename__ = "dishes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("dish_categories.id"), nullable=False)
    description = Column(Text, nullable=True)

    # [{"name": "猪肉", "quantity": 80, "unit": "g"}, ...], quantities per 100 servings
    ingredients = Column(JSON, nullable=True)
    nutrition_info = Column(JSON, nullable=True)  # {"calories": 250, "protein": 25, ...}

    is_active = Column(Boolean, default=True, nullable=False)  # soft delete
    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    category = relationship("DishCategory", lazy="noload")

    @property
    def declared_ingredients(self):
        """Declared ingredient list as typed payloads ([] when missing or malformed)."""
        return parse_declared_ingredients(self.ingredients)
