"""
Ingredient catalog model
"""
from enum import Enum

from sqlalchemy import Column, Integer, String, Float, DateTime, Enum as SQLEnum, func
from backend.database import Base


class IngredientCategory(str, Enum):
    GRAINS = "grains"
    VEGETABLES = "vegetables"
    MEAT = "meat"
    SEAFOOD = "seafood"
    FRUITS = "fruits"
    DAIRY = "dairy"
    SEASONINGS = "seasonings"
    OTHER = "other"


# Chinese labels for display
INGREDIENT_CATEGORY_LABELS = {
    IngredientCategory.GRAINS: "杂粮",
    IngredientCategory.VEGETABLES: "蔬菜",
    IngredientCategory.MEAT: "肉类",
    IngredientCategory.SEAFOOD: "海鲜",
    IngredientCategory.FRUITS: "水果",
    IngredientCategory.DAIRY: "奶蛋",
    IngredientCategory.SEASONINGS: "调料",
    IngredientCategory.OTHER: "其他",
}


class Ingredient(Base):
    """Raw ingredient; looked up by name when resolving dish quantities."""
    __tablename__ = "ingredients"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    category = Column(
        SQLEnum(IngredientCategory, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    unit = Column(String, nullable=False, default="g")
    calories_per_100g = Column(Float, default=0)
    created_at = Column(DateTime, server_default=func.now())
