from backend.models.campus import Campus
from backend.models.ingredient import Ingredient, IngredientCategory
from backend.models.dish import Dish, DishCategory, MealSlot
from backend.models.recipe import RecipeGeneration, Recipe, RecipeIngredient, GenerationStatus
from backend.models.statistics_cache import StatisticsCacheEntry

__all__ = [
    "Campus",
    "Ingredient",
    "IngredientCategory",
    "Dish",
    "DishCategory",
    "MealSlot",
    "RecipeGeneration",
    "Recipe",
    "RecipeIngredient",
    "GenerationStatus",
    "StatisticsCacheEntry",
]
