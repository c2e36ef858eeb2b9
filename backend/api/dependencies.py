"""
FastAPI dependencies wiring stores and services to the request session
"""
import random

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.database import get_db
from backend.repositories import CatalogStore, RecipeStore
from backend.services.dish_selector import DishSelector
from backend.services.quantity_resolver import QuantityResolver
from backend.services.recipe_service import RecipeService
from backend.services.schedule_generator import ScheduleGenerator
from backend.services.statistics_aggregator import StatisticsAggregator
from backend.utils.cache import CacheManager, cache_manager


def get_rng() -> random.Random:
    return random.Random()


def get_cache() -> CacheManager:
    return cache_manager


def get_catalog(db: AsyncSession = Depends(get_db)) -> CatalogStore:
    return CatalogStore(db)


def get_recipe_store(db: AsyncSession = Depends(get_db)) -> RecipeStore:
    return RecipeStore(db)


def get_aggregator(
    catalog: CatalogStore = Depends(get_catalog),
    recipes: RecipeStore = Depends(get_recipe_store),
    cache: CacheManager = Depends(get_cache),
) -> StatisticsAggregator:
    return StatisticsAggregator(catalog, recipes, cache=cache)


def get_schedule_generator(
    catalog: CatalogStore = Depends(get_catalog),
    recipes: RecipeStore = Depends(get_recipe_store),
    aggregator: StatisticsAggregator = Depends(get_aggregator),
    rng: random.Random = Depends(get_rng),
) -> ScheduleGenerator:
    selector = DishSelector(catalog, recipes, rng=rng)
    return ScheduleGenerator(catalog, recipes, selector, QuantityResolver(catalog), aggregator, rng=rng)


def get_recipe_service(
    catalog: CatalogStore = Depends(get_catalog),
    recipes: RecipeStore = Depends(get_recipe_store),
    aggregator: StatisticsAggregator = Depends(get_aggregator),
) -> RecipeService:
    return RecipeService(catalog, recipes, QuantityResolver(catalog), aggregator)
