"""
Test fixtures - in-memory SQLite database, seeded catalog + HTTP client
"""
import random

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from backend.database import Base, enable_sqlite_foreign_keys, get_db
from backend.main import app
from backend.api.dependencies import get_rng
from backend.models.campus import Campus
from backend.models.dish import Dish, DishCategory, MealSlot
from backend.models.ingredient import Ingredient, IngredientCategory
from backend.repositories import CatalogStore, RecipeStore
from backend.services.dish_selector import DishSelector
from backend.services.quantity_resolver import QuantityResolver
from backend.services.recipe_service import RecipeService
from backend.services.schedule_generator import ScheduleGenerator
from backend.services.statistics_aggregator import StatisticsAggregator
from backend.utils.cache import CacheManager, cache_manager


@pytest_asyncio.fixture()
async def db_session():
    """Create a fresh in-memory SQLite database for each test"""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    event.listen(engine.sync_engine, "connect", enable_sqlite_foreign_keys)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


def _dish(name, category, ingredients):
    return Dish(
        name=name,
        category_id=category.id,
        description=f"{name} test dish",
        ingredients=[{"name": n, "quantity": q, "unit": "g"} for n, q in ingredients],
        nutrition_info={},
        is_active=True,
    )


@pytest_asyncio.fixture()
async def seed_data(db_session):
    """Insert baseline test data: 2 campuses, ingredients, one category per slot and dishes"""
    main = Campus(name="金星幼儿园总园", code="JX001", address="金星路1号", capacity=200)
    branch = Campus(name="金星幼儿园分园A", code="JX002", address="金星路2号", capacity=150)
    db_session.add_all([main, branch])

    ingredients = {
        name: Ingredient(name=name, category=category, unit=unit, calories_per_100g=100)
        for name, category, unit in [
            ("大米", IngredientCategory.GRAINS, "g"),
            ("小米", IngredientCategory.GRAINS, "g"),
            ("面粉", IngredientCategory.GRAINS, "g"),
            ("苹果", IngredientCategory.FRUITS, "g"),
            ("香蕉", IngredientCategory.FRUITS, "g"),
            ("猪肉", IngredientCategory.MEAT, "g"),
            ("鸡肉", IngredientCategory.MEAT, "g"),
            ("鱼", IngredientCategory.SEAFOOD, "g"),
            ("白菜", IngredientCategory.VEGETABLES, "g"),
            ("牛奶", IngredientCategory.DAIRY, "ml"),
            ("鸡蛋", IngredientCategory.DAIRY, "g"),
        ]
    }
    db_session.add_all(ingredients.values())

    categories = {
        slot: DishCategory(name=f"{slot.value} dishes", meal_slot=slot)
        for slot in MealSlot
    }
    db_session.add_all(categories.values())
    await db_session.flush()

    dishes = {
        "小米粥": _dish("小米粥", categories[MealSlot.BREAKFAST], [("小米", 40)]),
        "煮鸡蛋": _dish("煮鸡蛋", categories[MealSlot.BREAKFAST], [("鸡蛋", 50)]),
        "牛奶": _dish("牛奶", categories[MealSlot.BREAKFAST], [("牛奶", 200)]),
        "小笼包": _dish("小笼包", categories[MealSlot.BREAKFAST], [("面粉", 80), ("猪肉", 30)]),
        "苹果块": _dish("苹果块", categories[MealSlot.MORNING_SNACK], [("苹果", 150)]),
        "香蕉": _dish("香蕉", categories[MealSlot.MORNING_SNACK], [("香蕉", 150)]),
        "白米饭": _dish("白米饭", categories[MealSlot.LUNCH], [("大米", 100)]),
        "红烧肉": _dish("红烧肉", categories[MealSlot.LUNCH], [("猪肉", 80)]),
        "清蒸鱼": _dish("清蒸鱼", categories[MealSlot.LUNCH], [("鱼", 100)]),
        "清炒白菜": _dish("清炒白菜", categories[MealSlot.LUNCH], [("白菜", 150)]),
        "宫保鸡丁": _dish("宫保鸡丁", categories[MealSlot.LUNCH], [("鸡肉", 70)]),
        "蒸糕": _dish("蒸糕", categories[MealSlot.AFTERNOON_SNACK], [("面粉", 60)]),
        "小馒头": _dish("小馒头", categories[MealSlot.AFTERNOON_TEA], [("面粉", 50)]),
        "酸奶杯": _dish("酸奶杯", categories[MealSlot.AFTERNOON_TEA], [("牛奶", 150)]),
        "水果拼盘": _dish("水果拼盘", categories[MealSlot.AFTERNOON_TEA], [("苹果", 60), ("香蕉", 60)]),
    }
    db_session.add_all(dishes.values())
    await db_session.commit()

    return {
        "main": main,
        "branch": branch,
        "ingredients": ingredients,
        "categories": categories,
        "dishes": dishes,
    }


@pytest.fixture()
def cache():
    return CacheManager()


@pytest.fixture()
def rng():
    return random.Random(1234)


@pytest.fixture()
def catalog(db_session):
    return CatalogStore(db_session)


@pytest.fixture()
def recipe_store(db_session):
    return RecipeStore(db_session)


@pytest.fixture()
def aggregator(catalog, recipe_store, cache):
    return StatisticsAggregator(catalog, recipe_store, cache=cache)


@pytest.fixture()
def generator(catalog, recipe_store, aggregator, rng):
    selector = DishSelector(catalog, recipe_store, rng=rng)
    return ScheduleGenerator(catalog, recipe_store, selector, QuantityResolver(catalog), aggregator, rng=rng)


@pytest.fixture()
def recipe_service(catalog, recipe_store, aggregator):
    return RecipeService(catalog, recipe_store, QuantityResolver(catalog), aggregator)


@pytest_asyncio.fixture()
async def client(db_session, seed_data):
    """httpx AsyncClient bound to the FastAPI app"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rng] = lambda: random.Random(42)
    cache_manager.clear()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        yield ac

    app.dependency_overrides.clear()
    cache_manager.clear()
