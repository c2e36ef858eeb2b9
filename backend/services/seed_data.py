"""
Baseline catalog: the four 金星 campuses, dish categories per meal slot,
the ingredient catalog and a starter set of dishes.
Each table is only seeded when it is empty.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.models.campus import Campus
from backend.models.dish import Dish, DishCategory, MealSlot
from backend.models.ingredient import Ingredient, IngredientCategory
from backend.models.payloads import dump_declared_ingredients

logger = logging.getLogger(__name__)

CAMPUSES = [
    ("金星幼儿园总园", "JX001", "北京市朝阳区金星路1号", 200),
    ("金星幼儿园分园A", "JX002", "北京市朝阳区金星路2号", 150),
    ("金星幼儿园分园B", "JX003", "北京市朝阳区金星路3号", 180),
    ("金星幼儿园分园C", "JX004", "北京市朝阳区金星路4号", 120),
]

DISH_CATEGORIES = [
    ("早餐主食", MealSlot.BREAKFAST),
    ("早餐配菜", MealSlot.BREAKFAST),
    ("上午加餐水果", MealSlot.MORNING_SNACK),
    ("午餐主食", MealSlot.LUNCH),
    ("午餐荤菜", MealSlot.LUNCH),
    ("午餐素菜", MealSlot.LUNCH),
    ("午餐汤品", MealSlot.LUNCH),
    ("下午加餐点心", MealSlot.AFTERNOON_SNACK),
    ("下午加餐饮品", MealSlot.AFTERNOON_SNACK),
    ("午点主食", MealSlot.AFTERNOON_TEA),
    ("午点心品", MealSlot.AFTERNOON_TEA),
    ("午点饮品", MealSlot.AFTERNOON_TEA),
    ("午点水果", MealSlot.AFTERNOON_TEA),
]

G = IngredientCategory.GRAINS
V = IngredientCategory.VEGETABLES
M = IngredientCategory.MEAT
S = IngredientCategory.SEAFOOD
F = IngredientCategory.FRUITS
D = IngredientCategory.DAIRY
SEA = IngredientCategory.SEASONINGS
O = IngredientCategory.OTHER

# (name, category, unit, calories per 100g)
INGREDIENTS = [
    ("大米", G, "g", 130), ("小米", G, "g", 140), ("玉米", G, "g", 86), ("燕麦", G, "g", 389),
    ("红豆", G, "g", 324), ("绿豆", G, "g", 316), ("黑米", G, "g", 343), ("糯米", G, "g", 344),
    ("面粉", G, "g", 364), ("红薯", G, "g", 86), ("黄豆", G, "g", 446), ("莲子", G, "g", 344),
    ("花生", G, "g", 567),
    ("白菜", V, "g", 17), ("萝卜", V, "g", 16), ("胡萝卜", V, "g", 41), ("黄瓜", V, "g", 16),
    ("西红柿", V, "g", 18), ("菠菜", V, "g", 23), ("土豆", V, "g", 77), ("冬瓜", V, "g", 11),
    ("青椒", V, "g", 22), ("南瓜", V, "g", 26), ("青菜", V, "g", 15), ("豆腐", V, "g", 76),
    ("豆干", V, "g", 140), ("紫菜", V, "g", 207), ("银耳", V, "g", 200), ("葱", V, "g", 32),
    ("苹果", F, "g", 52), ("香蕉", F, "g", 89), ("橙子", F, "g", 47), ("梨", F, "g", 57),
    ("葡萄", F, "g", 69), ("西瓜", F, "g", 30), ("草莓", F, "g", 32), ("桃子", F, "g", 39),
    ("猪肉", M, "g", 242), ("牛肉", M, "g", 250), ("鸡肉", M, "g", 165), ("鸭肉", M, "g", 240),
    ("排骨", M, "g", 260),
    ("鱼", S, "g", 127), ("虾", S, "g", 99), ("螃蟹", S, "g", 95), ("虾仁", S, "g", 99),
    ("虾皮", S, "g", 195),
    ("牛奶", D, "ml", 42), ("酸奶", D, "g", 59), ("鸡蛋", D, "g", 155),
    ("植物油", SEA, "ml", 899), ("生抽", SEA, "ml", 60), ("醋", SEA, "ml", 18),
    ("冰糖", SEA, "g", 397), ("蒜", SEA, "g", 133), ("生姜", SEA, "g", 41),
    ("干辣椒", SEA, "g", 318),
    ("水", O, "ml", 0),
]

# category name -> [(dish name, [(ingredient, quantity per 100 servings)])]
DISHES = {
    "早餐主食": [
        ("小笼包", [("面粉", 80), ("猪肉", 30), ("白菜", 20)]),
        ("小米粥", [("小米", 40), ("水", 300)]),
        ("燕麦粥", [("燕麦", 50), ("牛奶", 150)]),
        ("蒸红薯", [("红薯", 150)]),
    ],
    "早餐配菜": [
        ("豆浆", [("黄豆", 50), ("水", 200)]),
        ("蒸蛋羹", [("鸡蛋", 60), ("水", 100)]),
        ("煮鸡蛋", [("鸡蛋", 50)]),
        ("牛奶", [("牛奶", 200)]),
    ],
    "上午加餐水果": [
        ("苹果块", [("苹果", 150)]),
        ("香蕉", [("香蕉", 150)]),
        ("橙子瓣", [("橙子", 150)]),
        ("草莓", [("草莓", 120)]),
    ],
    "午餐主食": [
        ("白米饭", [("大米", 100)]),
        ("二米饭", [("大米", 70), ("小米", 30)]),
    ],
    "午餐荤菜": [
        ("红烧肉", [("猪肉", 80), ("冰糖", 10), ("生抽", 15)]),
        ("宫保鸡丁", [("鸡肉", 70), ("花生", 20), ("干辣椒", 5)]),
        ("清蒸鱼", [("鱼", 100), ("生姜", 5), ("葱", 5)]),
        ("胡萝卜炒肉丝", [("猪肉", 50), ("胡萝卜", 80), ("青椒", 30)]),
        ("虾仁蒸蛋", [("虾仁", 50), ("鸡蛋", 55), ("水", 80)]),
    ],
    "午餐素菜": [
        ("西红柿炒蛋", [("西红柿", 120), ("鸡蛋", 60), ("葱", 5)]),
        ("清炒白菜", [("白菜", 150), ("蒜", 5)]),
        ("清炒菠菜", [("菠菜", 120), ("蒜", 3)]),
        ("炒土豆丝", [("土豆", 120), ("青椒", 30), ("醋", 10)]),
    ],
    "午餐汤品": [
        ("冬瓜排骨汤", [("排骨", 60), ("冬瓜", 100), ("生姜", 3)]),
        ("紫菜蛋花汤", [("紫菜", 10), ("鸡蛋", 30), ("虾皮", 5)]),
        ("豆腐汤", [("豆腐", 80), ("紫菜", 5), ("虾皮", 3)]),
    ],
    "下午加餐点心": [
        ("蒸南瓜", [("南瓜", 120)]),
        ("蒸玉米", [("玉米", 150)]),
    ],
    "下午加餐饮品": [
        ("酸奶", [("酸奶", 150)]),
    ],
    "午点主食": [
        ("绿豆粥", [("绿豆", 40), ("大米", 20), ("水", 300)]),
        ("黑米粥", [("黑米", 45), ("大米", 15), ("水", 280)]),
    ],
    "午点心品": [
        ("蒸饺", [("面粉", 70), ("猪肉", 40), ("白菜", 30)]),
    ],
    "午点饮品": [
        ("银耳莲子汤", [("银耳", 15), ("莲子", 20), ("冰糖", 8)]),
    ],
    "午点水果": [
        ("西瓜", [("西瓜", 150)]),
        ("梨块", [("梨", 150)]),
    ],
}


async def _is_empty(session: AsyncSession, model) -> bool:
    result = await session.execute(select(model.id).limit(1))
    return result.first() is None


async def seed_catalog(session: AsyncSession) -> dict[str, int]:
    """Insert baseline rows into empty catalog tables; returns rows added per table"""
    added = {"campuses": 0, "dish_categories": 0, "ingredients": 0, "dishes": 0}

    if await _is_empty(session, Campus):
        for name, code, address, capacity in CAMPUSES:
            session.add(Campus(name=name, code=code, address=address, capacity=capacity))
        added["campuses"] = len(CAMPUSES)

    if await _is_empty(session, Ingredient):
        for name, category, unit, calories in INGREDIENTS:
            session.add(Ingredient(name=name, category=category, unit=unit, calories_per_100g=calories))
        added["ingredients"] = len(INGREDIENTS)

    if await _is_empty(session, DishCategory):
        for name, meal_slot in DISH_CATEGORIES:
            session.add(DishCategory(name=name, meal_slot=meal_slot))
        added["dish_categories"] = len(DISH_CATEGORIES)
    await session.flush()

    if await _is_empty(session, Dish):
        result = await session.execute(select(DishCategory))
        categories = {c.name: c for c in result.scalars().all()}
        for category_name, dishes in DISHES.items():
            category = categories.get(category_name)
            if category is None:
                logger.warning(f"Dish category {category_name!r} missing, skipping its dishes")
                continue
            for dish_name, ingredients in dishes:
                session.add(Dish(
                    name=dish_name,
                    category_id=category.id,
                    description=f"{dish_name} - 适合幼儿园营养餐",
                    ingredients=dump_declared_ingredients(
                        [{"name": n, "quantity": q} for n, q in ingredients]
                    ),
                    nutrition_info={},
                    is_active=True,
                ))
                added["dishes"] += 1
        await session.flush()

    if any(added.values()):
        logger.info(f"Seeded catalog: {added}")
    return added
