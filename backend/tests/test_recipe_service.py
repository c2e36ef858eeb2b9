"""
Manual recipe entry, editing and the weekly schedule view
"""
from datetime import date

import pytest

from backend.models.dish import MealSlot
from backend.models.recipe import GenerationStatus
from backend.utils.exceptions import NotFoundError, ValidationFailure


async def test_create_manual_recipe_for_known_dish(recipe_service, recipe_store, aggregator, seed_data):
    main = seed_data["main"]

    recipe = await recipe_service.create_manual(main.id, "红烧肉", "2024-03-04", "lunch", servings=50)

    assert recipe["dish_name"] == "红烧肉"
    assert recipe["campus_name"] == main.name
    assert recipe["meal_slot_label"] == "午餐"
    assert recipe["ingredient_quantities"]["猪肉"]["quantity"] == 40

    generation = await recipe_store.get_generation(recipe["generation_id"])
    assert generation.status == GenerationStatus.COMPLETED
    assert generation.total_recipes == 1
    assert generation.notes == "manual entry"
    assert generation.start_date == generation.end_date == date(2024, 3, 4)

    summary = {r["ingredient_category"]: r for r in await aggregator.summary(generation.id)}
    assert summary["meat"]["grand_total"] == 40


async def test_create_manual_adds_unknown_dish_to_catalog(recipe_service, catalog, seed_data):
    recipe = await recipe_service.create_manual(seed_data["main"].id, "南瓜饼", "2024-03-04", "afternoon_tea")

    dish = await catalog.get_dish_by_name_or_id(name="南瓜饼")
    assert dish is not None
    assert recipe["dish_id"] == dish.id
    assert await catalog.get_dish_meal_slot(dish.id) == MealSlot.AFTERNOON_TEA
    # no declared ingredients: the afternoon tea template is used
    assert set(recipe["ingredient_quantities"]) == {"主食", "点心", "鲜牛奶"}


async def test_create_manual_validates_input(recipe_service, seed_data):
    with pytest.raises(ValidationFailure) as exc:
        await recipe_service.create_manual(seed_data["main"].id, " ", "04/03/2024", "lunch")
    assert exc.value.errors == [
        "Dish name is required",
        "Invalid date format. Please use YYYY-MM-DD format.",
    ]

    with pytest.raises(ValidationFailure):
        await recipe_service.create_manual(seed_data["main"].id, "红烧肉", "2024-03-04", "dinner")

    with pytest.raises(NotFoundError):
        await recipe_service.create_manual(999, "红烧肉", "2024-03-04", "lunch")


async def test_update_servings_rescales_quantities(recipe_service, aggregator, seed_data):
    created = await recipe_service.create_manual(seed_data["main"].id, "白米饭", "2024-03-04", "lunch")

    updated = await recipe_service.update(created["id"], servings=200)

    assert updated["servings"] == 200
    assert updated["ingredient_quantities"]["大米"]["quantity"] == 200
    summary = {r["ingredient_category"]: r for r in await aggregator.summary(created["generation_id"])}
    assert summary["grains"]["grand_total"] == 200


async def test_update_changes_dish_by_name(recipe_service, seed_data):
    created = await recipe_service.create_manual(seed_data["main"].id, "白米饭", "2024-03-04", "lunch")

    updated = await recipe_service.update(created["id"], dish_name="清蒸鱼")

    assert updated["dish_name"] == "清蒸鱼"
    assert set(updated["ingredient_quantities"]) == {"鱼"}


async def test_update_rejects_taken_slot(recipe_service, seed_data):
    main = seed_data["main"].id
    await recipe_service.create_manual(main, "白米饭", "2024-03-04", "lunch")
    other = await recipe_service.create_manual(main, "红烧肉", "2024-03-05", "lunch")

    with pytest.raises(ValidationFailure):
        await recipe_service.update(other["id"], day="2024-03-04")


async def test_update_unknown_recipe_or_dish(recipe_service, seed_data):
    with pytest.raises(NotFoundError):
        await recipe_service.update(999, servings=10)

    created = await recipe_service.create_manual(seed_data["main"].id, "白米饭", "2024-03-04", "lunch")
    with pytest.raises(NotFoundError):
        await recipe_service.update(created["id"], dish_name="不存在的菜")


async def test_delete_refreshes_statistics(recipe_service, recipe_store, aggregator, seed_data):
    created = await recipe_service.create_manual(seed_data["main"].id, "白米饭", "2024-03-04", "lunch")

    await recipe_service.delete(created["id"])

    assert await recipe_store.get_recipe(created["id"]) is None
    summary = await aggregator.summary(created["generation_id"])
    assert all(r["grand_total"] == 0 for r in summary)

    with pytest.raises(NotFoundError):
        await recipe_service.delete(created["id"])


async def test_weekly_schedule_grid(recipe_service, seed_data):
    main = seed_data["main"].id
    await recipe_service.create_manual(main, "白米饭", "2024-03-06", "lunch")

    schedule = await recipe_service.weekly_schedule(main, "2024-03-07")

    assert list(schedule) == ["2024-03-04", "2024-03-05", "2024-03-06", "2024-03-07", "2024-03-08"]
    assert list(schedule["2024-03-04"]) == [
        "breakfast", "morning_snack", "lunch", "afternoon_snack", "afternoon_tea",
    ]
    assert schedule["2024-03-06"]["lunch"]["dish_name"] == "白米饭"
    assert schedule["2024-03-06"]["breakfast"] is None
