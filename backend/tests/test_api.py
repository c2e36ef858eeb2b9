"""
API endpoint tests for all routes.
Uses in-memory SQLite + dependency-overridden FastAPI test client.
"""
MONDAY = "2024-03-04"
FRIDAY = "2024-03-08"


async def _generate(client, campus_ids, start=MONDAY, end=FRIDAY):
    r = await client.post(
        "/api/recipes/generate",
        json={"campuses": campus_ids, "startDate": start, "endDate": end},
    )
    assert r.status_code == 200, r.text
    return r.json()["data"]


# ===================== HEALTH / ROOT =====================


async def test_root(client):
    r = await client.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "running"


async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"


async def test_health_reports_cache_entries(client, seed_data):
    await client.get("/api/campuses")
    r = await client.get("/health")
    assert r.json()["cache"] == {"total_entries": 1, "expired_entries": 0, "active_entries": 1}


# ===================== GENERATION =====================


async def test_generate_recipes(client, seed_data):
    ids = [seed_data["main"].id, seed_data["branch"].id]
    r = await client.post(
        "/api/recipes/generate",
        json={"campuses": ids, "startDate": MONDAY, "endDate": FRIDAY},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "Recipe generation completed successfully"
    assert body["data"]["generationId"] > 0
    assert body["data"]["totalRecipes"] >= 50
    assert [c["campus"]["id"] for c in body["data"]["results"]] == ids


async def test_generate_validation_failure(client, seed_data):
    r = await client.post(
        "/api/recipes/generate",
        json={"campuses": [], "startDate": "2024-03-09", "endDate": "2024-03-10"},
    )
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert body["errors"] == [
        "At least one campus must be selected",
        "Date range must include at least one weekday (Monday-Friday)",
    ]


async def test_generate_missing_dates(client, seed_data):
    r = await client.post("/api/recipes/generate", json={"campuses": [seed_data["main"].id]})
    assert r.status_code == 400
    assert r.json()["errors"] == ["Start date and end date are required"]


async def test_generate_unknown_campus(client, seed_data):
    r = await client.post(
        "/api/recipes/generate",
        json={"campuses": [999], "startDate": MONDAY, "endDate": FRIDAY},
    )
    assert r.status_code == 404


async def test_list_generations(client, seed_data):
    data = await _generate(client, [seed_data["main"].id])
    r = await client.get("/api/recipes/generations")
    assert r.status_code == 200
    [generation] = r.json()
    assert generation["id"] == data["generationId"]
    assert generation["status"] == "completed"
    assert generation["start_date"] == MONDAY


# ===================== RECIPES =====================


async def test_list_recipes_with_filters(client, seed_data):
    main = seed_data["main"].id
    await _generate(client, [main, seed_data["branch"].id])

    r = await client.get("/api/recipes", params={"campus_id": main})
    assert r.status_code == 200
    recipes = r.json()["data"]
    assert len(recipes) == 25
    assert {rec["campus_id"] for rec in recipes} == {main}

    r = await client.get("/api/recipes", params={"campus_id": main, "meal_slot": "lunch", "start_date": "2024-03-06"})
    recipes = r.json()["data"]
    assert len(recipes) == 3
    assert all(rec["meal_slot"] == "lunch" for rec in recipes)


async def test_list_recipes_bad_meal_slot(client, seed_data):
    r = await client.get("/api/recipes", params={"meal_slot": "dinner"})
    assert r.status_code == 400


async def test_get_update_delete_recipe(client, seed_data):
    await _generate(client, [seed_data["main"].id])
    recipes = (await client.get("/api/recipes")).json()["data"]
    lunch = next(rec for rec in recipes if rec["meal_slot"] == "lunch")

    r = await client.get(f"/api/recipes/{lunch['id']}")
    assert r.status_code == 200
    assert r.json()["data"]["dish_name"] == lunch["dish_name"]

    r = await client.put(f"/api/recipes/{lunch['id']}", json={"dish_name": "白米饭", "servings": 50})
    assert r.status_code == 200
    updated = r.json()["data"]
    assert updated["dish_name"] == "白米饭"
    assert updated["ingredient_quantities"]["大米"]["quantity"] == 50

    r = await client.delete(f"/api/recipes/{lunch['id']}")
    assert r.status_code == 200
    assert (await client.get(f"/api/recipes/{lunch['id']}")).status_code == 404


async def test_update_recipe_not_found(client, seed_data):
    r = await client.put("/api/recipes/999", json={"servings": 10})
    assert r.status_code == 404


async def test_create_manual_recipe(client, seed_data):
    r = await client.post(
        "/api/recipes",
        json={"campus_id": seed_data["main"].id, "dish_name": "红烧肉", "date": MONDAY, "meal_slot": "lunch"},
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["dish_name"] == "红烧肉"
    assert data["ingredient_quantities"]["猪肉"]["quantity"] == 80


async def test_weekly_schedule(client, seed_data):
    main = seed_data["main"].id
    await _generate(client, [main])

    r = await client.get("/api/recipes/schedule", params={"campus_id": main, "date": "2024-03-06"})
    assert r.status_code == 200
    schedule = r.json()["data"]
    assert list(schedule) == ["2024-03-04", "2024-03-05", "2024-03-06", "2024-03-07", "2024-03-08"]
    assert all(schedule[day][slot] is not None for day in schedule for slot in schedule[day])


# ===================== STATISTICS =====================


async def test_statistics_without_generations(client, seed_data):
    r = await client.get("/api/statistics/grains")
    assert r.status_code == 200
    assert r.json() == {"success": True, "data": [], "message": "No statistics available"}


async def test_statistics_default_to_latest_generation(client, seed_data):
    await _generate(client, [seed_data["main"].id])
    latest = await _generate(client, [seed_data["branch"].id])

    for view in ("grains", "fruits", "meat"):
        r = await client.get(f"/api/statistics/{view}")
        assert r.status_code == 200
        body = r.json()
        assert body["generationId"] == latest["generationId"]
        assert {row["campus_id"] for row in body["data"]} == {seed_data["main"].id, seed_data["branch"].id}


async def test_statistics_for_explicit_generation(client, seed_data):
    data = await _generate(client, [seed_data["main"].id])
    gid = data["generationId"]

    r = await client.get("/api/statistics/meat", params={"generationId": gid})
    assert r.status_code == 200
    rows = r.json()["data"]
    branch_rows = [row for row in rows if row["campus_id"] == seed_data["branch"].id]
    assert len(branch_rows) == 1
    assert branch_rows[0]["total_quantity"] == 0

    r = await client.get("/api/statistics/summary", params={"generationId": gid})
    assert r.status_code == 200
    categories = {row["ingredient_category"] for row in r.json()["data"]}
    assert categories == {"grains", "fruits", "meat", "seafood"}


async def test_statistics_unknown_generation(client, seed_data):
    r = await client.get("/api/statistics/grains", params={"generationId": 999})
    assert r.status_code == 404


# ===================== CAMPUSES =====================


async def test_list_campuses_is_cached(client, seed_data):
    r = await client.get("/api/campuses")
    assert r.status_code == 200
    assert len(r.json()["data"]) == 2
    assert "cached" not in r.json()

    r = await client.get("/api/campuses")
    assert r.json()["cached"] is True


async def test_create_campus_invalidates_cache(client, seed_data):
    await client.get("/api/campuses")
    r = await client.post("/api/campuses", json={"name": "金星幼儿园分园B", "code": "JX003", "capacity": 180})
    assert r.status_code == 200
    assert r.json()["code"] == "JX003"

    r = await client.get("/api/campuses")
    assert len(r.json()["data"]) == 3


async def test_create_campus_duplicate(client, seed_data):
    r = await client.post("/api/campuses", json={"name": "新园", "code": "JX001"})
    assert r.status_code == 409


async def test_update_campus(client, seed_data):
    r = await client.put(f"/api/campuses/{seed_data['branch'].id}", json={"address": "金星路9号"})
    assert r.status_code == 200
    assert r.json()["address"] == "金星路9号"


async def test_delete_campus(client, seed_data):
    r = await client.post("/api/campuses", json={"name": "临时园", "code": "TMP"})
    campus_id = r.json()["id"]

    r = await client.delete(f"/api/campuses/{campus_id}")
    assert r.status_code == 200
    assert (await client.get(f"/api/campuses/{campus_id}")).status_code == 404


async def test_delete_campus_with_recipes(client, seed_data):
    await _generate(client, [seed_data["main"].id])
    r = await client.delete(f"/api/campuses/{seed_data['main'].id}")
    assert r.status_code == 409


# ===================== DISHES =====================


async def test_list_dishes_by_meal_slot(client, seed_data):
    r = await client.get("/api/dishes", params={"meal_slot": "lunch"})
    assert r.status_code == 200
    dishes = r.json()
    assert len(dishes) == 5
    assert all(d["meal_slot"] == "lunch" for d in dishes)


async def test_meal_slots_and_categories(client, seed_data):
    r = await client.get("/api/dishes/meal-slots")
    assert [s["label"] for s in r.json()] == ["早餐", "上午加餐", "午餐", "下午加餐", "午点"]

    r = await client.get("/api/dishes/categories", params={"meal_slot": "breakfast"})
    assert r.status_code == 200
    assert len(r.json()) == 1


async def test_create_dish(client, seed_data):
    category_id = seed_data["categories"]["lunch"].id
    r = await client.post(
        "/api/dishes",
        json={"name": "土豆炖牛肉", "category_id": category_id, "ingredients": [{"name": "牛肉", "quantity": "70g"}]},
    )
    assert r.status_code == 200
    dish = r.json()
    assert dish["meal_slot"] == "lunch"
    assert dish["ingredients"] == [{"name": "牛肉", "quantity": 70.0, "unit": "g"}]

    r = await client.post("/api/dishes", json={"name": "土豆炖牛肉", "category_id": category_id})
    assert r.status_code == 409


async def test_update_dish(client, seed_data):
    dish_id = seed_data["dishes"]["白米饭"].id
    r = await client.put(f"/api/dishes/{dish_id}", json={"description": "香软米饭"})
    assert r.status_code == 200
    assert r.json()["description"] == "香软米饭"


async def test_soft_delete_dish(client, seed_data):
    dish_id = seed_data["dishes"]["白米饭"].id
    r = await client.delete(f"/api/dishes/{dish_id}")
    assert r.status_code == 200

    names = [d["name"] for d in (await client.get("/api/dishes", params={"meal_slot": "lunch"})).json()]
    assert "白米饭" not in names

    r = await client.get(f"/api/dishes/{dish_id}")
    assert r.status_code == 200
    assert r.json()["is_active"] is False


# ===================== INGREDIENTS =====================


async def test_list_ingredients_by_category(client, seed_data):
    r = await client.get("/api/ingredients", params={"category": "grains"})
    assert r.status_code == 200
    assert {i["name"] for i in r.json()} == {"大米", "小米", "面粉"}


async def test_ingredient_category_counts(client, seed_data):
    r = await client.get("/api/ingredients/categories")
    assert r.status_code == 200
    counts = {c["category"]: c["count"] for c in r.json()}
    assert counts["grains"] == 3
    assert counts["seafood"] == 1
    assert counts["seasonings"] == 0
    assert len(counts) == 8


async def test_ingredient_crud(client, seed_data):
    r = await client.post("/api/ingredients", json={"name": "虾", "category": "seafood"})
    assert r.status_code == 200
    ingredient = r.json()
    assert ingredient["unit"] == "g"

    r = await client.post("/api/ingredients", json={"name": "虾", "category": "seafood"})
    assert r.status_code == 409

    r = await client.put(f"/api/ingredients/{ingredient['id']}", json={"calories_per_100g": 99})
    assert r.json()["calories_per_100g"] == 99

    r = await client.delete(f"/api/ingredients/{ingredient['id']}")
    assert r.status_code == 200
    assert (await client.get(f"/api/ingredients/{ingredient['id']}")).status_code == 404


async def test_delete_ingredient_in_use(client, seed_data):
    await _generate(client, [seed_data["main"].id])
    r = await client.delete(f"/api/ingredients/{seed_data['ingredients']['面粉'].id}")
    assert r.status_code == 409


async def test_recategorizing_ingredients_refreshes_statistics(client, seed_data):
    data = await _generate(client, [seed_data["main"].id])
    gid = data["generationId"]
    before = (await client.get("/api/statistics/grains")).json()["data"]
    assert any(row["total_quantity"] > 0 for row in before)

    for name in ("大米", "小米", "面粉"):
        r = await client.put(f"/api/ingredients/{seed_data['ingredients'][name].id}", json={"category": "vegetables"})
        assert r.status_code == 200

    after = (await client.get("/api/statistics/grains")).json()["data"]
    assert {row["ingredient_name"] for row in after} == {"无相关食材"}
    assert all(row["total_quantity"] == 0 for row in after)

    summary = {row["ingredient_category"]: row for row in (await client.get("/api/statistics/summary", params={"generationId": gid})).json()["data"]}
    assert summary["grains"]["grand_total"] == 0


async def test_renaming_ingredient_clears_cached_reports(client, seed_data):
    await _generate(client, [seed_data["main"].id])
    await client.get("/api/statistics/grains")

    r = await client.put(f"/api/ingredients/{seed_data['ingredients']['面粉'].id}", json={"name": "高筋面粉"})
    assert r.status_code == 200

    names = {row["ingredient_name"] for row in (await client.get("/api/statistics/grains")).json()["data"]}
    assert "面粉" not in names
    assert "高筋面粉" in names
