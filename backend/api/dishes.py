"""
Dish catalog API endpoints: dish categories per meal slot and dishes
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.database import get_db
from backend.api.dependencies import get_catalog
from backend.models.dish import Dish, DishCategory, MealSlot, MEAL_SLOTS, MEAL_SLOT_LABELS
from backend.models.payloads import DeclaredIngredient, dump_declared_ingredients
from backend.repositories import CatalogStore

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class DishCategoryResponse(BaseModel):
    id: int
    name: str
    meal_slot: MealSlot

    class Config:
        from_attributes = True


class DishResponse(BaseModel):
    id: int
    name: str
    category_id: int
    category_name: Optional[str] = None
    meal_slot: Optional[MealSlot] = None
    description: Optional[str] = None
    ingredients: List[DeclaredIngredient] = []
    nutrition_info: Optional[dict] = None
    is_active: bool
    created_at: Optional[datetime] = None


class DishCreate(BaseModel):
    name: str
    category_id: int
    description: Optional[str] = None
    ingredients: List[DeclaredIngredient] = []
    nutrition_info: Optional[dict] = None


class DishUpdate(BaseModel):
    name: Optional[str] = None
    category_id: Optional[int] = None
    description: Optional[str] = None
    ingredients: Optional[List[DeclaredIngredient]] = None
    nutrition_info: Optional[dict] = None
    is_active: Optional[bool] = None


class MealSlotOption(BaseModel):
    value: str
    label: str


def _dish_response(dish: Dish, category: Optional[DishCategory]) -> DishResponse:
    return DishResponse(
        id=dish.id,
        name=dish.name,
        category_id=dish.category_id,
        category_name=category.name if category else None,
        meal_slot=category.meal_slot if category else None,
        description=dish.description,
        ingredients=dish.declared_ingredients,
        nutrition_info=dish.nutrition_info,
        is_active=dish.is_active,
        created_at=dish.created_at,
    )


async def _get_category_or_404(db: AsyncSession, category_id: int) -> DishCategory:
    result = await db.execute(select(DishCategory).where(DishCategory.id == category_id))
    category = result.scalar_one_or_none()
    if not category:
        raise HTTPException(status_code=404, detail="Dish category not found")
    return category


async def _get_dish_or_404(db: AsyncSession, dish_id: int) -> Dish:
    result = await db.execute(select(Dish).where(Dish.id == dish_id))
    dish = result.scalar_one_or_none()
    if not dish:
        raise HTTPException(status_code=404, detail="Dish not found")
    return dish


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/meal-slots", response_model=list[MealSlotOption])
async def list_meal_slots():
    """Meal slots in serving order, with display labels"""
    return [MealSlotOption(value=slot.value, label=MEAL_SLOT_LABELS[slot]) for slot in MEAL_SLOTS]


@router.get("/categories", response_model=list[DishCategoryResponse])
async def list_categories(
    meal_slot: Optional[MealSlot] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    query = select(DishCategory).order_by(DishCategory.meal_slot, DishCategory.name)
    if meal_slot:
        query = query.where(DishCategory.meal_slot == meal_slot)
    result = await db.execute(query)
    return result.scalars().all()


@router.get("", response_model=list[DishResponse])
async def list_dishes(
    meal_slot: Optional[MealSlot] = Query(None),
    include_inactive: bool = Query(False),
    catalog: CatalogStore = Depends(get_catalog),
):
    """List dishes, optionally for one meal slot"""
    rows = await catalog.list_dishes(meal_slot=meal_slot, active_only=not include_inactive)
    return [_dish_response(dish, category) for dish, category in rows]


@router.get("/{dish_id}", response_model=DishResponse)
async def get_dish(dish_id: int, db: AsyncSession = Depends(get_db)):
    dish = await _get_dish_or_404(db, dish_id)
    category = await _get_category_or_404(db, dish.category_id)
    return _dish_response(dish, category)


@router.post("", response_model=DishResponse)
async def create_dish(
    data: DishCreate,
    db: AsyncSession = Depends(get_db),
    catalog: CatalogStore = Depends(get_catalog),
):
    """Add a dish to the catalog"""
    category = await _get_category_or_404(db, data.category_id)
    if await catalog.get_dish_by_name_or_id(name=data.name):
        raise HTTPException(status_code=409, detail="Dish already exists in catalog")

    dish = await catalog.create_dish(
        name=data.name,
        category_id=category.id,
        description=data.description,
        ingredients=data.ingredients,
        nutrition_info=data.nutrition_info,
    )
    await db.commit()
    await db.refresh(dish)
    return _dish_response(dish, category)


@router.put("/{dish_id}", response_model=DishResponse)
async def update_dish(
    dish_id: int,
    data: DishUpdate,
    db: AsyncSession = Depends(get_db),
):
    dish = await _get_dish_or_404(db, dish_id)
    updates = data.model_dump(exclude_unset=True, exclude_none=True)

    if "category_id" in updates:
        await _get_category_or_404(db, updates["category_id"])
    if "ingredients" in updates:
        updates["ingredients"] = dump_declared_ingredients(data.ingredients)
    if "name" in updates:
        updates["name"] = updates["name"].strip()

    for key, value in updates.items():
        setattr(dish, key, value)

    await db.commit()
    await db.refresh(dish)
    category = await _get_category_or_404(db, dish.category_id)
    return _dish_response(dish, category)


@router.delete("/{dish_id}")
async def delete_dish(dish_id: int, db: AsyncSession = Depends(get_db)):
    """Deactivate a dish (soft delete); existing recipes keep referencing it"""
    dish = await _get_dish_or_404(db, dish_id)
    dish.is_active = False
    await db.commit()
    return {"message": "Dish deactivated"}
