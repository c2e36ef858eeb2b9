"""
Ingredient catalog API endpoints
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from backend.database import get_db
from backend.api.dependencies import get_aggregator, get_cache, get_recipe_store
from backend.models.ingredient import Ingredient, IngredientCategory, INGREDIENT_CATEGORY_LABELS
from backend.models.recipe import RecipeIngredient
from backend.repositories import RecipeStore
from backend.services.statistics_aggregator import StatisticsAggregator
from backend.utils.cache import CacheManager

logger = logging.getLogger(__name__)

router = APIRouter()


class IngredientResponse(BaseModel):
    id: int
    name: str
    category: IngredientCategory
    unit: str
    calories_per_100g: Optional[float]

    class Config:
        from_attributes = True


class IngredientCreate(BaseModel):
    name: str
    category: IngredientCategory
    unit: str = "g"
    calories_per_100g: Optional[float] = 0


class IngredientUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[IngredientCategory] = None
    unit: Optional[str] = None
    calories_per_100g: Optional[float] = None


class CategoryCount(BaseModel):
    category: IngredientCategory
    label: str
    count: int


async def _get_ingredient_or_404(db: AsyncSession, ingredient_id: int) -> Ingredient:
    result = await db.execute(select(Ingredient).where(Ingredient.id == ingredient_id))
    ingredient = result.scalar_one_or_none()
    if not ingredient:
        raise HTTPException(status_code=404, detail="Ingredient not found")
    return ingredient


async def _check_name_free(db: AsyncSession, name: str, exclude_id: Optional[int] = None):
    query = select(Ingredient).where(Ingredient.name == name)
    if exclude_id is not None:
        query = query.where(Ingredient.id != exclude_id)
    result = await db.execute(query)
    if result.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Ingredient already exists")


@router.get("", response_model=List[IngredientResponse])
async def list_ingredients(
    category: Optional[IngredientCategory] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """List ingredients ordered by category and name"""
    query = select(Ingredient).order_by(Ingredient.category, Ingredient.name)
    if category:
        query = query.where(Ingredient.category == category)
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/categories", response_model=List[CategoryCount])
async def category_counts(db: AsyncSession = Depends(get_db)):
    """Every ingredient category with how many ingredients it holds"""
    result = await db.execute(
        select(Ingredient.category, func.count(Ingredient.id)).group_by(Ingredient.category)
    )
    counts = {IngredientCategory(category): count for category, count in result.all()}
    return [
        CategoryCount(category=c, label=INGREDIENT_CATEGORY_LABELS[c], count=counts.get(c, 0))
        for c in IngredientCategory
    ]


@router.get("/{ingredient_id}", response_model=IngredientResponse)
async def get_ingredient(ingredient_id: int, db: AsyncSession = Depends(get_db)):
    return await _get_ingredient_or_404(db, ingredient_id)


@router.post("", response_model=IngredientResponse)
async def create_ingredient(data: IngredientCreate, db: AsyncSession = Depends(get_db)):
    name = data.name.strip()
    await _check_name_free(db, name)
    ingredient = Ingredient(
        name=name,
        category=data.category,
        unit=data.unit or "g",
        calories_per_100g=data.calories_per_100g or 0,
    )
    db.add(ingredient)
    await db.commit()
    await db.refresh(ingredient)
    return ingredient


@router.put("/{ingredient_id}", response_model=IngredientResponse)
async def update_ingredient(
    ingredient_id: int,
    data: IngredientUpdate,
    db: AsyncSession = Depends(get_db),
    recipes: RecipeStore = Depends(get_recipe_store),
    aggregator: StatisticsAggregator = Depends(get_aggregator),
    cache: CacheManager = Depends(get_cache),
):
    """Update an ingredient; a new category or unit rebuilds the statistics that use it"""
    ingredient = await _get_ingredient_or_404(db, ingredient_id)
    updates = data.model_dump(exclude_none=True)
    if "name" in updates:
        updates["name"] = updates["name"].strip()
        await _check_name_free(db, updates["name"], exclude_id=ingredient_id)

    regrouped = (
        updates.get("category", ingredient.category) != ingredient.category
        or updates.get("unit", ingredient.unit) != ingredient.unit
    )
    for key, value in updates.items():
        setattr(ingredient, key, value)

    if regrouped:
        generation_ids = await recipes.get_generation_ids_using_ingredient(ingredient_id)
        for generation_id in generation_ids:
            await aggregator.refresh(generation_id)
        logger.info(f"Ingredient {ingredient.name} regrouped, refreshed statistics for {len(generation_ids)} generation(s)")

    await db.commit()
    await db.refresh(ingredient)
    # cached reports carry ingredient names, categories and units
    cache.invalidate_pattern("statistics:*")
    return ingredient


@router.delete("/{ingredient_id}")
async def delete_ingredient(ingredient_id: int, db: AsyncSession = Depends(get_db)):
    """Delete an ingredient no recipe uses"""
    ingredient = await _get_ingredient_or_404(db, ingredient_id)
    result = await db.execute(
        select(func.count(RecipeIngredient.id)).where(RecipeIngredient.ingredient_id == ingredient_id)
    )
    if result.scalar():
        raise HTTPException(status_code=409, detail="Ingredient is used by recipes and cannot be deleted")

    await db.delete(ingredient)
    await db.commit()
    return {"message": "Ingredient deleted"}
