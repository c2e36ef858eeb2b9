"""
Recipes API endpoints: schedule generation, listing and editing
"""
import logging
from datetime import date, datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from backend.database import get_db
from backend.api.dependencies import get_recipe_service, get_recipe_store, get_schedule_generator
from backend.models.recipe import GenerationStatus
from backend.repositories import RecipeStore
from backend.services.recipe_service import RecipeService
from backend.services.schedule_generator import ScheduleGenerator
from backend.utils.exceptions import NotFoundError, ValidationFailure

logger = logging.getLogger(__name__)

router = APIRouter()


class GenerateRequest(BaseModel):
    campuses: Optional[List[int]] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None


class RecipeUpdate(BaseModel):
    dish_id: Optional[int] = None
    dish_name: Optional[str] = None
    date: Optional[str] = None
    meal_slot: Optional[str] = None
    servings: Optional[int] = None
    ingredient_quantities: Optional[Dict[str, dict]] = None


class RecipeCreate(BaseModel):
    campus_id: int
    dish_name: str
    date: str
    meal_slot: str
    servings: Optional[int] = None


class GenerationResponse(BaseModel):
    id: int
    start_date: date
    end_date: date
    generated_at: Optional[datetime]
    status: GenerationStatus
    total_recipes: int
    notes: Optional[str]

    class Config:
        from_attributes = True


@router.post("/generate")
async def generate_recipes(
    data: GenerateRequest,
    db: AsyncSession = Depends(get_db),
    generator: ScheduleGenerator = Depends(get_schedule_generator),
):
    """Generate meal schedules for the selected campuses over a date range"""
    try:
        result = await generator.generate(data.campuses, data.startDate, data.endDate)
    except (ValidationFailure, NotFoundError):
        raise
    except Exception as e:
        # keep the failed generation row
        await db.commit()
        raise HTTPException(status_code=500, detail=f"Recipe generation failed: {e}")

    await db.commit()
    return {
        "success": True,
        "message": "Recipe generation completed successfully",
        "data": {
            "generationId": result["generation_id"],
            "totalRecipes": result["total_recipes"],
            "results": result["results"],
        },
    }


@router.get("")
async def list_recipes(
    campus_id: Optional[int] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    meal_slot: Optional[str] = Query(None),
    generation_id: Optional[int] = Query(None),
    service: RecipeService = Depends(get_recipe_service),
):
    """List recipes, newest date first"""
    recipes = await service.list_recipes(campus_id, start_date, end_date, meal_slot, generation_id)
    return {"success": True, "data": recipes}


@router.get("/schedule")
async def weekly_schedule(
    campus_id: int = Query(...),
    day: Optional[str] = Query(None, alias="date"),
    service: RecipeService = Depends(get_recipe_service),
):
    """Monday-Friday grid of recipes for one campus"""
    day = day or datetime.now().date().isoformat()
    schedule = await service.weekly_schedule(campus_id, day)
    return {"success": True, "data": schedule}


@router.get("/generations", response_model=List[GenerationResponse])
async def list_generations(recipes: RecipeStore = Depends(get_recipe_store)):
    """All generation runs, newest first"""
    return await recipes.list_generations()


@router.get("/{recipe_id}")
async def get_recipe(recipe_id: int, service: RecipeService = Depends(get_recipe_service)):
    return {"success": True, "data": await service.get_detail(recipe_id)}


@router.put("/{recipe_id}")
async def update_recipe(
    recipe_id: int,
    data: RecipeUpdate,
    db: AsyncSession = Depends(get_db),
    service: RecipeService = Depends(get_recipe_service),
):
    """Change a recipe's dish, date, meal slot or servings"""
    recipe = await service.update(
        recipe_id,
        dish_id=data.dish_id,
        dish_name=data.dish_name,
        day=data.date,
        meal_slot=data.meal_slot,
        servings=data.servings,
        ingredient_quantities=data.ingredient_quantities,
    )
    await db.commit()
    return {"success": True, "message": "Recipe updated successfully", "data": recipe}


@router.delete("/{recipe_id}")
async def delete_recipe(
    recipe_id: int,
    db: AsyncSession = Depends(get_db),
    service: RecipeService = Depends(get_recipe_service),
):
    await service.delete(recipe_id)
    await db.commit()
    return {"success": True, "message": "Recipe deleted successfully"}


@router.post("")
async def create_recipe(
    data: RecipeCreate,
    db: AsyncSession = Depends(get_db),
    service: RecipeService = Depends(get_recipe_service),
):
    """Add a single recipe by hand"""
    recipe = await service.create_manual(
        data.campus_id, data.dish_name, data.date, data.meal_slot, data.servings
    )
    await db.commit()
    return {"success": True, "message": "Recipe created successfully", "data": recipe}
