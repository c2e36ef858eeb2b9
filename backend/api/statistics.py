"""
Statistics API endpoints: per-campus ingredient usage for procurement
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from backend.api.dependencies import get_aggregator, get_recipe_store
from backend.repositories import RecipeStore
from backend.services.statistics_aggregator import StatisticsAggregator
from backend.utils.exceptions import NotFoundError

router = APIRouter()

NO_STATISTICS = {"success": True, "data": [], "message": "No statistics available"}


async def _resolve_generation(recipes: RecipeStore, generation_id: Optional[int]) -> Optional[int]:
    """Requested generation, or the latest completed one with statistics"""
    if generation_id is not None:
        if await recipes.get_generation(generation_id) is None:
            raise NotFoundError("Generation", generation_id)
        return generation_id
    latest = await recipes.get_latest_generation_with_statistics()
    return latest.id if latest else None


@router.get("/grains")
async def grains_statistics(
    generation_id: Optional[int] = Query(None, alias="generationId"),
    recipes: RecipeStore = Depends(get_recipe_store),
    aggregator: StatisticsAggregator = Depends(get_aggregator),
):
    gid = await _resolve_generation(recipes, generation_id)
    if gid is None:
        return NO_STATISTICS
    return {"success": True, "data": await aggregator.grains(gid), "generationId": gid}


@router.get("/fruits")
async def fruits_statistics(
    generation_id: Optional[int] = Query(None, alias="generationId"),
    recipes: RecipeStore = Depends(get_recipe_store),
    aggregator: StatisticsAggregator = Depends(get_aggregator),
):
    gid = await _resolve_generation(recipes, generation_id)
    if gid is None:
        return NO_STATISTICS
    return {"success": True, "data": await aggregator.fruits(gid), "generationId": gid}


@router.get("/meat")
async def meat_statistics(
    generation_id: Optional[int] = Query(None, alias="generationId"),
    recipes: RecipeStore = Depends(get_recipe_store),
    aggregator: StatisticsAggregator = Depends(get_aggregator),
):
    """Meat and seafood combined"""
    gid = await _resolve_generation(recipes, generation_id)
    if gid is None:
        return NO_STATISTICS
    return {"success": True, "data": await aggregator.aggregate_meat_seafood(gid), "generationId": gid}


@router.get("/summary")
async def statistics_summary(
    generation_id: Optional[int] = Query(None, alias="generationId"),
    recipes: RecipeStore = Depends(get_recipe_store),
    aggregator: StatisticsAggregator = Depends(get_aggregator),
):
    """Grand totals per category from the persisted projection"""
    gid = await _resolve_generation(recipes, generation_id)
    if gid is None:
        return NO_STATISTICS
    return {"success": True, "data": await aggregator.summary(gid), "generationId": gid}
