"""
Campuses API endpoints
"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy import select, delete, or_, func
from sqlalchemy.ext.asyncio import AsyncSession

from backend.config import get_settings
from backend.database import get_db
from backend.api.dependencies import get_cache
from backend.models.campus import Campus
from backend.models.recipe import Recipe
from backend.models.statistics_cache import StatisticsCacheEntry
from backend.utils.cache import CacheManager, CacheKeys, invalidate_campuses

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter()


class CampusResponse(BaseModel):
    id: int
    name: str
    code: str
    address: Optional[str]
    capacity: Optional[int]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class CampusCreate(BaseModel):
    name: str
    code: str
    address: Optional[str] = None
    capacity: Optional[int] = 100


class CampusUpdate(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None
    address: Optional[str] = None
    capacity: Optional[int] = None


async def _get_campus_or_404(db: AsyncSession, campus_id: int) -> Campus:
    result = await db.execute(select(Campus).where(Campus.id == campus_id))
    campus = result.scalar_one_or_none()
    if not campus:
        raise HTTPException(status_code=404, detail="Campus not found")
    return campus


async def _check_unique(db: AsyncSession, name: Optional[str], code: Optional[str], exclude_id: Optional[int] = None):
    conditions = []
    if name:
        conditions.append(Campus.name == name)
    if code:
        conditions.append(Campus.code == code)
    if not conditions:
        return
    query = select(Campus).where(or_(*conditions))
    if exclude_id is not None:
        query = query.where(Campus.id != exclude_id)
    result = await db.execute(query)
    if result.scalars().first():
        raise HTTPException(status_code=409, detail="Campus name or code already exists")


@router.get("")
async def list_campuses(
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
):
    """List all campuses (cached)"""
    cached = cache.get(CacheKeys.CAMPUSES)
    if cached is not None:
        return {"success": True, "data": cached, "cached": True}

    result = await db.execute(select(Campus).order_by(Campus.name))
    campuses = [
        CampusResponse.model_validate(c).model_dump(mode="json")
        for c in result.scalars().all()
    ]
    cache.set(CacheKeys.CAMPUSES, campuses, settings.CAMPUS_CACHE_TTL_SECONDS)
    return {"success": True, "data": campuses}


@router.get("/{campus_id}", response_model=CampusResponse)
async def get_campus(campus_id: int, db: AsyncSession = Depends(get_db)):
    return await _get_campus_or_404(db, campus_id)


@router.post("", response_model=CampusResponse)
async def create_campus(
    data: CampusCreate,
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
):
    """Register a new campus"""
    await _check_unique(db, data.name.strip(), data.code.strip())
    campus = Campus(
        name=data.name.strip(),
        code=data.code.strip(),
        address=data.address,
        capacity=data.capacity if data.capacity is not None else 100,
    )
    db.add(campus)
    await db.commit()
    await db.refresh(campus)

    # every statistics report lists all campuses
    invalidate_campuses(cache)
    cache.invalidate_pattern("statistics:*")
    logger.info(f"Created campus {campus.name} ({campus.code})")
    return campus


@router.put("/{campus_id}", response_model=CampusResponse)
async def update_campus(
    campus_id: int,
    data: CampusUpdate,
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
):
    campus = await _get_campus_or_404(db, campus_id)
    updates = data.model_dump(exclude_none=True)
    await _check_unique(db, updates.get("name"), updates.get("code"), exclude_id=campus_id)

    for key, value in updates.items():
        setattr(campus, key, value.strip() if isinstance(value, str) else value)

    await db.commit()
    await db.refresh(campus)
    invalidate_campuses(cache)
    cache.invalidate_pattern("statistics:*")
    return campus


@router.delete("/{campus_id}")
async def delete_campus(
    campus_id: int,
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
):
    """Delete a campus that has no recipes"""
    campus = await _get_campus_or_404(db, campus_id)
    result = await db.execute(select(func.count(Recipe.id)).where(Recipe.campus_id == campus_id))
    if result.scalar():
        raise HTTPException(status_code=409, detail="Campus has recipes and cannot be deleted")

    await db.execute(delete(StatisticsCacheEntry).where(StatisticsCacheEntry.campus_id == campus_id))
    await db.delete(campus)
    await db.commit()
    invalidate_campuses(cache)
    cache.invalidate_pattern("statistics:*")
    return {"message": "Campus deleted"}
