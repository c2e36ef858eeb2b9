"""
Ingredient usage statistics per campus for a recipe generation.

Every campus in the catalog appears in a report: campuses with usage get
one row per ingredient, campuses without get a single zero placeholder row.
Totals per (generation, category, campus) are also persisted to the
statistics_cache table for the summary views.
"""
import logging
from collections import defaultdict
from typing import Optional

from backend.config import get_settings
from backend.models.ingredient import IngredientCategory
from backend.repositories.catalog import CatalogStore
from backend.repositories.recipes import RecipeStore
from backend.utils.cache import CacheManager, CacheKeys, cache_manager, invalidate_after_generation

logger = logging.getLogger(__name__)
settings = get_settings()

PLACEHOLDER_INGREDIENT = "无相关食材"
PLACEHOLDER_UNIT = "g"

# Categories precomputed after each generation
TRACKED_CATEGORIES = [
    IngredientCategory.GRAINS,
    IngredientCategory.FRUITS,
    IngredientCategory.MEAT,
    IngredientCategory.SEAFOOD,
]

MEAT_SEAFOOD_VIEW = "meat_seafood"


def _is_placeholder(row: dict) -> bool:
    return row["ingredient_name"] == PLACEHOLDER_INGREDIENT and not row["total_quantity"]


class StatisticsAggregator:
    def __init__(
        self,
        catalog: CatalogStore,
        recipes: RecipeStore,
        cache: Optional[CacheManager] = None,
        ttl: Optional[float] = None,
    ):
        self.catalog = catalog
        self.recipes = recipes
        self.cache = cache if cache is not None else cache_manager
        self.ttl = ttl if ttl is not None else settings.STATISTICS_CACHE_TTL_SECONDS

    # ------------------------------------------------------------------ #
    # Report views
    # ------------------------------------------------------------------ #
    async def aggregate(self, generation_id: int, category) -> list[dict]:
        """Per-campus, per-ingredient totals for one ingredient category"""
        category = IngredientCategory(category)
        key = CacheKeys.statistics(generation_id, category.value)
        cached = self.cache.get(key)
        if cached is not None:
            return [dict(row) for row in cached]

        rows = await self._compute(generation_id, category)
        self.cache.set(key, rows, self.ttl)
        return [dict(row) for row in rows]

    async def grains(self, generation_id: int) -> list[dict]:
        return await self.aggregate(generation_id, IngredientCategory.GRAINS)

    async def fruits(self, generation_id: int) -> list[dict]:
        return await self.aggregate(generation_id, IngredientCategory.FRUITS)

    async def aggregate_meat_seafood(self, generation_id: int) -> list[dict]:
        """Meat and seafood combined, with at most one placeholder per campus.

        A campus with real usage in either category shows only its real rows.
        """
        key = CacheKeys.statistics(generation_id, MEAT_SEAFOOD_VIEW)
        cached = self.cache.get(key)
        if cached is not None:
            return [dict(row) for row in cached]

        meat = await self.aggregate(generation_id, IngredientCategory.MEAT)
        seafood = await self.aggregate(generation_id, IngredientCategory.SEAFOOD)
        combined = sorted(meat + seafood, key=lambda r: (r["campus_name"], -r["total_quantity"]))

        by_campus: dict[int, list[dict]] = {}
        for row in combined:
            by_campus.setdefault(row["campus_id"], []).append(row)

        rows = []
        for campus_rows in by_campus.values():
            real = [r for r in campus_rows if not _is_placeholder(r)]
            if real:
                rows.extend(real)
            else:
                rows.append(campus_rows[0])

        self.cache.set(key, rows, self.ttl)
        return [dict(row) for row in rows]

    async def _compute(self, generation_id: int, category: IngredientCategory) -> list[dict]:
        campuses = await self.catalog.get_campuses_all()
        usage = await self.recipes.aggregate_category_usage(generation_id, category)

        usage_by_campus = defaultdict(list)
        for row in usage:
            usage_by_campus[row.campus_id].append(row)

        results = []
        for campus in campuses:
            campus_usage = usage_by_campus.get(campus.id)
            if not campus_usage:
                results.append({
                    "campus_id": campus.id,
                    "campus_name": campus.name,
                    "ingredient_name": PLACEHOLDER_INGREDIENT,
                    "category": category.value,
                    "unit": PLACEHOLDER_UNIT,
                    "total_quantity": 0.0,
                })
                continue
            for row in campus_usage:
                results.append({
                    "campus_id": campus.id,
                    "campus_name": campus.name,
                    "ingredient_name": row.ingredient_name,
                    "category": IngredientCategory(row.category).value,
                    "unit": row.unit,
                    "total_quantity": float(row.total_quantity or 0),
                })
        return results

    # ------------------------------------------------------------------ #
    # Persisted projection
    # ------------------------------------------------------------------ #
    async def precompute(self, generation_id: int) -> dict[str, list[dict]]:
        """Recompute every tracked category and upsert per-campus totals"""
        invalidate_after_generation(generation_id, self.cache)
        campuses = await self.catalog.get_campuses_all()

        reports = {}
        for category in TRACKED_CATEGORIES:
            rows = await self.aggregate(generation_id, category)
            reports[category.value] = rows

            totals: dict[int, float] = defaultdict(float)
            units: dict[int, str] = {}
            for row in rows:
                if _is_placeholder(row):
                    continue
                totals[row["campus_id"]] += row["total_quantity"]
                units.setdefault(row["campus_id"], row["unit"])

            for campus in campuses:
                await self.recipes.upsert_statistics_entry(
                    generation_id,
                    category.value,
                    campus.id,
                    totals.get(campus.id, 0.0),
                    units.get(campus.id, PLACEHOLDER_UNIT),
                )

        logger.info(f"Statistics precomputed for generation {generation_id}")
        return reports

    async def refresh(self, generation_id: int) -> None:
        """Drop and rebuild everything derived from a generation's recipes"""
        await self.recipes.clear_statistics(generation_id)
        await self.precompute(generation_id)

    async def summary(self, generation_id: int) -> list[dict]:
        rows = await self.recipes.get_statistics_summary(generation_id)
        return [
            {
                "ingredient_category": row.ingredient_category,
                "unit": row.unit,
                "grand_total": float(row.grand_total or 0),
                "campus_count": row.campus_count,
            }
            for row in rows
        ]

    async def cached(self, generation_id: int, category) -> list[dict]:
        category = IngredientCategory(category)
        rows = await self.recipes.get_cached_statistics(generation_id, category.value)
        return [
            {
                "campus_id": row.StatisticsCacheEntry.campus_id,
                "campus_name": row.campus_name,
                "category": row.StatisticsCacheEntry.ingredient_category,
                "unit": row.StatisticsCacheEntry.unit,
                "total_quantity": row.StatisticsCacheEntry.total_quantity,
                "calculated_at": row.StatisticsCacheEntry.calculated_at,
            }
            for row in rows
        ]
