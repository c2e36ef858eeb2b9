"""
Persisted per-campus totals for a generation and ingredient category.
Purely derived from recipe_ingredients; safe to delete and recompute.
"""
from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, UniqueConstraint, func
from backend.database import Base


class StatisticsCacheEntry(Base):
    __tablename__ = "statistics_cache"
    __table_args__ = (
        UniqueConstraint(
            "generation_id", "ingredient_category", "campus_id",
            name="uq_statistics_generation_category_campus",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    generation_id = Column(Integer, ForeignKey("recipe_generations.id"), nullable=False, index=True)
    ingredient_category = Column(String, nullable=False)  # IngredientCategory value
    campus_id = Column(Integer, ForeignKey("campuses.id"), nullable=False)
    total_quantity = Column(Float, nullable=False, default=0)
    unit = Column(String, nullable=False, default="g")
    calculated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
