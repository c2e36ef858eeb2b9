"""
Recipe generation models: one generation run scopes many recipes.
Each recipe is one dish served to a campus on a date in a meal slot, with
its ingredient quantities materialized into recipe_ingredients for statistics.
"""
from enum import Enum

from sqlalchemy import (
    Column, Integer, String, Text, Date, DateTime, Float, ForeignKey, JSON,
    UniqueConstraint, Enum as SQLEnum, func,
)
from sqlalchemy.orm import relationship
from backend.database import Base
from backend.models.dish import meal_slot_column


class GenerationStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class RecipeGeneration(Base):
    """One batch run of the schedule generator"""
    __tablename__ = "recipe_generations"

    id = Column(Integer, primary_key=True, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    generated_at = Column(DateTime, server_default=func.now())
    status = Column(
        SQLEnum(GenerationStatus, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=GenerationStatus.PENDING,
    )
    total_recipes = Column(Integer, default=0)
    notes = Column(Text, nullable=True)


class Recipe(Base):
    __tablename__ = "recipes"
    __table_args__ = (
        UniqueConstraint("campus_id", "date", "meal_slot", name="uq_recipe_campus_date_slot"),
    )

    id = Column(Integer, primary_key=True, index=True)
    campus_id = Column(Integer, ForeignKey("campuses.id"), nullable=False, index=True)
    dish_id = Column(Integer, ForeignKey("dishes.id"), nullable=False)
    date = Column(Date, nullable=False, index=True)
    meal_slot = meal_slot_column(nullable=False)
    generation_id = Column(Integer, ForeignKey("recipe_generations.id"), nullable=True, index=True)
    servings = Column(Integer, nullable=False, default=100)

    # {"猪肉": {"quantity": 80.0, "unit": "g", "category": "meat"}, ...}
    ingredient_quantities = Column(JSON, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    campus = relationship("Campus", lazy="noload")
    dish = relationship("Dish", lazy="noload")
    generation = relationship("RecipeGeneration", lazy="noload")


class RecipeIngredient(Base):
    """Per-recipe ingredient rows, rebuilt whenever the recipe's quantities change"""
    __tablename__ = "recipe_ingredients"

    id = Column(Integer, primary_key=True, index=True)
    recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=False, index=True)
    ingredient_id = Column(Integer, ForeignKey("ingredients.id"), nullable=False)
    quantity = Column(Float, nullable=False)
    unit = Column(String, nullable=False, default="g")
