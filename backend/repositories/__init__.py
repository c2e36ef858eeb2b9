from backend.repositories.catalog import CatalogStore
from backend.repositories.recipes import RecipeStore

__all__ = ["CatalogStore", "RecipeStore"]
