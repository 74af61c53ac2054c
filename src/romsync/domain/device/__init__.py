"""Device domain - categories resolved against source and device roots."""

from .categories import list_source_subdirectories, resolve_categories
from .models import Category, build_category

__all__ = [
    "Category",
    "build_category",
    "list_source_subdirectories",
    "resolve_categories",
]
