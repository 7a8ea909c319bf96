"""
FastAPI dependency providers that assemble the service graph per request.
"""
from fastapi import Depends

from .auth import get_password_hash, verify_password
from .services.posts import PostLifecycleEngine
from .services.registries import CategoryRegistry, PlacementRegistry
from .services.users import UserService
from .store import DocumentStore, get_store


def get_category_registry(store: DocumentStore = Depends(get_store)) -> CategoryRegistry:
    return CategoryRegistry(store)


def get_placement_registry(store: DocumentStore = Depends(get_store)) -> PlacementRegistry:
    return PlacementRegistry(store)


def get_post_engine(
    store: DocumentStore = Depends(get_store),
    categories: CategoryRegistry = Depends(get_category_registry),
    placements: PlacementRegistry = Depends(get_placement_registry),
) -> PostLifecycleEngine:
    return PostLifecycleEngine(store, categories, placements)


def get_user_service(store: DocumentStore = Depends(get_store)) -> UserService:
    return UserService(store, hash_password=get_password_hash, verify_password=verify_password)
