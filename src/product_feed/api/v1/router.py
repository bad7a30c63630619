# src/product_feed/api/v1/router.py
from fastapi import APIRouter

from product_feed.api.v1 import popular, products

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(products.router)
api_router.include_router(popular.router)
