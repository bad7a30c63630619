from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status

from product_feed.api.dependencies import get_product_service
from product_feed.domain.errors import FeedError
from product_feed.domain.models import CacheInfo, ErrorKind
from product_feed.services.product_service import ProductService

router = APIRouter(tags=["Products"])

ProductServiceDep = Annotated[ProductService, Depends(get_product_service)]

_STATUS_BY_KIND = {
    ErrorKind.TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
    ErrorKind.NETWORK: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.LOADING: status.HTTP_502_BAD_GATEWAY,
}


@router.get("/products/{category}", response_model=list[dict[str, Any]])
async def get_products(
    service: ProductServiceDep,
    category: str,
) -> list[dict[str, Any]]:
    """
    Liefert die gültigen Produkte einer Kategorie.
    Die Hot-Kategorie liefert eine gemischte Auswahl aller anderen Kategorien.
    """
    result = await service.fetch_products_result(category)
    if result.error is not None:
        raise HTTPException(
            status_code=_STATUS_BY_KIND[result.error.kind],
            detail=result.error.message,
            headers={"X-Error-Kind": result.error.kind.value},
        )
    return result.products


@router.get("/cache", response_model=CacheInfo)
async def get_cache_info(service: ProductServiceDep) -> CacheInfo:
    return service.get_cache_info()


@router.delete("/cache", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cache(service: ProductServiceDep) -> None:
    service.clear_cache()
