"""HTTP views for the product catalogue."""

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse

from apps.exceptions import ProductNotFound
from apps.orders.providers import get_product_service

from .schemas import ProductIn, ProductOut
from .services import ProductService

router = APIRouter(prefix="/api/products", tags=["products"])


def _not_found(exc: ProductNotFound) -> JSONResponse:
    return JSONResponse({"detail": exc.code, "message": str(exc)}, status_code=status.HTTP_404_NOT_FOUND)


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=ProductOut)
def create_product(dto: ProductIn, service: ProductService = Depends(get_product_service)):
    product = service.create_product(dto.name, dto.price, dto.stock, dto.description)
    return ProductOut.from_domain(product)


@router.get("/", response_model=list[ProductOut])
def list_products(service: ProductService = Depends(get_product_service)):
    return [ProductOut.from_domain(p) for p in service.list_all_products()]


@router.get("/{product_id}", response_model=ProductOut)
def retrieve_product(product_id: int, service: ProductService = Depends(get_product_service)):
    try:
        product = service.get_product(product_id)
    except ProductNotFound as e:
        return _not_found(e)
    return ProductOut.from_domain(product)


@router.put("/{product_id}", response_model=ProductOut)
def update_product(product_id: int, dto: ProductIn, service: ProductService = Depends(get_product_service)):
    try:
        product = service.update_product(product_id, dto.name, dto.price, dto.stock, dto.description)
    except ProductNotFound as e:
        return _not_found(e)
    return ProductOut.from_domain(product)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(product_id: int, service: ProductService = Depends(get_product_service)):
    service.delete_product(product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
