"""HTTP views for the orders app.

Views are kept intentionally small: they validate requests (via Pydantic),
map them to domain requests, delegate to ``OrderService`` and return an
HTTP response. The service is obtained through the ``get_order_service``
dependency, so tests can override the wiring without touching view logic.

Domain errors map to status codes as follows:

- ``OrderNotFound`` -> 404
- ``NoValidProductInOrder``, ``InsufficientStock``, ``ProductNotFound`` -> 400
- ``UnexpectedError`` -> 500
"""

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse

from apps.exceptions import StoreError

from .providers import get_order_service
from .schemas import OrderLinesDTO, OrderReadDTO
from .services import OrderService

router = APIRouter(prefix="/api/orders", tags=["orders"])

STATUS_BY_CODE = {
    "ORDER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "NO_VALID_PRODUCT_IN_ORDER": status.HTTP_400_BAD_REQUEST,
    "INSUFFICIENT_STOCK": status.HTTP_400_BAD_REQUEST,
    "PRODUCT_NOT_FOUND": status.HTTP_400_BAD_REQUEST,
}


def error_response(exc: StoreError) -> JSONResponse:
    """Build the JSON error body ``{detail, message}`` for a domain error."""
    code = STATUS_BY_CODE.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse({"detail": exc.code, "message": str(exc)}, status_code=code)


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=OrderReadDTO)
def create_order(dto: OrderLinesDTO, service: OrderService = Depends(get_order_service)):
    """Create and place an order.

    Returns:
        - 201 with the placed order.
        - 400 with {detail: "NO_VALID_PRODUCT_IN_ORDER"} when nothing is admissible.
        - 400 with {detail: "INSUFFICIENT_STOCK"} when a product lacks stock.
        - 422 for payload validation errors.
    """
    try:
        order = service.create_order(dto.to_domain())
    except StoreError as e:
        return error_response(e)
    return OrderReadDTO.from_domain(order)


@router.get("/", response_model=list[OrderReadDTO])
def list_orders(service: OrderService = Depends(get_order_service)):
    try:
        orders = service.list_all_orders()
    except StoreError as e:
        return error_response(e)
    return [OrderReadDTO.from_domain(o) for o in orders]


@router.get("/{order_id}", response_model=OrderReadDTO)
def retrieve_order(order_id: int, service: OrderService = Depends(get_order_service)):
    try:
        order = service.get_order(order_id)
    except StoreError as e:
        return error_response(e)
    return OrderReadDTO.from_domain(order)


@router.put("/{order_id}", response_model=OrderReadDTO)
def update_order(order_id: int, dto: OrderLinesDTO, service: OrderService = Depends(get_order_service)):
    """Replace the line items of an order; its status is left unchanged."""
    try:
        order = service.update_order(order_id, dto.to_domain())
    except StoreError as e:
        return error_response(e)
    return OrderReadDTO.from_domain(order)


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_order(order_id: int, service: OrderService = Depends(get_order_service)):
    """Delete an order. Deleting an unknown id still answers 204."""
    try:
        service.delete_order(order_id)
    except StoreError as e:
        return error_response(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
