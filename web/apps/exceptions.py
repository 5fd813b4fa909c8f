"""Domain exceptions shared by the products and orders apps.

Services raise these when a business rule is violated. The HTTP layer
translates them into responses using ``code`` as the ``detail`` field, so
every subclass carries a stable, machine readable code next to its
human readable message.
"""


class StoreError(Exception):
    """Base class for every error the store domain raises on purpose."""

    code = "STORE_ERROR"


class NoValidProductInOrder(StoreError):
    """None of the requested line items could be admitted."""

    code = "NO_VALID_PRODUCT_IN_ORDER"

    def __init__(self, message: str = "No valid products found to add to the order."):
        super().__init__(message)


class InsufficientStock(StoreError):
    """A product does not hold enough stock for the requested quantity."""

    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: int, product_name: str, available: int, requested: int):
        self.product_id = product_id
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Product {product_name} does not have enough stock. "
            f"Available: {available}, Requested: {requested}"
        )


class ProductNotFound(StoreError):
    """A referenced product id does not exist."""

    code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")


class OrderNotFound(StoreError):
    """A referenced order id does not exist."""

    code = "ORDER_NOT_FOUND"

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class InvalidStatusTransition(StoreError):
    """The order lifecycle does not allow moving between two statuses."""

    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move order from {current.value} to {target.value}")


class UnexpectedError(StoreError):
    """Any failure that is not one of the typed domain errors.

    The original exception is kept as ``__cause__``.
    """

    code = "UNEXPECTED_ERROR"


class UnknownOrderStatus(ValueError):
    """A status string does not name any ``OrderStatus``."""
