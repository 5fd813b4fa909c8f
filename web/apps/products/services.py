"""Product catalogue operations.

Direct product edits (price, description, stock corrections) go through
``ProductService``. Stock movements caused by orders do not: those belong
to the stock reservation engine.
"""

import logging
from decimal import Decimal
from typing import List

from apps.exceptions import ProductNotFound

from .domain import Product, ProductRepository

logger = logging.getLogger("store.products")


class ProductService:
    def __init__(self, products: ProductRepository):
        self.products = products

    def create_product(self, name: str, price: Decimal, stock: int, description: str = "") -> Product:
        product = self.products.save(Product(id=None, name=name, description=description, price=price, stock=stock))
        logger.info("product created", extra={"product_id": product.id})
        return product

    def update_product(self, product_id: int, name: str, price: Decimal, stock: int, description: str = "") -> Product:
        """Overwrite every editable field of an existing product.

        Raises:
            ProductNotFound: If the product does not exist.
        """
        product = self.get_product(product_id)
        product.name = name
        product.description = description
        product.price = price
        product.stock = stock
        return self.products.save(product)

    def get_product(self, product_id: int) -> Product:
        product = self.products.find_by_id(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        return product

    def delete_product(self, product_id: int) -> None:
        self.products.delete_by_id(product_id)
        logger.info("product deleted", extra={"product_id": product_id})

    def list_all_products(self) -> List[Product]:
        return self.products.find_all()
