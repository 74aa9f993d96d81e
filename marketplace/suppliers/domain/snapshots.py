from dataclasses import dataclass


@dataclass(frozen=True)
class StockStatus:
    product_id: object
    quantity: int
    is_available: bool
    low_stock_threshold: int

    @property
    def is_low_stock(self) -> bool:
        return 0 < self.quantity <= self.low_stock_threshold

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "quantity": self.quantity,
            "is_available": self.is_available,
            "low_stock_threshold": self.low_stock_threshold,
            "is_low_stock": self.is_low_stock,
        }

    @classmethod
    def from_model(cls, product, threshold: int) -> "StockStatus":
        return cls(
            product_id=product.id,
            quantity=product.stock_quantity,
            is_available=product.is_available,
            low_stock_threshold=threshold,
        )
