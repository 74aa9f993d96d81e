from .supplier import SupplierProfile


__all__ = ["SupplierProfile"]
