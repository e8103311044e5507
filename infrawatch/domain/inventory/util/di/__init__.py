from infrawatch.domain.inventory.util.di.provider import InventoryProvider

__all__ = ["InventoryProvider"]
