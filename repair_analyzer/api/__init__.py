from .router import router
from .client import RepairApiClient

__all__ = [
    "router",
    "RepairApiClient",
]
