from .repos import BatchListingPort, BatchStorePort
from .source import PeopleSourcePort

__all__ = [
    "BatchListingPort",
    "BatchStorePort",
    "PeopleSourcePort",
]
