from __future__ import annotations

from typing import List, Optional, Protocol

from models import BatchState


class BatchStorePort(Protocol):
    def get(self, batch_id: str) -> Optional[BatchState]:
        ...

    def set(self, batch_id: str, state: BatchState) -> None:
        ...


class BatchListingPort(BatchStorePort, Protocol):
    def list_ids(self) -> List[str]:
        ...
