from __future__ import annotations

from functools import lru_cache

from broadcast_ledger.db.session import AsyncSessionFactory
from broadcast_ledger.services.log_broadcast_store import BroadcastConsumptionStore
from broadcast_ledger.workers.log_broadcast_dispatcher import LogBroadcastDispatcher


@lru_cache(maxsize=1)
def get_broadcast_store() -> BroadcastConsumptionStore:
    return BroadcastConsumptionStore(AsyncSessionFactory)


@lru_cache(maxsize=1)
def get_log_broadcast_dispatcher() -> LogBroadcastDispatcher:
    return LogBroadcastDispatcher(get_broadcast_store())
