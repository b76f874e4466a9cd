from relayer_engine.app.infrastructure.db.models.blocks import BlocksDB
from relayer_engine.app.infrastructure.db.models.events import EventsDB
from relayer_engine.app.infrastructure.db.models.filters import FiltersDB
from relayer_engine.app.infrastructure.db.models.transactions import TransactionsDB

__all__ = ["BlocksDB", "EventsDB", "FiltersDB", "TransactionsDB"]
