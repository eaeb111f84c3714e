"""
MongoDB connection handle.

This module provides:
- MongoConnection: the process-scoped PyMongo async client, Beanie model registration and connection events
- ConnectionResult: the outcome of a connection attempt
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Tuple, Type

from beanie import Document, init_beanie
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from peopledb.core import EventBus, PeopleDB, first_not_none, ifnone
from peopledb.database.core.exceptions import StoreUnavailableError, translate_store_errors
from peopledb.database.core.settings import DatabaseSettings

CONNECTED_EVENT = "connected"
ERROR_EVENT = "error"

# Document model -> (client, database name) it is currently bound to
_model_bindings: Dict[Type[Document], Tuple[AsyncMongoClient, str]] = {}


@dataclass(frozen=True)
class ConnectionResult:
    """Outcome of :meth:`MongoConnection.connect`. ``error`` is set exactly when ``ok`` is False."""

    ok: bool
    error: Optional[StoreUnavailableError] = None


def sanitize_mongodb_url(url: str) -> str:
    """Hide the password in a MongoDB URL for safe logging."""
    if "://" not in url:
        return url
    protocol, rest = url.split("://", 1)
    if "@" not in rest:
        return url
    credentials, host = rest.rsplit("@", 1)
    username = credentials.split(":", 1)[0]
    return f"{protocol}://{username}:***@{host}"


class MongoConnection(PeopleDB):
    """
    Process-scoped MongoDB connection.

    One client is created by :meth:`connect` and shared by every backend built on this handle. Connecting never
    raises: failures are logged, emitted as an ``"error"`` event and returned as a failed :class:`ConnectionResult`.
    A successful connection emits ``"connected"``.

    Args:
        db_uri: MongoDB connection URI. Defaults to ``MONGO_URI`` from :class:`DatabaseSettings`.
        db_name: Database name. Defaults to ``MONGO_DB_NAME`` from :class:`DatabaseSettings`.
        event_bus: Bus used for connection events. A private bus is created when omitted.
        settings: Settings to read defaults from. Loaded from the environment when omitted.

    Example:
        .. code-block:: python

            from peopledb.database import MongoConnection

            connection = MongoConnection()
            connection.on("error", lambda error: print(f"MongoDB connection error: {error}"))
            result = await connection.connect()
            if result.ok:
                ...
            await connection.close()

            # Or scoped:
            async with MongoConnection("mongodb://localhost:27017", "peopledb") as connection:
                ...
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        db_name: Optional[str] = None,
        *,
        event_bus: Optional[EventBus] = None,
        settings: Optional[DatabaseSettings] = None,
        **kwargs,
    ):
        super().__init__(config_overrides=ifnone(settings, DatabaseSettings()), **kwargs)
        self._db_uri: Optional[str] = first_not_none([db_uri, self.config.get_secret("MONGO_URI")])
        self.db_name: str = first_not_none([db_name, self.config.MONGO_DB_NAME])
        self.events = ifnone(event_bus, EventBus())
        self.client: Optional[AsyncMongoClient] = None

    @property
    def is_connected(self) -> bool:
        return self.client is not None

    @property
    def safe_uri(self) -> str:
        return sanitize_mongodb_url(self._db_uri) if self._db_uri else "<unset>"

    @property
    def database(self) -> AsyncDatabase:
        if self.client is None:
            raise StoreUnavailableError("Not connected to MongoDB. Call connect() first.")
        return self.client[self.db_name]

    def on(self, event_name: str, handler: Callable) -> str:
        """Subscribe ``handler`` to ``"connected"`` or ``"error"``. Returns the subscription id.

        A handler that raises is logged and does not affect :meth:`connect`.
        """
        return self.events.subscribe(event_name, handler)

    async def connect(self) -> ConnectionResult:
        """Create the client and verify the server answers a ping.

        Calling connect on an already connected handle is a no-op.
        """
        if self.client is not None:
            return ConnectionResult(ok=True)
        if not self._db_uri:
            return self._fail(StoreUnavailableError("MONGO_URI is not set"))

        client = None
        try:
            client = AsyncMongoClient(self._db_uri)
            await client.admin.command("ping")
        except (PyMongoError, ValueError) as e:
            if client is not None:
                await client.close()
            error = StoreUnavailableError(f"Could not connect to MongoDB at {self.safe_uri}: {e}")
            error.__cause__ = e
            return self._fail(error)

        self.client = client
        self.logger.info(f"Connected to MongoDB at {self.safe_uri} (database: {self.db_name})")
        self.events.emit_safely(CONNECTED_EVENT, uri=self.safe_uri, db_name=self.db_name)
        return ConnectionResult(ok=True)

    def _fail(self, error: StoreUnavailableError) -> ConnectionResult:
        self.logger.error(f"MongoDB connection error: {error}")
        self.events.emit_safely(ERROR_EVENT, error=error)
        return ConnectionResult(ok=False, error=error)

    def _is_bound_here(self, model: Type[Document]) -> bool:
        client, db_name = _model_bindings.get(model, (None, None))
        return client is self.client and db_name == self.db_name

    async def register_models(self, models: Iterable[Type[Document]]) -> None:
        """Bind the given document models to this connection's database.

        Beanie binds a model to one database at class level, so a model last bound by another connection is bound
        again here. Models already bound to this connection are skipped. Connections to different databases can
        therefore share a model one after another, but not with interleaved in-flight operations.

        Raises:
            StoreUnavailableError: If the handle is not connected.
        """
        database = self.database
        pending = [model for model in models if not self._is_bound_here(model)]
        if not pending:
            return
        with translate_store_errors("model registration"):
            await init_beanie(database=database, document_models=pending)
        for model in pending:
            _model_bindings[model] = (self.client, self.db_name)
        self.logger.debug(f"Bound document models to {self.db_name}: {[model.__name__ for model in pending]}")

    async def close(self) -> None:
        """Close the client. The handle can be connected again afterwards."""
        if self.client is not None:
            for model in [m for m, (client, _) in _model_bindings.items() if client is self.client]:
                del _model_bindings[model]
            await self.client.close()
            self.client = None
            self.logger.info(f"Closed MongoDB connection to {self.safe_uri}")

    async def __aenter__(self) -> "MongoConnection":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        await self.close()
        return False
