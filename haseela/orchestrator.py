"""
Main Orchestrator for Haseela

This module owns the one authoritative AppState of a session and keeps
it durable. It ties together:
1. The ledger operations (every change produces a new state)
2. The local cache (written synchronously after every change)
3. The remote store (written asynchronously when signed in)
4. The identity provider (decides whether there is a remote at all)

SESSION PHASES:
    UNAUTHENTICATED -> local cache only
    AUTHENTICATING  -> checking for an existing session
    LOADING         -> signed in, resolving which copy of the state wins
    READY           -> signed in, every change is written through

LOAD PRECEDENCE (signed in):
1. Remote record exists   -> it wins and overwrites the local cache
2. No remote, local cache -> local wins and is copied to the remote once
3. Neither                -> empty state
A failed remote read falls back to local (or empty) without copying.

KNOWN LIMITATION: there is no conflict detection. Whichever device
writes last replaces the remote record (last writer wins).
"""

import asyncio
from datetime import date
from enum import Enum
from typing import Any, Callable, Optional

import structlog

from haseela.audit import AuditLogger
from haseela.config import get_settings
from haseela.ledger import (
    add_client,
    add_task,
    delete_client,
    delete_task,
    reset_state,
    set_goal,
    toggle_task,
)
from haseela.models.ledger import AppState, local_now
from haseela.services.backup import (
    InvalidDocumentError,
    backup_filename,
    export_document,
    parse_document,
)
from haseela.services.identity import (
    IdentityProvider,
    InMemoryIdentityProvider,
    Session,
    SessionEvent,
)
from haseela.services.storage import (
    CacheCorruptedError,
    GoogleSheetsStateStorage,
    LocalStateCache,
    StateStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


class SyncError(Exception):
    """The coordinator was asked to do something it is not set up for."""
    pass


class SessionPhase(str, Enum):
    """Where the session is in the sign-in / load lifecycle."""
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    LOADING = "loading"
    READY = "ready"


class StateSource(str, Enum):
    """Which copy of the state was adopted at load time."""
    REMOTE = "remote"
    LOCAL = "local"
    EMPTY = "empty"


class SyncCoordinator:
    """
    Holds the session's AppState and persists every change.

    All mutations go through `apply` (or the named wrappers), which:
    1. Builds the new state with a pure ledger operation
    2. Makes it the authoritative value
    3. Writes it to the local cache before returning
    4. Schedules a remote push when signed in, without waiting for it

    A remote failure is logged and dropped. It never rolls back the
    local change and never reaches the caller.
    """

    def __init__(
        self,
        local_cache: LocalStateCache,
        remote_storage: Optional[StateStorageInterface] = None,
        identity: Optional[IdentityProvider] = None,
        audit_logger: Optional[AuditLogger] = None,
        default_currency: Optional[str] = None,
    ):
        self._local = local_cache
        self._remote = remote_storage
        self._identity = identity
        self._audit = audit_logger or AuditLogger()
        self._currency = default_currency or get_settings().app.default_currency

        self._state = AppState.empty(self._currency)
        self._phase = SessionPhase.UNAUTHENTICATED
        self._session: Optional[Session] = None
        self._last_saved_at = None
        self._pending: set[asyncio.Task] = set()
        self._signing_out = False

        self._unsubscribe = (
            identity.subscribe(self._on_session_change) if identity else None
        )

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def user_id(self) -> Optional[str]:
        return self._session.user_id if self._session else None

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    @property
    def has_identity_provider(self) -> bool:
        return self._identity is not None

    @property
    def last_saved_at(self):
        """When the local cache was last written (None if never this session)."""
        return self._last_saved_at

    @property
    def pending_sync_count(self) -> int:
        return len(self._pending)

    # -------------------------------------------------------------------------
    # Session lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> AppState:
        """
        Resolve the initial state for this session.

        Checks for an existing identity session first; without one the
        state comes from the local cache alone.
        """
        if self._identity is None:
            return self._start_local()

        self._phase = SessionPhase.AUTHENTICATING
        try:
            session = await self._identity.get_current_session()
        except Exception as e:
            self._audit.log_error("session_lookup_failed", str(e))
            session = None

        if session is None:
            return self._start_local()

        await self._load_for(session)
        return self._state

    async def sign_in(self, email: str, password: str) -> AppState:
        """
        Sign in and load the identity's state.

        Raises:
            IdentityError: On bad credentials; the current state is untouched
        """
        session = await self._authenticate(self._identity.sign_in, email, password)
        await self._load_for(session)
        return self._state

    async def sign_up(self, email: str, password: str) -> Optional[AppState]:
        """
        Register and, if the provider starts a session right away, load.

        Returns None when the provider wants the email confirmed first.

        Raises:
            IdentityError: If registration fails
        """
        session = await self._authenticate(self._identity.sign_up, email, password)
        if session is None:
            self._phase = SessionPhase.UNAUTHENTICATED
            return None
        await self._load_for(session)
        return self._state

    async def sign_out(self) -> None:
        """End the session, clear the local cache and reset to empty."""
        user_id = self.user_id
        if self._identity is not None:
            self._signing_out = True
            try:
                await self._identity.sign_out()
            except Exception as e:
                self._audit.log_error("sign_out_failed", str(e))
            finally:
                self._signing_out = False

        self._end_session()
        self._audit.log_signed_out(user_id)

    def close(self) -> None:
        """Stop listening to the identity provider."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def _authenticate(self, action: Callable, email: str, password: str):
        if self._identity is None:
            raise SyncError("No identity provider configured")

        previous_phase = self._phase
        self._phase = SessionPhase.AUTHENTICATING
        try:
            session = await action(email, password)
        except Exception:
            self._phase = previous_phase
            raise

        if session is not None:
            self._audit.log_signed_in(session.user_id)
        return session

    def _on_session_change(self, event: SessionEvent, session: Optional[Session]) -> None:
        """React to the provider ending the session on its own."""
        if event != SessionEvent.SIGNED_OUT or self._signing_out:
            return
        if self._session is None:
            return
        self._audit.log_session_ended(self._session.user_id)
        self._end_session()

    def _end_session(self) -> None:
        self._session = None
        try:
            self._local.clear()
        except StorageError as e:
            self._audit.log_local_save_failed(str(e))
        self._state = AppState.empty(self._currency)
        self._phase = SessionPhase.UNAUTHENTICATED

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def _start_local(self) -> AppState:
        self._session = None
        local = self._read_local_cache()
        if local is not None:
            self._state = local
            source = StateSource.LOCAL
        else:
            self._state = AppState.empty(self._currency)
            source = StateSource.EMPTY

        self._phase = SessionPhase.UNAUTHENTICATED
        self._audit.log_state_loaded(
            source.value, len(self._state.clients), len(self._state.goals)
        )
        return self._state

    async def _load_for(self, session: Session) -> None:
        self._session = session
        self._phase = SessionPhase.LOADING

        local = self._read_local_cache()
        source, state = await self._resolve_state(session.user_id, local)

        self._state = state
        if source == StateSource.REMOTE:
            self._write_local(state)

        self._phase = SessionPhase.READY
        self._audit.log_state_loaded(source.value, len(state.clients), len(state.goals))

    async def _resolve_state(
        self,
        user_id: str,
        local: Optional[AppState],
    ) -> tuple[StateSource, AppState]:
        fallback = (
            (StateSource.LOCAL, local)
            if local is not None
            else (StateSource.EMPTY, AppState.empty(self._currency))
        )
        if self._remote is None:
            return fallback

        try:
            stored = await self._remote.load_state(user_id)
        except Exception as e:
            self._audit.log_remote_sync_failed("load", str(e))
            return fallback

        if stored is not None:
            return StateSource.REMOTE, stored.state

        if local is not None:
            # First sign-in with data already on this device
            if await self._push(user_id, local):
                self._audit.log_local_data_migrated(user_id)

        return fallback

    def _read_local_cache(self) -> Optional[AppState]:
        try:
            return self._local.load()
        except CacheCorruptedError as e:
            self._audit.log_local_cache_corrupted(str(e))
            return None

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def apply(
        self,
        operation: Callable[..., AppState],
        *args: Any,
        **kwargs: Any,
    ) -> AppState:
        """
        Run a ledger operation against the current state and persist it.

        A rejected operation returns the same state object; nothing is
        written in that case.
        """
        new_state = operation(self._state, *args, **kwargs)
        if new_state is not self._state:
            self._commit(new_state)
        return self._state

    async def add_client(self, name: str) -> AppState:
        return await self.apply(add_client, name)

    async def delete_client(self, client_id: str) -> AppState:
        return await self.apply(delete_client, client_id)

    async def add_task(self, client_id: str, title: str, price: Any) -> AppState:
        return await self.apply(add_task, client_id, title, price)

    async def delete_task(self, client_id: str, task_id: str) -> AppState:
        return await self.apply(delete_task, client_id, task_id)

    async def toggle_task(self, client_id: str, task_id: str) -> AppState:
        return await self.apply(toggle_task, client_id, task_id)

    async def set_goal(self, amount: Any) -> AppState:
        return await self.apply(set_goal, amount)

    async def reset(self) -> AppState:
        """
        Wipe all data.

        The local slot is removed. When signed in, the empty state is
        pushed too, otherwise the remote copy would win on next load.
        """
        self._state = reset_state(self._state)
        try:
            self._local.clear()
        except StorageError as e:
            self._audit.log_local_save_failed(str(e))
        if self._can_push():
            self._schedule_push(self._state)
        return self._state

    def _commit(self, new_state: AppState) -> None:
        self._state = new_state
        self._write_local(new_state)
        if self._can_push():
            self._schedule_push(new_state)

    def _write_local(self, state: AppState) -> None:
        try:
            self._local.save(state)
            self._last_saved_at = local_now()
        except StorageError as e:
            self._audit.log_local_save_failed(str(e))

    # -------------------------------------------------------------------------
    # Remote push
    # -------------------------------------------------------------------------

    def _can_push(self) -> bool:
        return (
            self._remote is not None
            and self._session is not None
            and self._phase == SessionPhase.READY
        )

    def _schedule_push(self, state: AppState) -> None:
        task = asyncio.get_running_loop().create_task(
            self._push(self._session.user_id, state)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _push(self, user_id: str, state: AppState) -> bool:
        try:
            return await self._remote.save_state(user_id, state)
        except Exception as e:
            self._audit.log_remote_sync_failed("save", str(e))
            return False

    async def drain(self) -> None:
        """Wait for every scheduled remote push to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # -------------------------------------------------------------------------
    # Backup
    # -------------------------------------------------------------------------

    def export_document(self, today: Optional[date] = None) -> tuple[str, str]:
        """Return (filename, JSON content) for a download of the whole state."""
        filename = backup_filename(today)
        self._audit.log_state_exported(filename)
        return filename, export_document(self._state)

    async def import_document(self, content) -> AppState:
        """
        Replace the whole state with an imported document.

        Raises:
            InvalidDocumentError: If the document is rejected; the
                                  current state is untouched
        """
        try:
            imported = parse_document(content)
        except InvalidDocumentError as e:
            self._audit.log_document_rejected(str(e))
            raise

        self._commit(imported)
        self._audit.log_document_imported(len(imported.clients), len(imported.goals))
        return self._state


def create_app_components(use_remote: bool = True) -> SyncCoordinator:
    """
    Build a coordinator from settings.

    The remote store is only wired in when enabled and configured; a
    missing Google Sheets configuration leaves the app in local-only
    mode rather than failing.
    """
    app_settings = get_settings().app

    remote: Optional[StateStorageInterface] = None
    if use_remote and app_settings.remote_sync_enabled:
        try:
            remote = GoogleSheetsStateStorage()
        except Exception as e:
            logger.warning("remote_store_unavailable", error=str(e))

    identity: Optional[IdentityProvider] = None
    if app_settings.identity_backend == "memory":
        identity = InMemoryIdentityProvider()

    return SyncCoordinator(
        local_cache=LocalStateCache(),
        remote_storage=remote,
        identity=identity,
        audit_logger=AuditLogger(),
        default_currency=app_settings.default_currency,
    )
