"""
Tests for the sync coordinator.

Flows are exercised end to end against a temp-dir local cache, the
in-process identity provider and in-memory remote store fakes.
"""

import json

import pytest

from haseela.models.ledger import AppState, Client
from haseela.orchestrator import SessionPhase, SyncCoordinator, create_app_components
from haseela.services.backup import InvalidDocumentError
from haseela.services.identity import IdentityError

from conftest import FailingRemoteStorage


EMAIL = "ada@example.com"
PASSWORD = "secret1"


async def register(identity) -> str:
    """Create an account and leave it signed out; returns the user id."""
    session = await identity.sign_up(EMAIL, PASSWORD)
    await identity.sign_out()
    return session.user_id


class TestLocalOnly:
    """Tests for running without a signed-in identity."""

    async def test_start_without_identity_uses_cache(self, cache, sample_state):
        """Test local-only mode loads the cached state."""
        cache.save(sample_state)
        coordinator = SyncCoordinator(local_cache=cache, default_currency="$")

        state = await coordinator.start()

        assert state == sample_state
        assert coordinator.phase == SessionPhase.UNAUTHENTICATED

    async def test_start_empty(self, coordinator):
        """Test nothing cached gives an empty state in the default currency."""
        state = await coordinator.start()
        assert state.is_empty
        assert state.currency == "$"

    async def test_corrupt_cache_falls_back_to_empty(self, cache, coordinator):
        """Test a corrupt cache is ignored rather than fatal."""
        cache.path.write_text("{broken", encoding="utf-8")
        state = await coordinator.start()
        assert state.is_empty

    async def test_mutation_written_to_cache_immediately(self, cache, coordinator):
        """Test the local cache reflects a mutation as soon as it returns."""
        await coordinator.start()
        await coordinator.add_client("Acme")

        assert [c.name for c in cache.load().clients] == ["Acme"]
        assert coordinator.last_saved_at is not None

    async def test_no_remote_push_when_signed_out(self, remote, coordinator):
        """Test nothing is sent to the remote store without a session."""
        await coordinator.start()
        await coordinator.add_client("Acme")
        await coordinator.drain()
        assert remote.save_calls == []

    async def test_rejected_mutation_writes_nothing(self, cache, coordinator):
        """Test a no-op mutation leaves state and cache untouched."""
        await coordinator.start()
        before = coordinator.state

        after = await coordinator.add_client("   ")

        assert after is before
        assert cache.load() is None
        assert coordinator.last_saved_at is None

    async def test_full_flow(self, coordinator):
        """Test client, task, completion and goal through the coordinator."""
        await coordinator.start()
        state = await coordinator.add_client("Acme")
        client_id = state.clients[0].id
        state = await coordinator.add_task(client_id, "Logo", "250")
        task_id = state.clients[0].tasks[0].id
        state = await coordinator.toggle_task(client_id, task_id)
        state = await coordinator.set_goal("1000")

        assert state.clients[0].tasks[0].is_completed
        assert len(state.goals) == 1

        state = await coordinator.delete_task(client_id, task_id)
        assert state.clients[0].tasks == []
        state = await coordinator.delete_client(client_id)
        assert state.clients == []


class TestSignInLoad:
    """Tests for which copy of the state wins at sign-in."""

    async def test_local_data_migrated_on_first_sign_in(
        self, cache, remote, identity, coordinator, sample_state
    ):
        """Test local data is copied to an empty remote and adopted."""
        user_id = await register(identity)
        cache.save(sample_state)
        await coordinator.start()

        state = await coordinator.sign_in(EMAIL, PASSWORD)

        assert state == sample_state
        assert remote.records[user_id] == sample_state
        assert coordinator.phase == SessionPhase.READY
        assert coordinator.user_id == user_id

    async def test_remote_record_wins(
        self, cache, remote, identity, coordinator, sample_state
    ):
        """Test an existing remote record replaces local data."""
        user_id = await register(identity)
        remote_state = AppState(clients=[Client(id="r1", name="Remote")], currency="€")
        remote.records[user_id] = remote_state
        cache.save(sample_state)

        state = await coordinator.sign_in(EMAIL, PASSWORD)

        assert state == remote_state
        assert cache.load() == remote_state
        assert remote.save_calls == []

    async def test_empty_remote_record_still_wins(
        self, cache, remote, identity, coordinator, sample_state
    ):
        """Test an empty-but-present remote record is not overwritten."""
        user_id = await register(identity)
        remote.records[user_id] = AppState.empty()
        cache.save(sample_state)

        state = await coordinator.sign_in(EMAIL, PASSWORD)

        assert state.is_empty
        assert remote.save_calls == []

    async def test_nothing_anywhere_gives_empty(self, remote, identity, coordinator):
        """Test neither remote nor local data gives an empty state."""
        await register(identity)
        state = await coordinator.sign_in(EMAIL, PASSWORD)
        assert state.is_empty
        assert remote.save_calls == []

    async def test_remote_read_failure_falls_back_without_migrating(
        self, cache, identity, sample_state
    ):
        """Test a failed remote read uses local data and copies nothing."""
        remote = FailingRemoteStorage(fail_load=True, fail_save=False)
        coordinator = SyncCoordinator(
            local_cache=cache,
            remote_storage=remote,
            identity=identity,
            default_currency="$",
        )
        await register(identity)
        cache.save(sample_state)

        state = await coordinator.sign_in(EMAIL, PASSWORD)

        assert state == sample_state
        assert remote.save_calls == []
        assert coordinator.phase == SessionPhase.READY

    async def test_existing_session_loaded_on_start(
        self, remote, identity, coordinator, sample_state
    ):
        """Test a session restored by the provider loads the remote state."""
        session = await identity.sign_up(EMAIL, PASSWORD)
        remote.records[session.user_id] = sample_state

        state = await coordinator.start()

        assert state == sample_state
        assert coordinator.is_authenticated

    async def test_bad_credentials_leave_state_alone(self, cache, identity, coordinator, sample_state):
        """Test a failed sign-in surfaces the error and keeps local data."""
        await register(identity)
        cache.save(sample_state)
        await coordinator.start()

        with pytest.raises(IdentityError):
            await coordinator.sign_in(EMAIL, "wrong-password")

        assert coordinator.state == sample_state
        assert coordinator.phase == SessionPhase.UNAUTHENTICATED

    async def test_sign_up_loads_immediately(self, coordinator):
        """Test registering through the coordinator ends up ready."""
        state = await coordinator.sign_up(EMAIL, PASSWORD)
        assert state is not None
        assert coordinator.phase == SessionPhase.READY


class TestWriteThrough:
    """Tests for remote pushes after mutations."""

    async def test_mutation_pushed_to_remote(self, remote, identity, coordinator):
        """Test a signed-in mutation reaches the remote store."""
        user_id = await register(identity)
        await coordinator.sign_in(EMAIL, PASSWORD)

        await coordinator.add_client("Acme")
        await coordinator.drain()

        assert [c.name for c in remote.records[user_id].clients] == ["Acme"]
        assert coordinator.pending_sync_count == 0

    async def test_remote_write_failure_is_swallowed(self, cache, identity):
        """Test a failed push neither raises nor rolls back the change."""
        remote = FailingRemoteStorage(fail_load=False, fail_save=True)
        coordinator = SyncCoordinator(
            local_cache=cache,
            remote_storage=remote,
            identity=identity,
            default_currency="$",
        )
        await register(identity)
        await coordinator.sign_in(EMAIL, PASSWORD)

        state = await coordinator.add_client("Acme")
        await coordinator.drain()

        assert [c.name for c in state.clients] == ["Acme"]
        assert [c.name for c in cache.load().clients] == ["Acme"]
        assert len(remote.save_calls) == 1

    async def test_last_write_wins(self, remote, identity, coordinator):
        """Test the remote record holds whatever was pushed last."""
        user_id = await register(identity)
        await coordinator.sign_in(EMAIL, PASSWORD)

        await coordinator.add_client("First")
        await coordinator.add_client("Second")
        await coordinator.drain()

        assert [c.name for c in remote.records[user_id].clients] == ["First", "Second"]

    async def test_reset_pushes_empty_state(self, cache, remote, identity, coordinator, sample_state):
        """Test a reset while signed in empties the remote copy too."""
        user_id = await register(identity)
        remote.records[user_id] = sample_state
        await coordinator.sign_in(EMAIL, PASSWORD)

        state = await coordinator.reset()
        await coordinator.drain()

        assert state.is_empty
        assert remote.records[user_id].is_empty
        assert cache.load() is None


class TestSignOut:
    """Tests for ending a session."""

    async def test_sign_out_clears_everything(self, cache, identity, coordinator):
        """Test sign-out empties the state and removes the local cache."""
        await register(identity)
        await coordinator.sign_in(EMAIL, PASSWORD)
        await coordinator.add_client("Acme")
        await coordinator.drain()

        await coordinator.sign_out()

        assert coordinator.state.is_empty
        assert coordinator.phase == SessionPhase.UNAUTHENTICATED
        assert not coordinator.is_authenticated
        assert cache.load() is None
        assert await identity.get_current_session() is None

    async def test_session_expiry_resets_state(self, cache, identity, coordinator):
        """Test the provider ending the session clears local data."""
        await register(identity)
        await coordinator.sign_in(EMAIL, PASSWORD)
        await coordinator.add_client("Acme")

        identity.expire_session()

        assert coordinator.state.is_empty
        assert coordinator.phase == SessionPhase.UNAUTHENTICATED
        assert cache.load() is None
        await coordinator.drain()

    async def test_close_stops_listening(self, identity, coordinator):
        """Test a closed coordinator ignores provider events."""
        await register(identity)
        await coordinator.sign_in(EMAIL, PASSWORD)
        await coordinator.add_client("Acme")

        coordinator.close()
        identity.expire_session()

        assert not coordinator.state.is_empty
        await coordinator.drain()


class TestBackup:
    """Tests for export and import through the coordinator."""

    async def test_export_import_round_trip(self, cache, coordinator, sample_state):
        """Test an exported document restores the same state."""
        cache.save(sample_state)
        await coordinator.start()
        filename, content = coordinator.export_document()
        await coordinator.reset()

        state = await coordinator.import_document(content.encode("utf-8"))

        assert filename.startswith("haseela_backup_")
        assert state == sample_state
        assert cache.load() == sample_state

    async def test_invalid_import_keeps_state(self, cache, coordinator, sample_state):
        """Test a rejected import changes nothing."""
        cache.save(sample_state)
        await coordinator.start()

        with pytest.raises(InvalidDocumentError):
            await coordinator.import_document(json.dumps({"clients": "nope", "goals": []}))

        assert coordinator.state == sample_state
        assert cache.load() == sample_state

    async def test_import_pushed_when_signed_in(self, remote, identity, coordinator, sample_state):
        """Test an imported state is written through to the remote."""
        user_id = await register(identity)
        await coordinator.sign_in(EMAIL, PASSWORD)

        await coordinator.import_document(json.dumps(sample_state.to_document()))
        await coordinator.drain()

        assert remote.records[user_id] == sample_state


class TestCreateAppComponents:
    """Tests for building the coordinator from settings."""

    async def test_unconfigured_remote_runs_local_only(self, monkeypatch):
        """Test missing Google Sheets settings do not stop the app."""
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)

        coordinator = create_app_components()
        state = await coordinator.start()

        assert state.is_empty
        assert not coordinator.has_identity_provider

    async def test_memory_identity_backend(self, monkeypatch):
        """Test the memory backend wires in an identity provider."""
        monkeypatch.setenv("IDENTITY_BACKEND", "memory")
        coordinator = create_app_components(use_remote=False)
        assert coordinator.has_identity_provider


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
