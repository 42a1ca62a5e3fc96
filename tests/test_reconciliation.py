# tests/test_reconciliation.py

from __future__ import annotations

import asyncio
import threading

import pytest

from taskmate.core.session import Connectivity

from .fakes import make_task


@pytest.mark.asyncio
async def test_local_tasks_are_pushed_when_remote_is_empty(engine, local_store, remote, connectivity) -> None:
    t1 = make_task("t1", "from this device")
    local_store.save("u1", [t1])

    await engine.initialize("u1")
    assert engine.tasks == (t1,)
    assert remote.fetch_calls == []

    connectivity.report(True)
    await engine.drain()

    assert remote.tasks_for("u1") == [t1]
    assert engine.session is not None and engine.session.remote_synced


@pytest.mark.asyncio
async def test_remote_tasks_replace_empty_local(engine, local_store, remote, connectivity) -> None:
    t2 = make_task("t2", "from another device")
    remote.seed("u1", [t2])
    connectivity.report(True)

    await engine.initialize("u1")
    await engine.drain()

    assert engine.tasks == (t2,)
    assert local_store.load("u1") == [t2]


@pytest.mark.asyncio
async def test_remote_wins_over_non_empty_local(engine, local_store, remote, connectivity) -> None:
    local_only = make_task("local", "never pushed")
    remote_tasks = [
        make_task("r2", "newer", created_at=200.0),
        make_task("r1", "older", created_at=100.0),
    ]
    local_store.save("u1", [local_only])
    remote.seed("u1", remote_tasks)

    await engine.initialize("u1")
    connectivity.report(True)
    await engine.drain()

    assert engine.tasks == tuple(remote_tasks)
    assert local_store.load("u1") == remote_tasks
    assert remote.push_calls == []


@pytest.mark.asyncio
async def test_both_empty_is_a_noop(engine, local_store, remote, connectivity) -> None:
    connectivity.report(True)
    await engine.initialize("u1")
    await engine.drain()

    assert engine.tasks == ()
    assert remote.fetch_calls == ["u1"]
    assert remote.push_calls == []
    assert local_store.load("u1") == []
    assert engine.session is not None and engine.session.remote_synced


@pytest.mark.asyncio
async def test_waits_for_connectivity(engine, remote, connectivity) -> None:
    await engine.initialize("u1")
    assert engine.session is not None
    assert engine.session.connectivity is Connectivity.UNKNOWN

    connectivity.report(False)
    await engine.drain()
    assert engine.session.connectivity is Connectivity.OFFLINE
    assert remote.fetch_calls == []
    assert not engine.session.remote_synced

    connectivity.report(True)
    await engine.drain()
    assert engine.session.connectivity is Connectivity.ONLINE
    assert remote.fetch_calls == ["u1"]


@pytest.mark.asyncio
async def test_guest_session_never_reconciles(engine, local_store, remote, connectivity) -> None:
    local_store.save(None, [make_task("g1")])
    connectivity.report(True)

    await engine.initialize(None)
    await engine.drain()

    assert remote.fetch_calls == []
    assert remote.push_calls == []
    assert engine.tasks == (make_task("g1"),)


@pytest.mark.asyncio
async def test_runs_at_most_once_per_session(engine, remote, connectivity) -> None:
    connectivity.report(True)
    await engine.initialize("u1")
    await engine.drain()

    await engine.initialize("u1")
    connectivity.report(False)
    connectivity.report(True)
    await engine.drain()

    assert remote.fetch_calls == ["u1"]


@pytest.mark.asyncio
async def test_failure_sets_latch_and_keeps_local_data(engine, local_store, remote, connectivity) -> None:
    t1 = make_task("t1")
    local_store.save("u1", [t1])
    remote.fail_fetch = True

    await engine.initialize("u1")
    connectivity.report(True)
    await engine.drain()

    assert engine.tasks == (t1,)
    assert engine.session is not None and engine.session.remote_synced

    # No retry storm: flapping connectivity does not fetch again this session.
    connectivity.report(False)
    connectivity.report(True)
    await engine.drain()
    assert remote.fetch_calls == ["u1"]


@pytest.mark.asyncio
async def test_push_failure_is_swallowed(engine, local_store, remote, connectivity) -> None:
    local_store.save("u1", [make_task("t1")])
    remote.fail_push = True

    await engine.initialize("u1")
    connectivity.report(True)
    await engine.drain()

    assert engine.tasks == (make_task("t1"),)
    assert engine.session is not None and engine.session.remote_synced


@pytest.mark.asyncio
async def test_new_identity_starts_a_new_session(engine, local_store, remote, connectivity) -> None:
    remote.seed("u2", [make_task("u2-task")])
    connectivity.report(True)

    await engine.initialize("u1")
    await engine.drain()
    first = engine.session

    await engine.initialize("u2")
    await engine.drain()

    assert engine.session is not first
    assert first is not None and first.ended
    assert remote.fetch_calls == ["u1", "u2"]
    assert engine.tasks == (make_task("u2-task"),)
    # The old session no longer listens to connectivity.
    assert len(connectivity.subscribers) == 1


@pytest.mark.asyncio
async def test_logout_switches_to_guest_collection(engine, local_store, connectivity) -> None:
    local_store.save("u1", [make_task("mine")])
    local_store.save(None, [make_task("guest")])

    await engine.initialize("u1")
    engine.begin_edit("mine")
    await engine.initialize(None)

    assert engine.tasks == (make_task("guest"),)
    assert engine.form.editing_id is None


@pytest.mark.asyncio
async def test_mutation_during_reconciliation_is_overwritten_by_remote_pull(
    engine, remote, reminders, connectivity
) -> None:
    """
    Known race: the remote collection fetched at reconciliation time replaces
    memory, even if the user added a task while the fetch was in flight.
    The mutation's own remote push still lands, so the task survives remotely
    and comes back on the next session.
    """
    t2 = make_task("t2", "remote")
    remote.seed("u1", [t2])
    gate = threading.Event()
    remote.fetch_gate = gate

    await engine.initialize("u1")
    connectivity.report(True)
    started = await asyncio.to_thread(remote.fetch_started.wait, 5.0)
    assert started

    during = engine.submit("added while syncing")
    assert during in engine.tasks

    gate.set()
    await engine.drain()

    assert engine.tasks == (t2,)
    assert during.id in {t.id for t in remote.tasks_for("u1")}
    assert during.id not in reminders.pending


@pytest.mark.asyncio
async def test_close_ends_session_and_flushes_writes(engine, local_store, connectivity) -> None:
    await engine.initialize("u1")
    task = engine.submit("flush me")

    await engine.close()

    assert engine.session is not None and engine.session.ended
    assert connectivity.subscribers == []
    assert local_store.load("u1") == [task]


@pytest.mark.asyncio
async def test_local_load_rearms_pending_reminders(engine, local_store, reminders, clock) -> None:
    local_store.save(
        "u1",
        [
            make_task("due", reminder_at=clock.now + 120),
            make_task("done", completed=True, reminder_at=clock.now + 120),
            make_task("past", reminder_at=clock.now - 5),
            make_task("none"),
        ],
    )

    await engine.initialize("u1")

    assert reminders.pending == {"due": clock.now + 120}


@pytest.mark.asyncio
async def test_remote_pull_rearms_pulled_and_cancels_replaced(engine, local_store, remote, reminders, connectivity, clock) -> None:
    local_store.save("u1", [make_task("local-only", reminder_at=clock.now + 60)])
    remote.seed("u1", [make_task("r1", reminder_at=clock.now + 600)])

    await engine.initialize("u1")
    assert reminders.pending == {"local-only": clock.now + 60}

    connectivity.report(True)
    await engine.drain()

    assert [t.id for t in engine.tasks] == ["r1"]
    assert reminders.pending == {"r1": clock.now + 600}


@pytest.mark.asyncio
async def test_identity_switch_cancels_previous_reminders(engine, reminders) -> None:
    await engine.initialize(None)
    guest_task = engine.submit("guest reminder")
    assert reminders.pending_ids() == {guest_task.id}

    await engine.initialize("u1")

    assert reminders.pending == {}
    assert ("cancel", guest_task.id) in reminders.events
