# tests/test_commands.py

from __future__ import annotations

import pytest

from taskmate.cli.commands import CommandRegistry, registry


@pytest.mark.asyncio
async def test_command_registry_routes_sync_async_and_emit_handlers(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0, "async": 0}
    notes: list[str] = []

    def h2(state, args):
        called["h2"] += 1
        return "h2:" + ",".join(args)

    def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    async def ha(state, args):
        called["async"] += 1
        return "async"

    reg.register("a", h2, "a", aliases=["aa"])
    reg.register("b", h3, "b")
    reg.register("c", ha, "c")

    assert await reg.handle(state, "/a x y") == "h2:x,y"
    assert await reg.handle(state, "/AA") == "h2:"
    assert await reg.handle(state, "/b", emit=notes.append) == "h3"
    assert await reg.handle(state, "/c") == "async"
    assert called == {"h2": 2, "h3": 1, "async": 1}
    assert notes == ["note"]


@pytest.mark.asyncio
async def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert await reg.handle(state, "hello") is None
    assert "Unknown command" in (await reg.handle(state, "/nope") or "")
    assert "Empty command" in (await reg.handle(state, "/") or "")


@pytest.mark.asyncio
async def test_add_list_edit_flow(state) -> None:
    await state.engine.initialize(None)

    reply = await registry.handle(state, "/add Buy milk | 2 bottles")
    assert reply is not None and reply.startswith("Added task")

    listing = await registry.handle(state, "/list")
    assert listing is not None
    assert "Buy milk" in listing and "2 bottles" in listing

    reply = await registry.handle(state, "/edit 1")
    assert reply is not None and "Editing task" in reply
    assert state.engine.form.is_editing

    reply = await registry.handle(state, "/add Buy oat milk")
    assert reply is not None and reply.startswith("Updated task")
    assert [t.title for t in state.engine.tasks] == ["Buy oat milk"]
    assert state.engine.tasks[0].description == "2 bottles"

    await registry.handle(state, "/edit 1")
    await registry.handle(state, "/add Buy oat milk |")
    assert state.engine.tasks[0].description is None


@pytest.mark.asyncio
async def test_add_without_title_reports_validation_error(state) -> None:
    await state.engine.initialize(None)

    reply = await registry.handle(state, "/add | only description")

    assert reply is not None and reply.startswith("Not saved")
    assert state.engine.tasks == ()


@pytest.mark.asyncio
async def test_done_and_delete_by_position_or_id(state) -> None:
    await state.engine.initialize(None)
    await registry.handle(state, "/add first")
    task_id = state.engine.tasks[0].id

    assert "completed" in (await registry.handle(state, "/done 1") or "")
    assert state.engine.tasks[0].completed

    assert "Cannot edit" in (await registry.handle(state, f"/edit {task_id}") or "")

    assert "open" in (await registry.handle(state, f"/toggle {task_id}") or "")
    assert not state.engine.tasks[0].completed

    assert "No task" in (await registry.handle(state, "/del 7") or "")
    assert f"Deleted task {task_id}" == await registry.handle(state, "/rm 1")
    assert state.engine.tasks == ()


@pytest.mark.asyncio
async def test_cancel_edit(state) -> None:
    await state.engine.initialize(None)
    assert await registry.handle(state, "/cancel") == "Nothing is being edited."

    await registry.handle(state, "/add something")
    await registry.handle(state, "/edit 1")
    assert await registry.handle(state, "/cancel") == "Edit cancelled."
    assert not state.engine.form.is_editing


@pytest.mark.asyncio
async def test_login_logout_and_status(state, remote, connectivity) -> None:
    await state.engine.initialize(None)
    assert await registry.handle(state, "/logout") == "Not signed in."

    notes: list[str] = []
    reply = await registry.handle(state, "/login alice", emit=notes.append)
    assert reply is not None and reply.startswith("Signed in as alice")
    assert notes and "alice" in notes[0]

    connectivity.report(True)
    await state.engine.drain()

    status = await registry.handle(state, "/status")
    assert status is not None
    assert "User: alice" in status
    assert "Connectivity: online" in status
    assert "Remote synced: yes" in status
    assert remote.fetch_calls == ["alice"]

    assert await registry.handle(state, "/logout") == "Signed out. Using the guest task list."
    assert state.engine.session is not None and state.engine.session.user_id is None


@pytest.mark.asyncio
async def test_help_lists_commands(state) -> None:
    text = await registry.handle(state, "/help") or ""
    for name in ("add", "edit", "done", "del", "login", "status"):
        assert f"/{name}" in text
