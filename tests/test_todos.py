import pytest
from pytest_assume.plugin import assume

from app.helpers.config import CONFIG
from app.helpers.todos import (
    add_todo,
    clear_completed,
    delete_todo,
    get_stats,
    list_todos,
    toggle_todo,
)
from app.models.error import TodoNotFoundError, TodoValidationError
from app.persistence.store import TodoStore
from tests.conftest import StateBackendMock


@pytest.mark.asyncio(loop_scope="session")
@pytest.mark.repeat(10)  # Random content
async def test_add(
    random_text: str,
    store: TodoStore,
) -> None:
    """
    Adding a todo appends exactly one record, with the text trimmed.
    """
    before = await list_todos(store)

    todo = await add_todo(store, f"  {random_text}\n")

    after = await list_todos(store)
    assume(len(after) == len(before) + 1)
    assume(after[:-1] == before)
    assume(after[-1].id == todo.id)
    assume(after[-1].text == random_text)
    assume(after[-1].completed is False)
    assume(after[-1].created_at is not None)
    assume(after[-1].updated_at is None)


@pytest.mark.asyncio(loop_scope="session")
@pytest.mark.parametrize(
    "text",
    [
        pytest.param(None, id="missing"),
        pytest.param("", id="empty"),
        pytest.param(" \t\n ", id="whitespace"),
    ],
)
async def test_add_invalid(
    backend: StateBackendMock,
    store: TodoStore,
    text: str | None,
) -> None:
    before = await list_todos(store)

    with pytest.raises(TodoValidationError):
        await add_todo(store, text)

    assume(await list_todos(store) == before)
    assume(backend.saves == 0)


@pytest.mark.asyncio(loop_scope="session")
async def test_toggle_twice(store: TodoStore) -> None:
    """
    Toggling flips the status once per call, twice restores it.
    """
    todos = await list_todos(store)
    target = todos[1]

    first = await toggle_todo(store, target.id)
    assume(first.completed is True)
    assume(first.updated_at is not None)
    assume(first.created_at == target.created_at)

    second = await toggle_todo(store, target.id)
    assume(second.completed is False)
    assume(second.updated_at and first.updated_at and second.updated_at >= first.updated_at)

    # Order is preserved
    assume(
        [todo.id for todo in await list_todos(store)] == [todo.id for todo in todos]
    )


@pytest.mark.asyncio(loop_scope="session")
async def test_toggle_unknown(store: TodoStore) -> None:
    with pytest.raises(TodoNotFoundError) as exc_info:
        await toggle_todo(store, "unknown")

    assert exc_info.value.todo_id == "unknown"


@pytest.mark.asyncio(loop_scope="session")
async def test_delete(store: TodoStore) -> None:
    todos = await list_todos(store)

    await delete_todo(store, todos[0].id)

    assert [todo.id for todo in await list_todos(store)] == [
        todo.id for todo in todos[1:]
    ]


@pytest.mark.asyncio(loop_scope="session")
async def test_delete_unknown(
    backend: StateBackendMock,
    store: TodoStore,
) -> None:
    """
    Deleting an unknown id fails and leaves the collection untouched.
    """
    before = await list_todos(store)

    with pytest.raises(TodoNotFoundError):
        await delete_todo(store, "unknown")

    assume(await list_todos(store) == before)
    assume(backend.saves == 0)


@pytest.mark.asyncio(loop_scope="session")
async def test_clear_completed(store: TodoStore) -> None:
    todos = await list_todos(store)
    await toggle_todo(store, todos[0].id)
    await toggle_todo(store, todos[2].id)

    deleted = await clear_completed(store)

    assume(deleted == 2)
    assume([todo.id for todo in await list_todos(store)] == [todos[1].id])
    assume(await clear_completed(store) == 0)


@pytest.mark.asyncio(loop_scope="session")
async def test_stats_metadata(
    memory_store: TodoStore,
    store: TodoStore,
) -> None:
    stats = await get_stats(store)
    assume(stats.backend_enabled is True)
    assume(stats.version == CONFIG.version)
    assume(stats.last_updated is not None)

    stats = await get_stats(memory_store)
    assume(stats.backend_enabled is False)


@pytest.mark.asyncio(loop_scope="session")
async def test_scenario(memory_store: TodoStore) -> None:
    """
    Seeded store, add then toggle, counts follow.
    """
    assume(len(await list_todos(memory_store)) == 3)

    todo = await add_todo(memory_store, "buy milk")
    todos = await list_todos(memory_store)
    assume(len(todos) == 4)
    assume(todos[-1].text == "buy milk")
    assume(todos[-1].completed is False)

    before = await get_stats(memory_store)
    toggled = await toggle_todo(memory_store, todo.id)
    after = await get_stats(memory_store)

    assume(toggled.completed is True)
    assume(after.completed == before.completed + 1)
    assume(after.pending == before.pending - 1)
    assume(after.total == before.total == 4)


@pytest.mark.asyncio(loop_scope="session")
async def test_backend_down(
    backend: StateBackendMock,
    store: TodoStore,
) -> None:
    """
    Operations keep working against the in-memory collection while the backend is down.
    """
    backend.available = False

    todo = await add_todo(store, "offline")
    await toggle_todo(store, todo.id)

    todos = await list_todos(store)
    assume(todos[-1].id == todo.id)
    assume(todos[-1].completed is True)
    assume("todos" not in backend.values)
