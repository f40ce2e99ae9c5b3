from app.helpers.config import CONFIG
from app.helpers.logging import logger
from app.helpers.monitoring import SpanAttributeEnum, start_as_current_span
from app.helpers.stats import project_stats
from app.models.error import TodoNotFoundError, TodoValidationError
from app.models.stats import StatsModel
from app.models.todo import TodoModel
from app.persistence.store import TodoStore


@start_as_current_span("todos_list")
async def list_todos(store: TodoStore) -> list[TodoModel]:
    return await store.read()


@start_as_current_span("todos_add")
async def add_todo(store: TodoStore, text: str | None) -> TodoModel:
    """
    Append a new todo, with the text trimmed.

    Raises `TodoValidationError` if the text is missing or blank.
    """
    text = (text or "").strip()
    if not text:
        raise TodoValidationError("Todo text is required")

    todo = TodoModel(text=text)
    SpanAttributeEnum.TODO_ID.attribute(todo.id)

    todos = await store.read()
    await store.write([*todos, todo])
    logger.info("Added todo %s", todo.id)
    return todo


@start_as_current_span("todos_toggle")
async def toggle_todo(store: TodoStore, todo_id: str) -> TodoModel:
    """
    Flip the completion status of a todo, in place.

    Raises `TodoNotFoundError` if the id is unknown.
    """
    SpanAttributeEnum.TODO_ID.attribute(todo_id)

    todos = await store.read()
    todo = next((todo for todo in todos if todo.id == todo_id), None)
    if todo is None:
        raise TodoNotFoundError(todo_id)

    todo.toggle()
    await store.write(todos)
    logger.info("Toggled todo %s to completed=%s", todo.id, todo.completed)
    return todo


@start_as_current_span("todos_delete")
async def delete_todo(store: TodoStore, todo_id: str) -> None:
    """
    Remove a todo.

    Raises `TodoNotFoundError` if the id is unknown, in which case nothing is written.
    """
    SpanAttributeEnum.TODO_ID.attribute(todo_id)

    todos = await store.read()
    remaining = [todo for todo in todos if todo.id != todo_id]
    if len(remaining) == len(todos):
        raise TodoNotFoundError(todo_id)

    await store.write(remaining)
    logger.info("Deleted todo %s", todo_id)


@start_as_current_span("todos_clear_completed")
async def clear_completed(store: TodoStore) -> int:
    """
    Delete every completed todo, one by one.

    A todo already removed by someone else in the meantime is skipped. Returns the number of todos this call removed.
    """
    deleted = 0
    for todo in await store.read():
        if not todo.completed:
            continue
        try:
            await delete_todo(store, todo.id)
            deleted += 1
        except TodoNotFoundError:
            logger.debug("Todo %s already deleted", todo.id)
    return deleted


@start_as_current_span("todos_stats")
async def get_stats(store: TodoStore) -> StatsModel:
    stats = project_stats(await store.read())
    return StatsModel(
        **stats.model_dump(),
        backend_enabled=store.backend_enabled,
        version=CONFIG.version,
    )
