from collections.abc import Sequence

from app.models.stats import TodoStatsModel
from app.models.todo import TodoModel


def project_stats(todos: Sequence[TodoModel]) -> TodoStatsModel:
    """
    Summarize a todo collection.

    Pure function of its input: same sequence, same summary. `pending` is derived, so `total == completed + pending` always holds.
    """
    total = len(todos)
    completed = sum(1 for todo in todos if todo.completed)
    return TodoStatsModel(
        completed=completed,
        pending=total - completed,
        total=total,
    )
