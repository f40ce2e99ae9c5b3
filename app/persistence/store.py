from collections.abc import Iterable, Sequence

from pydantic import TypeAdapter, ValidationError

from app.helpers.logging import logger
from app.helpers.monitoring import (
    SpanAttributeEnum,
    counter_add,
    start_as_current_span,
    store_fallback,
)
from app.models.store import BackendUnavailableError, WriteOutcomeEnum
from app.models.todo import TodoModel
from app.persistence.istate import IStateBackend

_todos_adapter = TypeAdapter(list[TodoModel])


def sample_todos() -> list[TodoModel]:
    """
    Records a fresh deployment starts with, so the dashboard is never empty.
    """
    return [
        TodoModel(text="🎉 Welcome to Azure Container Apps Workshop!"),
        TodoModel(text="🔧 Edit this API to see live container updates"),
        TodoModel(text="🚀 Deploy your changes and watch them update in real-time"),
    ]


class TodoStore:
    """
    Owner of the todo collection.

    Reads and writes go through the external state store when one is configured, with the in-memory collection as a fallback. Backend failures never reach the caller: reads return the in-memory collection, writes report `WriteOutcomeEnum.FALLEN_BACK`.

    No lock is held between a `read` and the following `write`, concurrent read-modify-write cycles are last-writer-wins on the whole collection.
    """

    _backend: IStateBackend | None
    _fallback: list[TodoModel]
    _record_key: str

    def __init__(
        self,
        backend: IStateBackend | None = None,
        record_key: str = "todos",
        seed: Iterable[TodoModel] | None = None,
    ):
        self._backend = backend
        self._record_key = record_key
        self._fallback = _copy(sample_todos() if seed is None else seed)
        logger.info(
            "Todo store ready, backend %s, %i records in memory",
            type(backend).__name__ if backend else "disabled",
            len(self._fallback),
        )

    @property
    def backend_enabled(self) -> bool:
        return self._backend is not None

    @start_as_current_span("store_read")
    async def read(self) -> list[TodoModel]:
        """
        Get the current collection.

        The external state store is tried first. The in-memory collection is returned when the store is disabled, unreachable, returns something that is not a list of todos, or has nothing stored yet.

        Returned records are copies, mutating them does not change the store.
        """
        if not self._backend:
            return _copy(self._fallback)

        try:
            raw = await self._backend.get(self._record_key)
        except BackendUnavailableError as e:
            logger.warning("State store read failed, using in-memory: %s", e)
            return _copy(self._fallback)

        # First run, nothing persisted yet
        if raw is None:
            logger.debug("Nothing stored under %s, using in-memory", self._record_key)
            return _copy(self._fallback)

        try:
            todos = _todos_adapter.validate_python(raw)
        except ValidationError as e:
            logger.warning("Malformed state store value, using in-memory: %s", e.errors())
            return _copy(self._fallback)

        # Ids must be unique, toggle and delete address records by id
        if len({todo.id for todo in todos}) != len(todos):
            logger.warning("Duplicate ids in state store value, using in-memory")
            return _copy(self._fallback)

        return todos

    @start_as_current_span("store_write")
    async def write(self, todos: Sequence[TodoModel]) -> WriteOutcomeEnum:
        """
        Replace the whole collection.

        The in-memory collection is always updated, so in-process reads stay consistent whatever the external state store does.

        Returns `WriteOutcomeEnum.PERSISTED` if the external state store saved the collection, `WriteOutcomeEnum.FALLEN_BACK` otherwise. The outcome is informative, the write itself never fails.
        """
        self._fallback = _copy(todos)

        outcome = WriteOutcomeEnum.FALLEN_BACK
        if self._backend:
            try:
                await self._backend.save(
                    key=self._record_key,
                    value=_todos_adapter.dump_python(
                        self._fallback,
                        by_alias=True,
                        exclude_none=True,
                        mode="json",
                    ),
                )
                outcome = WriteOutcomeEnum.PERSISTED
                logger.debug("Saved %i todos to the state store", len(todos))
            except BackendUnavailableError as e:
                logger.warning("State store write failed, kept in-memory: %s", e)

        # Enrich span
        SpanAttributeEnum.STORE_OUTCOME.attribute(outcome.value)

        if self._backend and outcome == WriteOutcomeEnum.FALLEN_BACK:
            counter_add(store_fallback, 1)

        return outcome


def _copy(todos: Iterable[TodoModel]) -> list[TodoModel]:
    return [todo.model_copy() for todo in todos]
