from pydantic import BaseModel


class ErrorInnerModel(BaseModel):
    message: str
    details: list[str]


class ErrorModel(BaseModel):
    error: ErrorInnerModel


class TodoValidationError(ValueError):
    """
    Caller input breaks a todo invariant, e.g. an empty text.
    """


class TodoNotFoundError(LookupError):
    """
    No todo with the requested id exists in the current collection.
    """

    todo_id: str

    def __init__(self, todo_id: str):
        super().__init__(f"Todo {todo_id} not found")
        self.todo_id = todo_id
