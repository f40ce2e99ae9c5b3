from pydantic import BaseModel


class ApiModel(BaseModel):
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:80",
    ]
