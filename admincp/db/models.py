from pydantic import BaseModel


class Group(BaseModel):
    """Represents a user group."""

    id: str
    name: str


class User(BaseModel):
    """Represents a console user. ``password`` always holds the encoded form."""

    username: str
    password: str
    name: str
    group_id: str
