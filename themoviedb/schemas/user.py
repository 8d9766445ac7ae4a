from pydantic import BaseModel, Field


class User(BaseModel):
    """The viewer, as identified by the bearer token"""
    id: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
