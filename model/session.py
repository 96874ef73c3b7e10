# model/session.py
from pydantic import BaseModel, Field


class UserPreferences(BaseModel):
    preferPartNumbers: bool = False
    preferInstructions: bool = False


class ConversationContext(BaseModel):
    """
    Per-session conversation state. Created and evicted by the session
    repository; the search pipeline only reads it and returns an updated copy.
    """

    previousQueries: list[str] = Field(default_factory=list)  # newest first
    userPreferences: UserPreferences = Field(default_factory=UserPreferences)
    equipmentType: str | None = None
    lastQueryType: str | None = None
