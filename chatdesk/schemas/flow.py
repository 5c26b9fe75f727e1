from typing import List, Optional

from pydantic import BaseModel, field_validator


class FlowCreate(BaseModel):
    name: Optional[str] = None
    triggers: List[str] = []
    response: Optional[str] = None
    isActive: bool = False
    priority: int = 0
    userId: Optional[str] = None

    @field_validator("triggers", mode="before")
    @classmethod
    def split_triggers(cls, value: object) -> object:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value or []


class FlowUpdate(BaseModel):
    flowId: Optional[str] = None
    name: Optional[str] = None
    triggers: Optional[List[str]] = None
    response: Optional[str] = None
    isActive: Optional[bool] = None
    priority: Optional[int] = None
