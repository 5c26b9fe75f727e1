from typing import Optional

from pydantic import BaseModel


class KeywordCreate(BaseModel):
    keyword: Optional[str] = None
    response: Optional[str] = None
    isActive: bool = True


class KeywordUpdate(BaseModel):
    keyword: Optional[str] = None
    response: Optional[str] = None
    isActive: Optional[bool] = None
