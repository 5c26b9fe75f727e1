import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, Text

from chatdesk.database import Base


class Flow(Base):
    __tablename__ = "flows"

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(Text, nullable=False)
    triggers = Column(JSON, nullable=False, default=list)
    response = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=False)
    priority = Column(Integer, nullable=False, default=0)
    user_id = Column(Text, nullable=False, default="default")
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
