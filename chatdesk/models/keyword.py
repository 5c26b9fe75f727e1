import uuid

from sqlalchemy import Boolean, Column, DateTime, Text

from chatdesk.database import Base


class Keyword(Base):
    __tablename__ = "keywords"

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    keyword = Column(Text, nullable=False)  # stored lowercased
    response = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
