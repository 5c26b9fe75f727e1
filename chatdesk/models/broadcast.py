import uuid

from sqlalchemy import JSON, Column, DateTime, Text

from chatdesk.database import Base


class Broadcast(Base):
    __tablename__ = "broadcasts"

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(Text, nullable=False)
    message = Column(Text, nullable=False)
    recipients = Column(JSON, nullable=False, default=list)  # [{phoneNumber, name}]
    status = Column(Text, nullable=False, default="draft")  # draft, scheduled, sent
    scheduled_for = Column(DateTime(timezone=True))
    sent_at = Column(DateTime(timezone=True))
    results = Column(JSON)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
