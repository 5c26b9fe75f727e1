from sqlalchemy import Column, DateTime, Integer, Text

from chatdesk.database import Base


class Contact(Base):
    __tablename__ = "contacts"

    wa_id = Column(Text, primary_key=True)
    contact_name = Column(Text, nullable=False)
    profile_name = Column(Text)
    last_message = Column(Text, nullable=False, default="")
    last_message_at = Column(DateTime(timezone=True), nullable=False)
    message_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
