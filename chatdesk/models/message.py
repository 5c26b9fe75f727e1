import uuid

from sqlalchemy import Column, DateTime, Index, Text

from chatdesk.database import Base


class Message(Base):
    __tablename__ = "messages"
    __table_args__ = (Index("ix_messages_wa_id_timestamp", "wa_id", "timestamp"),)

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    wa_id = Column(Text, nullable=False)
    contact_name = Column(Text)
    text = Column(Text, nullable=False, default="")
    type = Column(Text, nullable=False, default="text")
    direction = Column(Text, nullable=False)  # inbound, outbound
    phone_number_id = Column(Text)
    provider_message_id = Column(Text, unique=True)  # wamid, inbound and outbound
    original_message = Column(Text)
    reply_source = Column(Text)  # flow, custom_keyword, keyword, ai, default, manual, broadcast
    broadcast_id = Column(Text)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
