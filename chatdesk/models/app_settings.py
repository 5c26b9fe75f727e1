from sqlalchemy import JSON, Column, DateTime, Text

from chatdesk.database import Base


class AppSettings(Base):
    __tablename__ = "app_settings"

    id = Column(Text, primary_key=True, default="app")
    profile = Column(JSON, nullable=False, default=dict)
    notifications = Column(JSON, nullable=False, default=dict)
    security = Column(JSON, nullable=False, default=dict)
    whatsapp = Column(JSON, nullable=False, default=dict)
    automation = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime(timezone=True), nullable=False)
