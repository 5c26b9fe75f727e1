from chatdesk.models.app_settings import AppSettings
from chatdesk.models.broadcast import Broadcast
from chatdesk.models.contact import Contact
from chatdesk.models.flow import Flow
from chatdesk.models.keyword import Keyword
from chatdesk.models.message import Message

__all__ = [
    "AppSettings",
    "Broadcast",
    "Contact",
    "Flow",
    "Keyword",
    "Message",
]
