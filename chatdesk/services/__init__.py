from chatdesk.services.contact_service import get_contact, list_contacts, upsert_contact
from chatdesk.services.message_service import get_chat_history, save_message
from chatdesk.services.reply_service import ReplyDecision, resolve_reply
from chatdesk.services.whatsapp_service import send_text_message
