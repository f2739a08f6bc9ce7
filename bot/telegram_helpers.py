# bot/telegram_helpers.py
import logging
import telegram

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 4096


async def safe_edit_message_text(query, text, reply_markup=None, parse_mode=None):
    """
    Edits a message text, ignoring the "Message is not modified" error.

    Args:
        query: The callback query containing the message to edit
        text: The new text for the message
        reply_markup: Optional inline keyboard markup
        parse_mode: Optional parse mode for formatting (e.g., 'Markdown', 'HTML')

    Returns:
        True if the message was edited, False if it already had this content
    """
    try:
        await query.edit_message_text(
            text=truncate_message(text),
            reply_markup=reply_markup,
            parse_mode=parse_mode
        )
        return True
    except telegram.error.BadRequest as e:
        if "Message is not modified" in str(e):
            logger.debug("Message is already showing the desired content, skipping edit")
            return False
        logger.error(f"Error editing message: {str(e)}")
        raise


def truncate_message(text, limit=MAX_MESSAGE_LENGTH):
    """Cuts text to the Telegram message limit."""
    if len(text) <= limit:
        return text
    return text[:limit - 4] + "\n..."
