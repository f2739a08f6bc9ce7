from telegram import Update
from telegram.ext import CallbackContext, ApplicationHandlerStop
from logger import logger
from config import ALLOWED_USERS
from bot.messages import ACCESS_DENIED_MESSAGE


def is_user_allowed(user_id):
    """An empty ALLOWED_USERS list leaves the bot open."""
    return not ALLOWED_USERS or user_id in ALLOWED_USERS


async def authorization_middleware(update: Update, context: CallbackContext):
    """
    Pre-handler that checks the user against ALLOWED_USERS.
    """
    # Skip updates without a user
    if not update.effective_user:
        return

    user_id = update.effective_user.id

    # /my_id is available to everyone
    if update.message and update.message.text and update.message.text.startswith('/my_id'):
        return

    if not is_user_allowed(user_id):
        user_name = update.effective_user.username or update.effective_user.first_name
        logger.warning(f"Access denied: {user_id} ({user_name})")

        if update.message:
            await update.message.reply_text(
                ACCESS_DENIED_MESSAGE.format(user_id=user_id)
            )
        elif update.callback_query:
            await update.callback_query.answer("Access denied", show_alert=True)

        # Stop processing the update
        raise ApplicationHandlerStop
