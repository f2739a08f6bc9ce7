# main.py
from bot.middleware import authorization_middleware
from logger import logger
from telegram import Update
from telegram.ext import (
    CommandHandler,
    MessageHandler,
    TypeHandler,
    filters,
    CallbackQueryHandler,
    ConversationHandler,
    Application,
    ContextTypes
)
from bot.handlers import (
    start, help_command, get_my_id, list_projects, select_project, show_health, show_critical_path,
    show_gantt, export_project_json, save_snapshot, show_history, health_command, critical_path_command,
    upload_csv, process_csv, back_to_main, cancel
)
from bot.states import BotStates
from config import BOT_TOKEN
from database.operations import init_db
from bot.keyboards import main_menu_keyboard
from bot.messages import ERROR_MESSAGE


def project_menu_handlers():
    return [
        CallbackQueryHandler(select_project, pattern=r'^project_\d+$'),
        CallbackQueryHandler(show_health, pattern=r'^health_\d+$'),
        CallbackQueryHandler(show_critical_path, pattern=r'^critical_\d+$'),
        CallbackQueryHandler(show_gantt, pattern=r'^gantt_\d+$'),
        CallbackQueryHandler(export_project_json, pattern=r'^export_\d+$'),
        CallbackQueryHandler(save_snapshot, pattern=r'^snapshot_\d+$'),
        CallbackQueryHandler(show_history, pattern=r'^history_\d+$'),
        CallbackQueryHandler(list_projects, pattern='^list_projects$'),
        CallbackQueryHandler(back_to_main, pattern='^back_to_main$'),
        CommandHandler('cancel', cancel)
    ]


def main():
    """Starts the bot."""
    logger.info("Starting bot...")

    init_db()
    logger.info("Database initialized")

    application = Application.builder().token(BOT_TOKEN).build()

    # Authorization runs before every other handler group
    application.add_handler(TypeHandler(Update, authorization_middleware), group=-999)

    async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        logger.error(f"Error while handling an update: {context.error}")
        try:
            if isinstance(update, Update) and update.effective_message:
                await update.effective_message.reply_text(ERROR_MESSAGE, reply_markup=main_menu_keyboard())
        except Exception as e:
            logger.error(f"Failed to send the error message: {str(e)}")

    application.add_error_handler(error_handler)

    conv_handler = ConversationHandler(
        entry_points=[
            CommandHandler('start', start),
            CallbackQueryHandler(list_projects, pattern='^list_projects$')
        ],
        states={
            BotStates.MAIN_MENU: [
                CallbackQueryHandler(list_projects, pattern='^list_projects$'),
                CallbackQueryHandler(upload_csv, pattern='^upload_csv$'),
                CallbackQueryHandler(help_command, pattern='^help$'),
                CallbackQueryHandler(back_to_main, pattern='^back_to_main$'),
                CommandHandler('cancel', cancel)
            ],
            BotStates.SELECT_PROJECT: project_menu_handlers(),
            BotStates.PROJECT_MENU: project_menu_handlers(),
            BotStates.UPLOAD_CSV: [
                MessageHandler(filters.Document.ALL, process_csv),
                MessageHandler(filters.TEXT & ~filters.COMMAND, process_csv),
                CallbackQueryHandler(back_to_main, pattern='^back_to_main$'),
                CommandHandler('cancel', cancel)
            ]
        },
        fallbacks=[CommandHandler('cancel', cancel)],
        name="conversation_handler",
        persistent=False,
        allow_reentry=True
    )
    application.add_handler(conv_handler)

    application.add_handler(CommandHandler('help', help_command))
    application.add_handler(CommandHandler('my_id', get_my_id))
    application.add_handler(CommandHandler('projects', list_projects))
    application.add_handler(CommandHandler('health', health_command))
    application.add_handler(CommandHandler('critical_path', critical_path_command))

    logger.info("Bot is running")
    application.run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == '__main__':
    main()
