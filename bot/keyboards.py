from telegram import InlineKeyboardButton, InlineKeyboardMarkup

def main_menu_keyboard():
    """Main menu keyboard."""
    keyboard = [
        [InlineKeyboardButton("My projects", callback_data="list_projects")],
        [InlineKeyboardButton("Import schedule (CSV)", callback_data="upload_csv")],
        [InlineKeyboardButton("Help", callback_data="help")]
    ]
    return InlineKeyboardMarkup(keyboard)

def projects_keyboard(projects):
    """
    Project list keyboard.

    Args:
        projects: List of projects
    """
    keyboard = []

    for project in projects:
        keyboard.append([InlineKeyboardButton(
            f"{project['name']} ({project['tasks_count']} tasks)",
            callback_data=f"project_{project['id']}"
        )])

    keyboard.append([InlineKeyboardButton("Back", callback_data="back_to_main")])

    return InlineKeyboardMarkup(keyboard)

def project_actions_keyboard(project_id):
    """Actions available for a selected project."""
    keyboard = [
        [InlineKeyboardButton("Schedule health", callback_data=f"health_{project_id}")],
        [InlineKeyboardButton("Critical path", callback_data=f"critical_{project_id}")],
        [InlineKeyboardButton("Gantt chart", callback_data=f"gantt_{project_id}")],
        [InlineKeyboardButton("Export JSON", callback_data=f"export_{project_id}")],
        [
            InlineKeyboardButton("Save snapshot", callback_data=f"snapshot_{project_id}"),
            InlineKeyboardButton("History", callback_data=f"history_{project_id}")
        ],
        [InlineKeyboardButton("Back to projects", callback_data="list_projects")]
    ]
    return InlineKeyboardMarkup(keyboard)

def back_to_main_keyboard():
    keyboard = [[InlineKeyboardButton("Main menu", callback_data="back_to_main")]]
    return InlineKeyboardMarkup(keyboard)
