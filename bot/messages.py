WELCOME_MESSAGE = (
    "Schedule health bot.\n\n"
    "I compute the critical path and Earned Value health of your construction projects.\n"
    "Choose an action:"
)

HELP_MESSAGE = (
    "Commands:\n"
    "/start - main menu\n"
    "/projects - list projects\n"
    "/health <project id> - schedule health and EVM metrics\n"
    "/critical_path <project id> - critical path and float\n"
    "/my_id - show your Telegram ID\n"
    "/cancel - reset the dialog\n\n"
    "Health scores: 80+ Excellent, 60+ Good, 40+ Fair, 20+ Poor, below 20 Critical.\n"
    "SPI and CPI above 1.0 are favorable."
)

UPLOAD_CSV_PROMPT = (
    "Send a CSV file with the project schedule.\n\n"
    "Columns: name,duration,start_date,end_date,progress,predecessors\n"
    "Dates as YYYY-MM-DD, predecessors as a comma-separated list of task names.\n"
    "The file name becomes the project name."
)

CYCLIC_DEPENDENCY_MESSAGE = (
    "Unable to compute schedule health: cyclic dependency detected.\n"
    "Tasks involved: {tasks}\n"
    "Please fix the task dependencies."
)

EMPTY_PROJECT_MESSAGE = "Project '{name}' has no tasks yet. Import a schedule to see its health."

PROJECT_NOT_FOUND_MESSAGE = "Project {project_id} not found."

ACCESS_DENIED_MESSAGE = (
    "Access denied.\n"
    "Your Telegram ID: {user_id}\n"
    "Ask an administrator to add it to ALLOWED_USERS."
)

MY_ID_MESSAGE = "Your Telegram ID: {user_id}"

CSV_FORMAT_ERROR = "Could not import the CSV file: {error}"

CSV_IMPORT_SUCCESS = "Project '{name}' created with {count} tasks."

SNAPSHOT_SAVED_MESSAGE = "Health snapshot saved (overall score {score})."

ERROR_MESSAGE = "An error occurred. Use /cancel to reset the dialog."
