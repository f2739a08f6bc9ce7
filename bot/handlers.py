import io
import json
from pathlib import Path

from telegram import Update, InputFile
from telegram.ext import ContextTypes, ConversationHandler

from logger import logger
from bot.states import BotStates
from bot.keyboards import main_menu_keyboard, projects_keyboard, project_actions_keyboard, back_to_main_keyboard
from bot.messages import (
    WELCOME_MESSAGE, HELP_MESSAGE, UPLOAD_CSV_PROMPT, CYCLIC_DEPENDENCY_MESSAGE, PROJECT_NOT_FOUND_MESSAGE,
    MY_ID_MESSAGE, CSV_FORMAT_ERROR, CSV_IMPORT_SUCCESS, SNAPSHOT_SAVED_MESSAGE
)
from bot.reports import format_health_report, format_critical_path_report, format_health_history
from bot.telegram_helpers import safe_edit_message_text, truncate_message
from database.operations import (
    get_user_projects, get_project_data, load_project_snapshot, save_health_snapshot, get_health_history
)
from planning.exceptions import CyclicDependencyError, ProjectNotFoundError, ScheduleError
from planning.health import compute_health, task_statistics, HealthSettings
from planning.network import compute_critical_path, critical_path_to_dict
from planning.visualization import generate_gantt_chart
from utils.csv_import import create_project_from_csv, CsvImportError


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Sends the welcome message and the main menu."""
    message = update.message or update.callback_query.message

    if update.callback_query:
        await update.callback_query.answer()

    await message.reply_text(
        WELCOME_MESSAGE,
        reply_markup=main_menu_keyboard()
    )
    return BotStates.MAIN_MENU


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Sends the help message."""
    query = update.callback_query
    if query:
        await query.answer()
        await safe_edit_message_text(query, HELP_MESSAGE, reply_markup=back_to_main_keyboard())
    else:
        await update.message.reply_text(HELP_MESSAGE, reply_markup=back_to_main_keyboard())
    return BotStates.MAIN_MENU


async def get_my_id(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await update.message.reply_text(MY_ID_MESSAGE.format(user_id=update.effective_user.id))


async def list_projects(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Shows the project list."""
    projects = get_user_projects()
    text = "Select a project:" if projects else "No projects yet. Import a schedule from a CSV file."

    query = update.callback_query
    if query:
        await query.answer()
        await safe_edit_message_text(query, text, reply_markup=projects_keyboard(projects))
    else:
        await update.message.reply_text(text, reply_markup=projects_keyboard(projects))
    return BotStates.SELECT_PROJECT


async def select_project(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Shows the actions for the selected project."""
    query = update.callback_query
    await query.answer()

    project_id = _callback_project_id(query)
    project = get_project_data(project_id)
    if not project:
        await safe_edit_message_text(query, PROJECT_NOT_FOUND_MESSAGE.format(project_id=project_id),
                                     reply_markup=back_to_main_keyboard())
        return BotStates.MAIN_MENU

    context.user_data['current_project_id'] = project_id

    text = f"Project: {project['name']}\nTasks: {project['tasks_count']}"
    if project['budget']:
        text += f"\nBudget: {project['budget']:,.2f} {project['currency'] or ''}".rstrip()
    if project['start_date']:
        text += f"\nStart: {project['start_date'].strftime('%d.%m.%Y')}"

    await safe_edit_message_text(query, text, reply_markup=project_actions_keyboard(project_id))
    return BotStates.PROJECT_MENU


async def show_health(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Sends the schedule health report of a project."""
    query = update.callback_query
    await query.answer()

    project_id = _callback_project_id(query)
    text = build_health_text(project_id)
    await query.message.reply_text(truncate_message(text), reply_markup=project_actions_keyboard(project_id))
    return BotStates.PROJECT_MENU


async def show_critical_path(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Sends the critical path report of a project."""
    query = update.callback_query
    await query.answer()

    project_id = _callback_project_id(query)
    text = build_critical_path_text(project_id)
    await query.message.reply_text(truncate_message(text), reply_markup=project_actions_keyboard(project_id))
    return BotStates.PROJECT_MENU


async def show_gantt(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Sends the Gantt chart of a project."""
    query = update.callback_query
    await query.answer()

    project_id = _callback_project_id(query)
    project = get_project_data(project_id)
    snapshot = load_project_snapshot(project_id)
    if not project or snapshot is None:
        await query.message.reply_text(PROJECT_NOT_FOUND_MESSAGE.format(project_id=project_id))
        return BotStates.PROJECT_MENU

    try:
        result = compute_critical_path(snapshot.tasks, default_start=project['start_date'])
    except CyclicDependencyError as e:
        await query.message.reply_text(CYCLIC_DEPENDENCY_MESSAGE.format(tasks=_task_names(snapshot.tasks, e.task_ids)))
        return BotStates.PROJECT_MENU
    except ScheduleError as e:
        await query.message.reply_text(f"Unable to build the schedule: {str(e)}")
        return BotStates.PROJECT_MENU

    image = generate_gantt_chart(snapshot.tasks, result, title=project['name'])
    buffer = io.BytesIO()
    image.save(buffer, format='PNG')
    buffer.seek(0)

    await query.message.reply_photo(photo=buffer, caption=f"Gantt chart: {project['name']}",
                                    reply_markup=project_actions_keyboard(project_id))
    return BotStates.PROJECT_MENU


async def export_project_json(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Sends health and critical path data as a JSON file."""
    query = update.callback_query
    await query.answer()

    project_id = _callback_project_id(query)
    try:
        payload = build_project_payload(project_id)
    except CyclicDependencyError as e:
        await query.message.reply_text(CYCLIC_DEPENDENCY_MESSAGE.format(tasks=", ".join(map(str, e.task_ids))))
        return BotStates.PROJECT_MENU
    except ScheduleError as e:
        await query.message.reply_text(str(e))
        return BotStates.PROJECT_MENU

    data = json.dumps(payload, indent=2, ensure_ascii=False).encode('utf-8')
    await query.message.reply_document(
        document=InputFile(io.BytesIO(data), filename=f"project_{project_id}_health.json"),
        caption="Schedule health export"
    )
    return BotStates.PROJECT_MENU


async def save_snapshot(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Stores the current health for the history view."""
    query = update.callback_query
    await query.answer()

    project_id = _callback_project_id(query)
    snapshot = load_project_snapshot(project_id)
    if snapshot is None:
        await query.message.reply_text(PROJECT_NOT_FOUND_MESSAGE.format(project_id=project_id))
        return BotStates.PROJECT_MENU

    health = compute_health(snapshot, settings=HealthSettings.from_config())
    save_health_snapshot(project_id, health)
    await query.message.reply_text(SNAPSHOT_SAVED_MESSAGE.format(score=health.overall_score),
                                   reply_markup=project_actions_keyboard(project_id))
    return BotStates.PROJECT_MENU


async def show_history(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    await query.answer()

    project_id = _callback_project_id(query)
    project = get_project_data(project_id)
    if not project:
        await query.message.reply_text(PROJECT_NOT_FOUND_MESSAGE.format(project_id=project_id))
        return BotStates.PROJECT_MENU

    text = format_health_history(project['name'], get_health_history(project_id))
    await query.message.reply_text(text, reply_markup=project_actions_keyboard(project_id))
    return BotStates.PROJECT_MENU


async def health_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """/health <project id>"""
    project_id = _command_project_id(context)
    if project_id is None:
        await update.message.reply_text("Usage: /health <project id>")
        return
    await update.message.reply_text(truncate_message(build_health_text(project_id)))


async def critical_path_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """/critical_path <project id>"""
    project_id = _command_project_id(context)
    if project_id is None:
        await update.message.reply_text("Usage: /critical_path <project id>")
        return
    await update.message.reply_text(truncate_message(build_critical_path_text(project_id)))


async def upload_csv(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    await query.answer()
    await safe_edit_message_text(query, UPLOAD_CSV_PROMPT, reply_markup=back_to_main_keyboard())
    return BotStates.UPLOAD_CSV


async def process_csv(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Creates a project from an uploaded CSV file."""
    document = update.message.document
    if not document:
        await update.message.reply_text(UPLOAD_CSV_PROMPT)
        return BotStates.UPLOAD_CSV

    file = await document.get_file()
    content = bytes(await file.download_as_bytearray())
    project_name = Path(document.file_name or "Imported project").stem

    try:
        project_id = create_project_from_csv(project_name, content)
    except (CsvImportError, ScheduleError) as e:
        logger.warning(f"CSV import failed: {str(e)}")
        await update.message.reply_text(CSV_FORMAT_ERROR.format(error=str(e)), reply_markup=back_to_main_keyboard())
        return BotStates.UPLOAD_CSV

    project = get_project_data(project_id)
    await update.message.reply_text(
        CSV_IMPORT_SUCCESS.format(name=project['name'], count=project['tasks_count']),
        reply_markup=project_actions_keyboard(project_id)
    )
    return BotStates.PROJECT_MENU


async def back_to_main(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    await query.answer()
    await safe_edit_message_text(query, WELCOME_MESSAGE, reply_markup=main_menu_keyboard())
    return BotStates.MAIN_MENU


async def cancel(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Resets the dialog."""
    context.user_data.clear()
    message = update.message or update.callback_query.message
    await message.reply_text("Dialog reset.", reply_markup=main_menu_keyboard())
    return ConversationHandler.END


def build_health_text(project_id):
    """Health report text with the projected finish date."""
    project = get_project_data(project_id)
    snapshot = load_project_snapshot(project_id)
    if not project or snapshot is None:
        return PROJECT_NOT_FOUND_MESSAGE.format(project_id=project_id)

    result = None
    try:
        result = compute_critical_path(snapshot.tasks, default_start=project['start_date'])
    except CyclicDependencyError as e:
        logger.warning(f"Project {project_id}: {str(e)}")
        return CYCLIC_DEPENDENCY_MESSAGE.format(tasks=_task_names(snapshot.tasks, e.task_ids))
    except ScheduleError as e:
        # Only the projected finish needs the network
        logger.warning(f"Project {project_id}: no projected finish, {str(e)}")

    health = compute_health(snapshot, settings=HealthSettings.from_config())
    text = format_health_report(project['name'], health, task_statistics(snapshot.tasks), project['currency'] or '')
    if result and result.project_finish:
        text += f"\n\nProjected finish: {result.project_finish.strftime('%d.%m.%Y')}"
        text += f"\nCritical tasks: {len(result.critical_task_ids)} of {len(snapshot.tasks)}"
    return text


def build_critical_path_text(project_id):
    project = get_project_data(project_id)
    snapshot = load_project_snapshot(project_id)
    if not project or snapshot is None:
        return PROJECT_NOT_FOUND_MESSAGE.format(project_id=project_id)

    try:
        result = compute_critical_path(snapshot.tasks, default_start=project['start_date'])
    except CyclicDependencyError as e:
        return CYCLIC_DEPENDENCY_MESSAGE.format(tasks=_task_names(snapshot.tasks, e.task_ids))
    except ScheduleError as e:
        return f"Unable to compute the critical path: {str(e)}"

    return f"Critical path: {project['name']}\n\n" + format_critical_path_report(snapshot.tasks, result)


def build_project_payload(project_id):
    """
    JSON export of a project.

    Returns:
        Dict with 'project', 'health' and 'criticalPath'

    Raises:
        ScheduleError: unknown project or invalid schedule
    """
    project = get_project_data(project_id)
    snapshot = load_project_snapshot(project_id)
    if not project or snapshot is None:
        raise ProjectNotFoundError(project_id)

    result = compute_critical_path(snapshot.tasks, default_start=project['start_date'])
    health = compute_health(snapshot, settings=HealthSettings.from_config())

    return {
        'project': {'id': project['id'], 'name': project['name'], 'currency': project['currency']},
        'health': health.to_dict(),
        'criticalPath': critical_path_to_dict(result)
    }


def _callback_project_id(query):
    return int(query.data.rsplit('_', 1)[1])


def _command_project_id(context):
    if not context.args:
        return None
    try:
        return int(context.args[0])
    except ValueError:
        return None


def _task_names(tasks, task_ids):
    names = {task.id: task.name for task in tasks}
    return ", ".join(names.get(task_id, str(task_id)) for task_id in task_ids)
