from enum import Enum, auto

class BotStates(Enum):
    """Dialog states of the bot."""
    MAIN_MENU = auto()
    SELECT_PROJECT = auto()
    PROJECT_MENU = auto()
    UPLOAD_CSV = auto()
