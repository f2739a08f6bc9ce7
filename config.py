import os
from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()

# Telegram bot token
BOT_TOKEN = os.getenv("BOT_TOKEN")

ALLOWED_USERS = [
    int(user_id) for user_id in os.getenv("ALLOWED_USERS", "").split(",") if user_id.strip()
]

# Database settings
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///schedule_health.db")

# Logging settings
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "schedule_health.log")

# Actual cost estimation when a project has no recorded costs
ACTUAL_COST_ESTIMATOR = os.getenv("ACTUAL_COST_ESTIMATOR", "progress_scaled")
ACTUAL_COST_FACTOR = float(os.getenv("ACTUAL_COST_FACTOR", "1.1"))

# Score curve: index 1.0 maps to SCORE_NEUTRAL, each 0.01 of index moves SCORE_SLOPE / 100 points
SCORE_NEUTRAL = float(os.getenv("SCORE_NEUTRAL", "75"))
SCORE_SLOPE = float(os.getenv("SCORE_SLOPE", "100"))

# Overall score weights
SCHEDULE_WEIGHT = float(os.getenv("SCHEDULE_WEIGHT", "0.5"))
COST_WEIGHT = float(os.getenv("COST_WEIGHT", "0.3"))
RESOURCE_WEIGHT = float(os.getenv("RESOURCE_WEIGHT", "0.2"))
