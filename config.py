import os

from dotenv import load_dotenv

# ============================================================
# ENVIRONMENT
# ============================================================

# Load the .env file before anything reads os.environ
load_dotenv()

# ============================================================
# DATA FILES (CSV-backed goal data source)
# ============================================================
GOALS_FILE = os.environ.get("GOALS_FILE", "goals.csv")
ALLOCATIONS_FILE = os.environ.get("ALLOCATIONS_FILE", "goal_allocations.csv")
VALUATIONS_FILE = os.environ.get("VALUATIONS_FILE", "account_valuations.csv")

# ============================================================
# VALUATION SERVICE (optional HTTP collaborator)
# ============================================================
VALUATION_API_URL = os.environ.get("VALUATION_API_URL")
VALUATION_API_KEY = os.environ.get("VALUATION_API_KEY")

API_TIMEOUT_SECONDS = float(os.environ.get("API_TIMEOUT_SECONDS", "10"))
API_MAX_ATTEMPTS = 3

# Upper bound on concurrent per-account valuation requests
MAX_FETCH_WORKERS = int(os.environ.get("MAX_FETCH_WORKERS", "8"))

if not VALUATION_API_URL:
    print("⚠️ WARNING: VALUATION_API_URL not set. Using CSV valuation files.")

# ============================================================
# GOAL ENGINE PARAMETERS
# ============================================================
TIME_PERIODS = ("weeks", "months", "years", "all")
DEFAULT_TIME_PERIOD = "months"

# Periods shown before / after today for each windowed view
DISPLAY_COUNTS = {
    "weeks": (12, 12),
    "months": (12, 12),
    "years": (3, 5),
}

# Gaps up to this many days between the last grid point and the due date
# are drawn as a straight segment
INTERPOLATION_MAX_GAP_DAYS = 2

# Extra history requested past the due date
FETCH_BUFFER_YEARS = 1

# Goals without a start (due) date start one year ago (end one year ahead)
DEFAULT_GOAL_SPAN_YEARS = 1

DAYS_PER_YEAR = 365
DAYS_PER_MONTH = 30

# ============================================================
# GLOBAL COLOR PALETTE
# ============================================================
GLOBAL_PALETTE = [
    "#4C6A92",  # steel blue
    "#8C9CB1",  # soft gray-blue
    "#C0504D",  # muted red
    "#D79E9C",  # soft red-gray
    "#9BBB59",  # olive green
    "#C5D6A4",  # light olive
    "#8064A2",  # muted purple
    "#B1A0C7",  # lavender gray
    "#4F81BD",  # corporate blue
    "#A5B5CF",  # cool gray-blue
    "#F2C200",  # muted gold (accent)
    "#D6B656",  # soft gold-gray
]

PROJECTED_COLOR = GLOBAL_PALETTE[1]
ACTUAL_ON_TRACK_COLOR = GLOBAL_PALETTE[4]
ACTUAL_OFF_TRACK_COLOR = GLOBAL_PALETTE[2]
