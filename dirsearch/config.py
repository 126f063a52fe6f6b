"""Configuration module: environment variables and constants."""

import os
from pathlib import Path

from dotenv import load_dotenv

# .env lives at the project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# --- Supabase ---
# Checked when the client is first created so that imports never need credentials.
SUPABASE_URL: str = os.environ.get("SUPABASE_URL", "")
SUPABASE_SECRET_KEY: str = os.environ.get("SUPABASE_SECRET_KEY", "")
SUPABASE_SCHEMA: str = os.environ.get("SUPABASE_SCHEMA", "public")

# --- Tables ---
PRODUCTS_TABLE = "products"
VENDORS_TABLE = "vendors"
STATES_TABLE = "states"
CITIES_TABLE = "cities"
MICRO_CATEGORIES_TABLE = "micro_categories"
SUB_CATEGORIES_TABLE = "sub_categories"
HEAD_CATEGORIES_TABLE = "head_categories"
PLANS_TABLE = "vendor_plans"
# The second name is a legacy misspelling still present in older deployments.
SUBSCRIPTION_TABLES = ("vendor_plan_subscriptions", "vendor_plan_subcriptions")

# --- Search ---
ACTIVE_STATUS = "ACTIVE"
RESULT_LIMIT = 300

# --- Auto-correct ---
CATEGORY_CANDIDATE_LIMIT = 800
PRODUCT_CANDIDATE_LIMIT = 900
MIN_CORRECTABLE_LENGTH = 4
MIN_TOKEN_LENGTH = 3
MAX_TOKENS = 4
AUTOCORRECT_WORKERS = int(os.environ.get("AUTOCORRECT_WORKERS", "4"))

# --- Location cache ---
LOCATION_CACHE_TTL_SECONDS = float(os.environ.get("LOCATION_CACHE_TTL_SECONDS", "300"))

# --- Logging ---
LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
LOG_DIR.mkdir(exist_ok=True)
