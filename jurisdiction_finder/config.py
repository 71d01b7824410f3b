# jurisdiction_finder/config.py
from dotenv import load_dotenv
import os

load_dotenv()

# API Keys
PERPLEXITY_API_KEY = os.getenv("PERPLEXITY_API_KEY")
SUPABASE_URL = os.getenv("SUPABASE_URL") or os.getenv("NEXT_PUBLIC_SUPABASE_URL")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY") or os.getenv("NEXT_PUBLIC_SUPABASE_ANON_KEY")

# Google Sheets export
GOOGLE_SHEETS_SPREADSHEET_ID = os.getenv("GOOGLE_SHEETS_SPREADSHEET_ID")
GOOGLE_SHEETS_CLIENT_EMAIL = os.getenv("GOOGLE_SHEETS_CLIENT_EMAIL")
GOOGLE_SHEETS_PRIVATE_KEY = os.getenv("GOOGLE_SHEETS_PRIVATE_KEY")
GOOGLE_SHEETS_RANGE = "A:H"

# Runtime parameters
PERPLEXITY_MODEL = os.getenv("PERPLEXITY_MODEL", "sonar-pro")
AI_REQUEST_TIMEOUT = float(os.getenv("AI_REQUEST_TIMEOUT", "60"))
CONCURRENCY = 20
BATCH_SIZE = 5
HISTORY_LIMIT = 100
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))

# URLs
PERPLEXITY_BASE_URL = os.getenv("PERPLEXITY_BASE_URL", "https://api.perplexity.ai")

# Tables
HISTORY_TABLE = "search_history"

# File names
INPUT_CSV = "municipalities.csv"
OUTPUT_CSV = "jurisdictions.csv"
