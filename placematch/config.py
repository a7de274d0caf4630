# placematch/config.py
from dotenv import load_dotenv
import os

load_dotenv()

# API Keys
MICHELIN_ALGOLIA_APP_ID = os.getenv("MICHELIN_ALGOLIA_APP_ID", "8NVHRD7ONV")
MICHELIN_ALGOLIA_API_KEY = os.getenv("MICHELIN_ALGOLIA_API_KEY", "3222e669cf890dc73fa5f38241117ba5")
MICHELIN_PROXY_URL = os.getenv("MICHELIN_PROXY_URL")

# Matching thresholds (callers pass these in; the matcher has no defaults)
PLACE_DEDUP_THRESHOLD_M = 200
CITY_ASSIGNMENT_THRESHOLD_KM = 50
CITY_TOO_FAR_MILES = 50
REVIEW_SIMILARITY_THRESHOLD = 80

# Runtime parameters
BATCH_SIZE = 50
CONCURRENCY = 10
HITS_PER_PAGE = 100
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# URLs
MICHELIN_ALGOLIA_URL = f"https://{MICHELIN_ALGOLIA_APP_ID}-dsn.algolia.net/1/indexes/*/queries"
MICHELIN_ALGOLIA_INDEX = "prod-restaurants-en"
MICHELIN_BASE_URL = "https://guide.michelin.com"

# File names
PLACES_CSV = "places.csv"
CITIES_CSV = "cities.csv"
OUTPUT_CSV = "michelin_matches.csv"
