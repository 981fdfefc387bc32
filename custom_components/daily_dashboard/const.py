"""Constants for Daily Dashboard."""

DOMAIN = "daily_dashboard"

PLATFORMS = ["sensor", "binary_sensor", "text", "button"]

VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Configuration keys
# ---------------------------------------------------------------------------
CONF_NAME = "name"
CONF_PREFIX = "prefix"
CONF_WEATHER_API_KEY = "weather_api_key"
CONF_SHARE_LOCATION = "share_location"  # geolocation permission
CONF_LATITUDE = "latitude"
CONF_LONGITUDE = "longitude"
CONF_NAMEDAY_COUNTRY = "nameday_country"

# Environment fallback for the weather key
ENV_WEATHER_API_KEY = "WEATHERAPI_KEY"

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_NAME = "Daily Dashboard"
DEFAULT_PREFIX = "dash"
DEFAULT_SHARE_LOCATION = True
DEFAULT_NAMEDAY_COUNTRY = "sk"

NAMEDAY_COUNTRY_OPTIONS = [
    "at", "bg", "cz", "de", "dk", "ee", "es", "fi", "fr", "gr",
    "hr", "hu", "it", "lt", "lv", "pl", "ru", "se", "sk", "us",
]

CONFIG_VERSION = 1

# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------
STORAGE_KEY = f"{DOMAIN}.session"
STORAGE_VERSION = 1
DISPLAY_NAME_MAX_LEN = 10

# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------
TICK_INTERVAL_S = 60
SPLASH_DURATION_S = 2
REQUEST_TIMEOUT_S = 20

# ---------------------------------------------------------------------------
# External endpoints
# ---------------------------------------------------------------------------
URL_TIMEZONE = "https://worldtimeapi.org/api/ip"
URL_QUOTE = "https://api.quotable.io/random"
URL_NAMEDAY = "https://nameday.abalin.net/api/V1/today"
URL_WEATHER = "https://api.weatherapi.com/v1/current.json"
URL_REVERSE_GEOCODE = "https://api.bigdatacloud.net/data/reverse-geocode-client"

UNKNOWN_AUTHOR = "Unknown author"

# ---------------------------------------------------------------------------
# Part of day
# ---------------------------------------------------------------------------
PART_MORNING = "morning"
PART_AFTERNOON = "afternoon"
PART_EVENING = "evening"

PART_OF_DAY_OPTIONS = [PART_MORNING, PART_AFTERNOON, PART_EVENING]

GREETINGS = {
    PART_MORNING: "Good Morning",
    PART_AFTERNOON: "Good Afternoon",
    PART_EVENING: "Good Evening",
}

BACKGROUND_IMAGES = {
    PART_MORNING: "sunrise.jpg",
    PART_AFTERNOON: "afternoon.jpg",
    PART_EVENING: "evening.jpg",
}

PART_OF_DAY_ICONS = {
    PART_MORNING: "mdi:weather-sunset-up",
    PART_AFTERNOON: "mdi:white-balance-sunny",
    PART_EVENING: "mdi:weather-night",
}

# ---------------------------------------------------------------------------
# Dashboard state keys
# ---------------------------------------------------------------------------
KEY_TIME_LABEL = "time_label"
KEY_PART_OF_DAY = "part_of_day"
KEY_GREETING = "greeting"
KEY_BACKGROUND_IMAGE = "background_image"

KEY_DATE = "date"
KEY_WEEKDAY = "weekday"
KEY_MONTH = "month"

KEY_TZ_ABBREVIATION = "timezone_abbreviation"
KEY_TZ_REGION = "timezone_region"
KEY_DAY_OF_YEAR = "day_of_year"

KEY_QUOTE_AUTHOR = "quote_author"
KEY_QUOTE_CONTENT = "quote_content"

KEY_NAMEDAY = "nameday"

KEY_WEATHER_TEMP_C = "weather_temp_c"
KEY_WEATHER_TEMP_F = "weather_temp_f"
KEY_WEATHER_CONDITION = "weather_condition"
KEY_WEATHER_ICON = "weather_icon"
KEY_PLACE_CITY = "place_city"
KEY_PLACE_COUNTRY = "place_country"

KEY_DISPLAY_NAME = "display_name"
KEY_LOADING = "loading"

# Derived at render time, never stored
KEY_LOCATION_LABEL = "location_label"
KEY_LOGGED_IN = "logged_in"

# Keys committed together by the geo-weather fetch
WEATHER_PAIR_KEYS = (
    KEY_WEATHER_TEMP_C,
    KEY_WEATHER_TEMP_F,
    KEY_WEATHER_CONDITION,
    KEY_WEATHER_ICON,
    KEY_PLACE_CITY,
    KEY_PLACE_COUNTRY,
)

# Home Assistant caps entity state strings at 255 characters
MAX_STATE_LEN = 255
