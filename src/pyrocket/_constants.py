"""Internal constants shared across the library."""

BASE_URL = "https://api.rocket.net/v1/"
CONTROL_PANEL_URL = "https://my.rocket.net"
USER_AGENT = "pyrocket"

REQUEST_TIMEOUT_S = 30.0
MAX_REDIRECTS = 10

LOGIN_ENDPOINT = "login"
SITES_ENDPOINT = "sites"
PARTNER_SITES_ENDPOINT = "partner/sites"
LOCATIONS_ENDPOINT = "locations"

DEFAULT_ACCESS_TOKEN_TTL = 400
DEFAULT_ADMIN_USERNAME = "admin"
GENERATED_PASSWORD_LENGTH = 16

# Location ids verified against the partner API (ids must be integers).
DEFAULT_LOCATION_ID = 21
DEFAULT_LOCATIONS: tuple[tuple[int, str], ...] = (
    (21, "US - Ashburn"),
    (22, "US - Phoenix"),
    (12, "US - Dallas"),
    (4, "GB-UKM - London"),
    (7, "DE - Frankfurt"),
    (8, "NL - Amsterdam"),
    (16, "AU - Sydney"),
    (20, "SG - Singapore"),
)

LOCATIONS_CACHE_TTL_S = 24 * 3600
LOCATIONS_FALLBACK_TTL_S = 3600
