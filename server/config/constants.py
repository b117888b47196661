# Server Configuration
SERVER_VERSION                      = "1.0.0"

# Device Tokens
TOKEN_ALGORITHM                     = "HS256"
TOKEN_ISSUER                        = "smart-irrigation-system"
TOKEN_AUDIENCE                      = "esp32-device"
TOKEN_DEFAULT_LIFETIME              = "24h"

# Device Defaults
DEVICE_NAME_PREFIX                  = "ESP32-"
DEVICE_DEFAULT_LOCATION             = "Unknown"
DEFAULT_SYNC_INTERVAL               = 10000                             # milliseconds
DEFAULT_MAX_IRRIGATION_TIME         = 600                               # seconds
DEFAULT_IRRIGATION_DURATION         = 300                               # seconds
DEFAULT_ZONES                       = (                                 # (zone id, moisture threshold %)
    (1, 30),
    (2, 25),
    (3, 35),
)

# Query Limits
DEFAULT_LOG_LIMIT                   = 50
DEFAULT_COMMAND_LIMIT               = 20
MAX_QUERY_LIMIT                     = 1000

# API Endpoints (relative to API_PREFIX)
DEVICES_API_PREFIX                  = "/devices"
AUTHENTICATE_API_ENDPOINT           = "/authenticate"
SYNC_API_ENDPOINT                   = "/sync"
LATEST_API_ENDPOINT                 = "/{device_id}/latest"
LOGS_API_ENDPOINT                   = "/{device_id}/logs"
COMMAND_API_ENDPOINT                = "/{device_id}/command"
COMMANDS_API_ENDPOINT               = "/{device_id}/commands"
HEALTH_API_ENDPOINT                 = "/health"

# Error Messages
NO_TOKEN_MESSAGE                    = "No token provided"
INVALID_TOKEN_MESSAGE               = "Invalid token"
HIDDEN_ERROR_MESSAGE                = "Something went wrong!"
