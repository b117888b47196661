# config/credentials.py

import  os
from    dotenv import load_dotenv

load_dotenv("variables.env")                                            # load variables from .env file

JWT_SECRET                  = os.getenv("JWT_SECRET")
JWT_EXPIRES_IN              = os.getenv("JWT_EXPIRES_IN", "24h")

DATABASE_URL                = os.getenv("DATABASE_URL")                 # None -> sqlite file next to database/db.py
DB_TIMEOUT                  = float(os.getenv("DB_TIMEOUT", "10"))      # seconds

ENVIRONMENT                 = os.getenv("ENVIRONMENT", "development")
API_PREFIX                  = os.getenv("API_PREFIX", "/api")
LOG_LEVEL                   = os.getenv("LOG_LEVEL", "INFO").upper()
HOST                        = os.getenv("HOST", "0.0.0.0")
PORT                        = int(os.getenv("PORT", "5000"))

# Client side (CLIs, simulator)
API_TIMEOUT                 = int(os.getenv("API_TIMEOUT", "10000"))    # milliseconds
API_RETRY_ATTEMPTS          = int(os.getenv("API_RETRY_ATTEMPTS", "3"))
HEALTH_CHECK_URL            = os.getenv("HEALTH_CHECK_URL", "http://localhost:5000")


def is_production():
    return ENVIRONMENT == "production"
