#!/usr/bin/env python3
"""
Environment Variables Validation Script
Usage: python validate_env.py
"""

import  os
import  sys

from    config          import credentials                            # loads variables.env

REQUIRED_VARS = [
    "JWT_SECRET",
]

OPTIONAL_VARS = [
    "JWT_EXPIRES_IN",
    "DATABASE_URL",
    "DB_TIMEOUT",
    "ENVIRONMENT",
    "API_PREFIX",
    "LOG_LEVEL",
    "HOST",
    "PORT",
    "API_TIMEOUT",
    "API_RETRY_ATTEMPTS",
    "SIMULATOR_DEVICE_ID",
    "SIMULATOR_SERVER_URL",
    "SIMULATOR_SYNC_INTERVAL",
    "HEALTH_CHECK_URL",
]

SENSITIVE_MARKERS   = ("SECRET", "PASSWORD", "DATABASE_URL")
DEFAULT_SECRET      = "your_super_secret_jwt_key_here_change_this_in_production"
MIN_SECRET_LENGTH   = 32


def mask(name, value):
    if any(marker in name for marker in SENSITIVE_MARKERS):
        return value[:10] + "..."
    return value


def validate(environ=None):
    """Print a report for ``environ`` and return the list of problems found."""
    environ = os.environ if environ is None else environ
    problems = []

    print("🔍 Smart Irrigation Server - Environment Validation")
    print("=" * 60)

    print("\n📋 Required Environment Variables:")
    for name in REQUIRED_VARS:
        value = environ.get(name)
        if not value:
            print(f"❌ {name}: NOT SET")
            problems.append(f"{name} is not set")
        elif "<" in value and ">" in value:
            print(f"⚠️  {name}: Contains placeholder values")
            problems.append(f"{name} contains a placeholder")
        else:
            print(f"✅ {name}: {mask(name, value)}")

    print("\n📝 Optional Environment Variables:")
    for name in OPTIONAL_VARS:
        value = environ.get(name)
        if value:
            print(f"✅ {name}: {mask(name, value)}")
        else:
            print(f"⚪ {name}: Using default")

    environment = environ.get("ENVIRONMENT", "development")
    secret = environ.get("JWT_SECRET")
    if secret:
        print("\n🔐 JWT Configuration:")
        if secret == DEFAULT_SECRET:
            print("⚠️  Using default JWT secret - CHANGE THIS IN PRODUCTION!")
            if environment == "production":
                problems.append("default JWT secret used in production")
        elif len(secret) < MIN_SECRET_LENGTH:
            print(f"⚠️  JWT secret is too short (recommended: {MIN_SECRET_LENGTH}+ characters)")
        else:
            print("✅ JWT secret is properly configured")

    database_url = environ.get("DATABASE_URL")
    if database_url and "://" not in database_url:
        print("\n❌ DATABASE_URL is not a valid SQLAlchemy URL")
        problems.append("DATABASE_URL is malformed")

    print(f"\n🌍 ENVIRONMENT: {environment}")

    print("\n" + "=" * 60)
    if problems:
        print("❌ Environment validation FAILED")
        for problem in problems:
            print(f"   - {problem}")
    else:
        print("✅ Environment validation PASSED")
    return problems


def main():
    return 1 if validate() else 0


if __name__ == "__main__":
    sys.exit(main())
