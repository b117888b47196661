#!/usr/bin/env python3
"""
Device Token Generator for the Smart Irrigation Server
Usage: python generate_token.py [device_id] [expires_in]
"""

import  sys
import  secrets
import  argparse
from    datetime        import datetime, timezone

from    config          import credentials
from    app.auth        import CredentialIssuer, parse_duration
from    app.errors      import AuthError


def build_parser():
    parser = argparse.ArgumentParser(description="Issue a signed device token")
    parser.add_argument("device_id", nargs="?", default="ESP32-001", help="device identifier")
    parser.add_argument("expires_in", nargs="?", default="24h", help="lifetime, e.g. 24h, 30m, 3600")
    return parser


def resolve_secret():
    if credentials.JWT_SECRET:
        return credentials.JWT_SECRET
    secret = secrets.token_hex(64)
    print("⚠️  JWT_SECRET not found in environment, generating temporary secret...")
    print(f"🔑 Temporary JWT Secret: {secret}")
    print("💡 Add this to variables.env as JWT_SECRET for consistency\n")
    return secret


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        lifetime = parse_duration(args.expires_in)
    except ValueError as e:
        print(f"❌ {e}")
        return 1

    issuer = CredentialIssuer(resolve_secret(), lifetime)
    token = issuer.issue(args.device_id)

    try:
        claims = issuer.decode(token)
    except AuthError as e:
        print(f"❌ Token verification failed: {e.kind.value}")
        return 1

    print("🔐 Device Token Generator - Smart Irrigation Server")
    print("=" * 60)
    print(f"📱 Device ID:  {claims['deviceId']}")
    print(f"⏰ Issued At:  {datetime.fromtimestamp(claims['iat'], timezone.utc).isoformat()}")
    print(f"⌛ Expires At: {datetime.fromtimestamp(claims['exp'], timezone.utc).isoformat()}")
    print(f"🏷️  Issuer:     {claims['iss']}")
    print(f"🎯 Audience:   {claims['aud']}")
    print("")
    print("🎫 Token:")
    print("-" * 60)
    print(token)
    print("-" * 60)
    print("")
    print("🔹 Sync test:")
    print(f"curl -X POST http://localhost:{credentials.PORT}{credentials.API_PREFIX}/devices/sync \\")
    print("  -H \"Content-Type: application/json\" \\")
    print(f"  -H \"Authorization: Bearer {token}\" \\")
    print("  -d '{\"sensorData\":[{\"zoneId\":1,\"soilMoisture\":45,\"temperature\":22,\"humidity\":60,\"pressure\":1013}]}'")
    print("")
    print("✅ Token verification successful!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
