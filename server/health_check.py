#!/usr/bin/env python3
"""
Health Check Script for the Smart Irrigation Server
Usage: python health_check.py [server_url]
"""

import  sys
import  time
import  argparse
import  requests

from    config          import credentials

USER_AGENT = "Smart-Irrigation-Health-Check/1.0"


def check_health(server_url, timeout):
    """Return 0 when the server answers /health, 1 otherwise."""
    base_url = server_url.rstrip("/") + credentials.API_PREFIX
    health_endpoint = f"{base_url}/health"

    print("🏥 Smart Irrigation Server Health Check")
    print("=" * 50)
    print(f"🔗 Server URL: {server_url}")
    print(f"📡 Health Endpoint: {health_endpoint}")
    print("")

    try:
        started = time.monotonic()
        response = requests.get(health_endpoint, timeout=timeout, headers={"User-Agent": USER_AGENT})
        elapsed_ms = (time.monotonic() - started) * 1000
        response.raise_for_status()
        data = response.json()
    except requests.HTTPError as e:
        print("❌ Server Status: UNHEALTHY")
        print(f"🌐 HTTP Status: {e.response.status_code}")
        print(f"📄 Response Data: {e.response.text}")
        return 1
    except (requests.RequestException, ValueError) as e:
        print("❌ Server Status: UNHEALTHY")
        print(f"🔌 Network Error: {e}")
        print("")
        print("🔧 Check that the server is running and the URL is correct")
        return 1

    print("✅ Server Status: HEALTHY")
    print(f"⚡ Response Time: {elapsed_ms:.0f}ms")
    print(f"🌐 HTTP Status: {response.status_code}")
    print("")
    print("📊 Health Data:")
    print(f"   Status: {data.get('status')}")
    print(f"   Environment: {data.get('environment', 'unknown')}")
    print(f"   Database: {data.get('database', 'unknown')}")
    print(f"   Timestamp: {data.get('timestamp', 'unknown')}")

    print("")
    print("🔍 Testing API Endpoints...")
    try:
        devices = requests.get(f"{base_url}/devices", timeout=timeout)
        devices.raise_for_status()
        print(f"✅ GET /devices - Status: {devices.status_code} ({len(devices.json())} devices)")
    except (requests.RequestException, ValueError) as e:
        print(f"❌ GET /devices - Error: {e}")

    print("")
    print("🎉 Health check completed successfully!")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="Check that the irrigation server is up")
    parser.add_argument("server_url", nargs="?", default=credentials.HEALTH_CHECK_URL)
    args = parser.parse_args(argv)
    return check_health(args.server_url, credentials.API_TIMEOUT / 1000)


if __name__ == "__main__":
    sys.exit(main())
