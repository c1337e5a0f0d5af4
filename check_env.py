#!/usr/bin/env python3
"""Check the .env file and print the fare settings the API will start with."""

import os
import sys
from pathlib import Path

PREFIX = "FLEETFARE_"
SECRET_KEYS = {f"{PREFIX}SUPABASE_KEY"}

TEMPLATE = f"""# Supabase (required: destinations, fare_quotes, tickets, bus_locations)
# Get these from: https://supabase.com/dashboard → Your Project → Settings → API
{PREFIX}SUPABASE_URL=https://your-project-id.supabase.co
{PREFIX}SUPABASE_KEY=your-service-role-key-here

# API
{PREFIX}API_PREFIX=/api
# {PREFIX}FRONTEND_ALLOWED_ORIGINS=http://localhost:5173,http://127.0.0.1:5173

# Pricing (amounts in the smallest unit of the currency)
{PREFIX}BASE_FARE=5000
{PREFIX}PER_KM_RATE=1500
{PREFIX}CURRENCY=PYG
{PREFIX}AVERAGE_SPEED_KMH=30

# Fallback origin when a bus has neither a device fix nor a recorded position.
# Leave both empty to refuse quoting instead.
{PREFIX}DEFAULT_LATITUDE=-25.2808
{PREFIX}DEFAULT_LONGITUDE=-57.6312

# Driver terminal and passenger display
{PREFIX}CONFIRMATION_RESET_SECONDS=5
{PREFIX}BROADCAST_ENABLED=true
"""


def _mask(line: str) -> str:
    name, sep, value = line.partition("=")
    value = value.strip()
    if sep and name.strip() in SECRET_KEYS and len(value) > 20:
        return f"{name}={value[:20]}...{value[-10:]}"
    return line


def main() -> int:
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("FleetFare environment check")
    print("=" * 60)

    if not env_file.exists():
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print(f"❌ .env file NOT found; created a template at: {env_file}")
        print("⚠️  Edit it and add your Supabase credentials, then run this again.")
        return 1

    print(f"✅ Found .env file at: {env_file}")
    print("-" * 60)
    for line in env_file.read_text(encoding="utf-8").splitlines():
        print(_mask(line))
    print("-" * 60)

    sys.path.insert(0, str(project_root / "src"))
    try:
        from fleetfare.config import settings
    except ImportError as e:
        print(f"❌ Error loading config: {e}")
        print("Make sure you're running this from the project root directory")
        return 1

    print(f"Pricing: base {settings.base_fare} + {settings.per_km_rate}/km in {settings.currency}")
    if settings.has_default_location:
        print(f"Default origin: {settings.default_latitude}, {settings.default_longitude}")
    else:
        print("Default origin: disabled (quotes need a device fix or a recorded position)")
    print(f"Broadcast: {'on' if settings.broadcast_enabled else 'off'} ({settings.broadcast_channel})")

    for name in ("SUPABASE_URL", "SUPABASE_KEY"):
        source = "environment" if os.getenv(f"{PREFIX}{name}") else ".env"
        if getattr(settings, name.lower()):
            print(f"✅ {PREFIX}{name} loaded (from {source})")
        else:
            print(f"❌ {PREFIX}{name} is not set")

    if settings.supabase_url and settings.supabase_key:
        print("✅ SUCCESS: Supabase is configured!")
        return 0
    print("❌ ERROR: Supabase is NOT configured")
    print(f"Make sure variables start with the {PREFIX} prefix and restart the backend after editing .env")
    return 1


if __name__ == "__main__":
    sys.exit(main())
