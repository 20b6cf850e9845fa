#!/usr/bin/env python3
"""
Interactive check of the ADT Pulse portal client with real credentials.

Usage:
    python portal_check.py

This script will:
1. Read username, password and fingerprint (from .env or prompt)
2. Log in and print the portal version
3. Run a keep alive and a sync check
4. Fetch gateway, panel and sensor data
5. Log out

Nothing is ever armed or disarmed.
"""

import asyncio
import getpass
import os

import aiohttp
from dotenv import load_dotenv

from pyadtpulse_sync import ADTPulseClient, ADTPulseError
from pyadtpulse_sync.parsers import condense_sensor_type

# Load .env file
load_dotenv()


def print_step(title: str) -> None:
    print(f"\n{title}")
    print("-" * 70)


def print_failure(response) -> None:
    print(f"✗ {response.action} failed: {type(response.error).__name__}: {response.error}")


async def check_portal():
    """Run every read-only portal operation once"""

    print("\n" + "=" * 70)
    print("ADT PULSE PORTAL CLIENT - INTERACTIVE CHECK")
    print("=" * 70)

    print_step("📧 ADT Pulse Credentials")
    username = os.getenv("ADTPULSE_USERNAME", "").strip()
    password = os.getenv("ADTPULSE_PASSWORD", "").strip()
    fingerprint = os.getenv("ADTPULSE_FINGERPRINT", "").strip()
    subdomain = os.getenv("ADTPULSE_SUBDOMAIN", "portal").strip() or "portal"

    if not username:
        username = input("Username: ").strip()
    else:
        print(f"Username: {username}")

    if not password:
        password = getpass.getpass("Password: ")

    if not fingerprint:
        fingerprint = getpass.getpass("Fingerprint: ")

    if not username or not password or not fingerprint:
        print("❌ Username, password and fingerprint are required")
        return

    # Cookie jar keeps the portal session between requests
    async with aiohttp.ClientSession(cookie_jar=aiohttp.CookieJar()) as http_session:
        client = ADTPulseClient(http_session, username, password, fingerprint, subdomain=subdomain)

        try:
            print_step("🔐 Step 1: Login")
            login = await client.authenticate()
            if not login.success:
                print_failure(login)
                return
            print(f"✓ Login successful (portal version {login.info['portal_version']})")

            print_step("💓 Step 2: Keep Alive")
            keep_alive = await client.perform_heartbeat()
            if keep_alive.success:
                print("✓ Keep alive successful")
            else:
                print_failure(keep_alive)

            print_step("🔄 Step 3: Sync Check")
            sync_check = await client.perform_change_check()
            if sync_check.success:
                print(f"✓ Sync code: {sync_check.info['sync_code']}")
            else:
                print_failure(sync_check)

            print_step("🏠 Step 4: Gateway and Panel")
            gateway = await client.fetch_gateway_info()
            if gateway.success:
                print(f"✓ Gateway: {gateway.info['manufacturer']} {gateway.info['model']} "
                      f"(firmware {gateway.info['firmware_version']})")
            else:
                print_failure(gateway)

            panel = await client.fetch_panel_info()
            if panel.success:
                print(f"✓ Panel: {panel.info['manufacturer_provider']} {panel.info['type_model']}")
            else:
                print_failure(panel)

            panel_status = await client.fetch_panel_status()
            if panel_status.success:
                print(f"✓ Panel state: {panel_status.info['state']} ({panel_status.info['status']})")
            else:
                print_failure(panel_status)

            print_step("🚪 Step 5: Sensors")
            sensors = await client.fetch_sensors_info()
            if sensors.success:
                print(f"✓ Found {len(sensors.info)} sensor(s)")
                for sensor in sensors.info:
                    condensed = condense_sensor_type(sensor["device_type"]) or "unsupported"
                    print(f"  - {sensor['name']} (zone {sensor['zone']}): "
                          f"{sensor['device_type']} -> {condensed}")
            else:
                print_failure(sensors)

            statuses = await client.fetch_sensors_status()
            if statuses.success:
                for sensor in statuses.info:
                    print(f"  - {sensor['name']} (zone {sensor['zone']}): {sensor['status']}")
            else:
                print_failure(statuses)

            print("\n" + "=" * 70)
            print("✅ PORTAL CHECK FINISHED")
            print("=" * 70)

        except ADTPulseError as e:
            print(f"\n❌ ADT Pulse Error: {e}")
        finally:
            logout = await client.end_session()
            print("\n👋 Logged out" if logout.success else "\n⚠ Logout failed")


async def main():
    """Main entry point"""
    try:
        await check_portal()
    except KeyboardInterrupt:
        print("\n\n⏹ Check cancelled by user")


if __name__ == "__main__":
    asyncio.run(main())
