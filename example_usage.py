#!/usr/bin/env python3
"""
Basic usage examples for the CareHQ API client.

Set CAREHQ_ACCOUNT_ID, CAREHQ_API_KEY and CAREHQ_API_SECRET (and optionally
CAREHQ_API_BASE_URL) before running.
"""

import logging
import os
import sys

from carehq import APIClient, APIError, CareHQError, DEFAULT_API_BASE_URL, InvalidRequest


def main():
    """Run basic usage examples."""
    logging.basicConfig(level=logging.DEBUG)

    try:
        account_id = os.environ["CAREHQ_ACCOUNT_ID"]
        api_key = os.environ["CAREHQ_API_KEY"]
        api_secret = os.environ["CAREHQ_API_SECRET"]
    except KeyError as e:
        print(f"Missing environment variable: {e}")
        return 1

    base_url = os.environ.get("CAREHQ_API_BASE_URL", DEFAULT_API_BASE_URL)

    print("=== CareHQ API Client Basic Usage Examples ===\n")

    with APIClient(account_id, api_key, api_secret, base_url, timeout=10) as client:

        # Example 1: Inspect a signed request without sending it
        print("1. Preparing a signed request...")
        prepared = client.prepare("GET", "users", params={"status": ["active", "pending"]})
        print(f"   URL: {prepared.url}")
        for name, value in prepared.headers.items():
            print(f"   {name}: {value}")
        print()

        # Example 2: Authenticated GET request with a multi-value filter
        print("2. Listing users...")
        try:
            users = client.get("users", params={"status": ["active", "pending"]})
            print(f"   ✓ Received {len(users.get('items', []))} users")
        except APIError as e:
            print(f"   ✗ Request failed:\n{e}")
        print()

        # Example 3: Rate limits are known after the first response
        print("3. Rate limits...")
        print(f"   Limit: {client.rate_limit}")
        print(f"   Remaining: {client.rate_limit_remaining}")
        print(f"   Reset: {client.rate_limit_reset}")
        print()

        # Example 4: Argument errors from an invalid request
        print("4. Sending an invalid request...")
        try:
            client.post("users", data={"email": "not-an-email"})
        except InvalidRequest as e:
            print(f"   ✓ Rejected with hint: {e.hint}")
            for arg, errors in (e.arg_errors or {}).items():
                print(f"     {arg}: {' '.join(errors)}")
        except CareHQError as e:
            print(f"   ✗ Unexpected error: {e}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
