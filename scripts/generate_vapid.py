#!/usr/bin/env python3
"""
Generate VAPID keys for web push notifications.
Run this script and add the output to your environment variables.
"""

import argparse
import base64

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec


def base64url_encode(data: bytes) -> str:
    """Encode bytes as base64url without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b'=').decode('ascii')


def generate_vapid_keys() -> tuple[str, str]:
    """Generate a new P-256 key pair, returned as (public, private) base64url strings."""
    private_key = ec.generate_private_key(ec.SECP256R1())

    # Raw 32-byte private scalar, as pywebpush expects
    private_bytes = private_key.private_numbers().private_value.to_bytes(32, 'big')

    # Uncompressed point (0x04 + X + Y), as PushManager.subscribe() expects
    public_bytes = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.UncompressedPoint,
    )

    return base64url_encode(public_bytes), base64url_encode(private_bytes)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--subject", default="mailto:admin@example.com",
                        help="VAPID subject (mailto: or https: URL)")
    args = parser.parse_args()

    public_key, private_key = generate_vapid_keys()
    print(f"VAPID_PUBLIC_KEY={public_key}")
    print(f"VAPID_PRIVATE_KEY={private_key}")
    print(f"VAPID_SUBJECT={args.subject}")


if __name__ == "__main__":
    main()
