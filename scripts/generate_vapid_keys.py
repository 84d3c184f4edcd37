"""Print a fresh VAPID key pair in the format NEWSPUSH_PUSH_VAPID_* expects."""

from __future__ import annotations

import argparse
import base64

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec


def _base64url(data: bytes) -> str:
  return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def generate_vapid_keys() -> tuple[str, str]:
  """Return (public, private) as unpadded base64url: a 65-byte uncompressed point and a 32-byte scalar."""
  private_key = ec.generate_private_key(ec.SECP256R1())
  private_bytes = private_key.private_numbers().private_value.to_bytes(32, "big")
  public_bytes = private_key.public_key().public_bytes(encoding=serialization.Encoding.X962, format=serialization.PublicFormat.UncompressedPoint)
  return _base64url(public_bytes), _base64url(private_bytes)


def main() -> None:
  parser = argparse.ArgumentParser(description=__doc__)
  parser.add_argument("--sub", default="mailto:admin@example.com", help="Contact claim for NEWSPUSH_PUSH_VAPID_SUB (mailto: or https:// URL).")
  args = parser.parse_args()

  public_key, private_key = generate_vapid_keys()
  print(f"NEWSPUSH_PUSH_VAPID_PUBLIC_KEY={public_key}")
  print(f"NEWSPUSH_PUSH_VAPID_PRIVATE_KEY={private_key}")
  print(f"NEWSPUSH_PUSH_VAPID_SUB={args.sub}")


if __name__ == "__main__":
  main()
