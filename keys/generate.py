"""Generate a local development RSA key pair for signing session tokens."""

from __future__ import annotations

from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa


KEYS_DIR = Path(__file__).resolve().parent
PRIVATE_KEY_PATH = KEYS_DIR / "dev.private.pem"
PUBLIC_KEY_PATH = KEYS_DIR / "dev.public.pem"


def generate_key_pair(key_size: int = 2048) -> tuple[bytes, bytes]:
    """Return a fresh ``(private_pem, public_pem)`` pair."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=key_size)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_pem, public_pem


def main() -> int:
    """Write the dev key pair once; config.load_jwt_keys picks it up automatically."""
    private_exists = PRIVATE_KEY_PATH.exists()
    public_exists = PUBLIC_KEY_PATH.exists()

    if private_exists and public_exists:
        print(f"Keys already exist, skipping: {PRIVATE_KEY_PATH} / {PUBLIC_KEY_PATH}")
        return 0

    if private_exists != public_exists:
        raise SystemExit(
            "Only one key file exists. Remove both key files and run this script again."
        )

    private_pem, public_pem = generate_key_pair()
    PRIVATE_KEY_PATH.write_bytes(private_pem)
    PUBLIC_KEY_PATH.write_bytes(public_pem)
    print(f"Generated: {PRIVATE_KEY_PATH}")
    print(f"Generated: {PUBLIC_KEY_PATH}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
