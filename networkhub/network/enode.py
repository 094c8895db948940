"""
Enode derivation - turn a node's private key into its dialable peer address.
"""

from coincurve import PrivateKey

from networkhub.errors import ConfigurationError


def public_key_hex(private_key_hex: str) -> str:
    """Return the 64-byte uncompressed public key (without the 0x04 prefix) as hex.

    Raises:
        ConfigurationError: If the key is not a valid secp256k1 private key.
    """
    key = private_key_hex[2:] if private_key_hex.startswith("0x") else private_key_hex
    try:
        public_key = PrivateKey(bytes.fromhex(key)).public_key
    except ValueError as e:
        raise ConfigurationError(f"unable to parse private key: {e}") from e
    return public_key.format(compressed=False)[1:].hex()


def enode(private_key_hex: str, ip: str, port: int) -> str:
    """Format ``enode://<pubkey>@<ip>:<port>``."""
    return f"enode://{public_key_hex(private_key_hex)}@{ip}:{port}"
