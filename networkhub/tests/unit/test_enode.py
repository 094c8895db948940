import pytest

from networkhub.errors import ConfigurationError
from networkhub.network.enode import enode, public_key_hex

KEY_ONE = "00" * 31 + "01"
GENERATOR = (
    "79be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
    "483ada7726a3c4655da4fbfc0e1108a8fd17b448a68554199c47d08ffb10d4b8"
)


def test_public_key_of_one_is_generator_point():
    assert public_key_hex(KEY_ONE) == GENERATOR


def test_accepts_0x_prefix():
    assert public_key_hex("0x" + KEY_ONE) == GENERATOR


def test_enode_format():
    assert enode(KEY_ONE, "10.0.0.2", 30303) == f"enode://{GENERATOR}@10.0.0.2:30303"


def test_enode_is_deterministic_and_sensitive_to_each_input():
    key_two = "00" * 31 + "02"
    base = enode(KEY_ONE, "10.0.0.2", 30303)

    assert enode(KEY_ONE, "10.0.0.2", 30303) == base
    assert enode(key_two, "10.0.0.2", 30303) != base
    assert enode(KEY_ONE, "10.0.0.3", 30303) != base
    assert enode(KEY_ONE, "10.0.0.2", 30304) != base


@pytest.mark.parametrize("bad_key", ["zz", "00" * 32, ""])
def test_invalid_key_raises(bad_key):
    with pytest.raises(ConfigurationError):
        enode(bad_key, "127.0.0.1", 30303)
