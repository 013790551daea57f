import pytest

from lpwatch.cache.keys import PoolKey, PositionKey, TokenKey


def test_token_key_lowercases_and_round_trips():
    key = TokenKey(42161, "0x82aF49447D8a07e3bd95BD0d56f35241523fBab1")
    assert str(key) == "42161:0x82af49447d8a07e3bd95bd0d56f35241523fbab1"
    assert TokenKey.parse(str(key)) == key


def test_position_key_text():
    key = PositionKey("42161", "0x46A15B0b27311cedF172AB29E4f4766fbE7F4364", "1234")
    assert str(key) == "42161:0x46a15b0b27311cedf172ab29e4f4766fbe7f4364:1234"
    assert PositionKey.parse(str(key)).token_id == 1234


def test_keys_of_different_kinds_are_not_equal():
    address = "0xd9e2a1a61b6e61b275cec326465d417e52c1b95c"
    assert PoolKey(42161, address) != TokenKey(42161, address)
    assert PoolKey(42161, address) != PoolKey(8453, address)


@pytest.mark.parametrize("bad", ["", "0x1234", "d9e2a1a61b6e61b275cec326465d417e52c1b95c00"])
def test_keys_reject_non_addresses(bad):
    with pytest.raises(ValueError):
        PoolKey(42161, bad)
