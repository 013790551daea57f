import pytest
from hexbytes import HexBytes

from lpwatch.chain.decoder import decode_swap
from lpwatch.tests.fakes import LIQUIDITY, OTHER_WALLET, SQRT_PRICE, TICK, WALLET, make_swap_log


def test_decodes_uniswap_swap():
    swap = decode_swap(make_swap_log(block_number=123, log_index=4))
    assert swap.sender == WALLET
    assert swap.recipient == OTHER_WALLET
    assert swap.amount0 == 85177457593895947
    assert swap.amount1 == -304831867
    assert swap.sqrt_price_x96 == SQRT_PRICE
    assert swap.liquidity == LIQUIDITY
    assert swap.tick == TICK
    assert (swap.block_number, swap.log_index) == (123, 4)
    assert swap.tx_hash == "0x" + "02" * 32
    assert swap.protocol_fees0 is None


def test_decodes_pancake_swap_with_protocol_fees():
    swap = decode_swap(make_swap_log(protocol_fees=(17, 0)))
    assert swap.tick == TICK
    assert (swap.protocol_fees0, swap.protocol_fees1) == (17, 0)


def test_rejects_other_events():
    entry = make_swap_log()
    entry["topics"][0] = HexBytes(b"\x00" * 32)
    with pytest.raises(ValueError):
        decode_swap(entry)


def test_rejects_logs_without_topics():
    entry = make_swap_log()
    entry["topics"] = []
    with pytest.raises(ValueError):
        decode_swap(entry)


def test_truncated_data_raises():
    entry = make_swap_log()
    entry["data"] = entry["data"][:64]
    with pytest.raises(Exception):
        decode_swap(entry)
