import dataclasses

import pytest

from wxhttpd.config import (
    BLOCK_SIZE,
    FLASH_MAGIC,
    FLASH_SECT,
    FLASH_VERSION,
    ConfigError,
    ConfigStore,
    FlashConfig,
    FlashError,
    MemoryFlash,
    flash_size_from_id,
    select_primary,
)
from wxhttpd.crc16 import crc16_data


class FailingEraseFlash(MemoryFlash):
    def erase_sector(self, sector):
        raise FlashError("erase failed")


def _valid_block(seq):
    block = FlashConfig(seq=seq, magic=FLASH_MAGIC, version=FLASH_VERSION).to_block()
    block[6:8] = crc16_data(block).to_bytes(2, "little")
    return bytes(block)


def _ignored(cfg):
    return dataclasses.replace(cfg, seq=0, magic=0, crc=0, version=0)


def test_pack_round_trip():
    cfg = FlashConfig(module_name="wx-test", module_descr="desk unit", sscp_start=0x80)
    raw = cfg.pack()
    assert len(raw) == FlashConfig.SIZE
    assert FlashConfig.unpack(raw) == cfg


def test_defaults_match_source():
    cfg = FlashConfig()
    assert cfg.seq == 33
    assert cfg.version == FLASH_VERSION == 8
    assert cfg.baud_rate == 115200
    assert cfg.reset_pin == 12
    assert cfg.conn_led_pin == 5
    assert cfg.sscp_need_pause == ":,"


def test_too_long_name_rejected():
    with pytest.raises(ValueError):
        FlashConfig(module_name="x" * 40).pack()


def test_unpack_short_data_rejected():
    with pytest.raises(ValueError):
        FlashConfig.unpack(b"\0" * 10)


def test_select_primary_none_valid():
    assert select_primary(bytes(BLOCK_SIZE), b"\xff" * BLOCK_SIZE) is None


def test_select_primary_one_valid():
    assert select_primary(_valid_block(5), bytes(BLOCK_SIZE)) == 0
    assert select_primary(bytes(BLOCK_SIZE), _valid_block(5)) == 1


def test_select_primary_prefers_newer_and_first_on_tie():
    assert select_primary(_valid_block(5), _valid_block(6)) == 1
    assert select_primary(_valid_block(7), _valid_block(6)) == 0
    assert select_primary(_valid_block(6), _valid_block(6)) == 0


def test_select_primary_rejects_corrupt_crc():
    bad = bytearray(_valid_block(9))
    bad[100] ^= 0x01
    assert select_primary(bytes(bad), _valid_block(1)) == 1


def test_flash_size_from_id():
    assert flash_size_from_id(0x1640EF) == 1 << 0x16
    assert flash_size_from_id(0x1640C8) == 0


def test_save_then_restore_round_trip():
    flash = MemoryFlash()
    store = ConfigStore(flash)
    store.config = FlashConfig(module_name="kitchen", baud_rate=9600)
    store.save()
    other = ConfigStore(flash)
    assert other.restore() is True
    assert _ignored(other.config) == _ignored(store.config)
    assert other.config.seq == store.config.seq + 1
    assert other.config.magic == FLASH_MAGIC


def test_save_writes_both_sectors():
    flash = MemoryFlash()
    store = ConfigStore(flash)
    store.save()
    first = flash.read(store.address, BLOCK_SIZE)
    second = flash.read(store.address + FLASH_SECT, BLOCK_SIZE)
    assert first == second
    assert store.primary == 1


def test_restore_empty_flash_uses_defaults():
    names = []
    store = ConfigStore(MemoryFlash(), chip_id=0xABCD, set_ssid=lambda s: names.append(s) or True)
    assert store.restore() is False
    assert store.config.module_name == "wx-00abcd"
    assert names == ["wx-00abcd"]
    assert store.primary == 0


def test_restore_takes_name_from_softap():
    flash = MemoryFlash()
    ConfigStore(flash).save()
    store = ConfigStore(flash, get_ssid=lambda: "porch")
    assert store.restore() is True
    assert store.config.module_name == "porch"


def test_save_fails_when_erase_fails():
    store = ConfigStore(FailingEraseFlash())
    with pytest.raises(ConfigError):
        store.save()


def test_wipe_invalidates_settings():
    flash = MemoryFlash()
    store = ConfigStore(flash)
    store.save()
    store.wipe()
    assert ConfigStore(flash).restore() is False


def test_small_flash_address_below_large():
    small = ConfigStore(MemoryFlash(), large_flash=False)
    large = ConfigStore(MemoryFlash())
    assert large.address - small.address == 4 * FLASH_SECT
    small.save()
    assert ConfigStore(small.flash, large_flash=False).restore() is True