"""Settings kept in two alternating flash sectors, each protected by a CRC-16."""

from __future__ import annotations

import dataclasses
import struct
from dataclasses import dataclass
from typing import Callable, ClassVar, Protocol

from .crc16 import crc16_data

__all__ = [
    "FLASH_MAGIC",
    "FLASH_VERSION",
    "FLASH_SECT",
    "FIRMWARE_SIZE",
    "BLOCK_SIZE",
    "ONE_STOP_BIT",
    "FlashError",
    "ConfigError",
    "FlashDevice",
    "MemoryFlash",
    "FlashConfig",
    "select_primary",
    "flash_size_from_id",
    "ConfigStore",
]

FLASH_MAGIC = 0x55AA
FLASH_VERSION = 8
FLASH_SECT = 4096
FIRMWARE_SIZE = 0x7B000
BLOCK_SIZE = 1024
ONE_STOP_BIT = 1

_MCU_RESET_PIN = 12
_LED_CONN_PIN = 5
_LOADER_BAUD_RATE = 115200
_BAUD_RATE = 115200
_SSID_MAX = 32
_ERASED_SEQ = 0xFFFFFFFF
_WINBOND = 0xEF

_STRUCT = struct.Struct("<IHHIiiibbbb33s129sbb16sb3xiBbbbb3x")
_NAME_SIZE = 33
_DESCR_SIZE = 129
_PAUSE_SIZE = 16


class FlashError(OSError):
    """Raised by a flash device when an erase, write or read fails."""


class ConfigError(Exception):
    """Raised when the settings could not be saved."""


class FlashDevice(Protocol):
    """SPI flash as seen by the settings store."""

    def read(self, address: int, size: int) -> bytes: ...

    def write(self, address: int, data: bytes) -> None: ...

    def erase_sector(self, sector: int) -> None: ...


class MemoryFlash:
    """NOR flash held in memory: erasing sets bytes to 0xFF, writing can only clear bits."""

    def __init__(self, size: int = 0x80000) -> None:
        self.data = bytearray(b"\xff" * size)

    def _check(self, address: int, size: int) -> None:
        if address < 0 or size < 0 or address + size > len(self.data):
            raise FlashError(f"flash access out of range at {address:#x}")

    def read(self, address: int, size: int) -> bytes:
        self._check(address, size)
        return bytes(self.data[address:address + size])

    def write(self, address: int, data: bytes) -> None:
        data = bytes(data)
        self._check(address, len(data))
        for offset, byte in enumerate(data):
            self.data[address + offset] &= byte

    def erase_sector(self, sector: int) -> None:
        start = sector * FLASH_SECT
        self._check(start, FLASH_SECT)
        self.data[start:start + FLASH_SECT] = b"\xff" * FLASH_SECT


def _encode(text: str, size: int, field: str) -> bytes:
    raw = text.encode("utf-8")
    if len(raw) >= size:
        raise ValueError(f"{field} is longer than {size - 1} bytes")
    return raw


def _decode(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("utf-8", "replace")


@dataclass
class FlashConfig:
    """The settings record. New fields go at the end with zero as their default."""

    seq: int = 33
    magic: int = 0
    crc: int = 0
    version: int = FLASH_VERSION
    loader_baud_rate: int = _LOADER_BAUD_RATE
    baud_rate: int = _BAUD_RATE
    dbg_baud_rate: int = _BAUD_RATE
    stop_bits: int = ONE_STOP_BIT
    dbg_stop_bits: int = ONE_STOP_BIT
    conn_led_pin: int = _LED_CONN_PIN
    reset_pin: int = _MCU_RESET_PIN
    module_name: str = ""
    module_descr: str = ""
    rx_pullup: int = 0
    sscp_enable: int = 0
    sscp_need_pause: str = ":,"
    sscp_need_pause_cnt: int = 2
    sscp_pause_time_ms: int = 0
    sscp_start: int = 0
    sscp_events: int = 0
    dbg_enable: int = 0
    sscp_loader: int = 0
    p2_ddloader_enable: int = 0

    SIZE: ClassVar[int] = _STRUCT.size

    def pack(self) -> bytes:
        """Return the record's bytes in flash layout."""
        try:
            return _STRUCT.pack(
                self.seq & 0xFFFFFFFF,
                self.magic,
                self.crc,
                self.version,
                self.loader_baud_rate,
                self.baud_rate,
                self.dbg_baud_rate,
                self.stop_bits,
                self.dbg_stop_bits,
                self.conn_led_pin,
                self.reset_pin,
                _encode(self.module_name, _NAME_SIZE, "module_name"),
                _encode(self.module_descr, _DESCR_SIZE, "module_descr"),
                self.rx_pullup,
                self.sscp_enable,
                _encode(self.sscp_need_pause, _PAUSE_SIZE, "sscp_need_pause"),
                self.sscp_need_pause_cnt,
                self.sscp_pause_time_ms,
                self.sscp_start,
                self.sscp_events,
                self.dbg_enable,
                self.sscp_loader,
                self.p2_ddloader_enable,
            )
        except struct.error as exc:
            raise ValueError(str(exc)) from exc

    def to_block(self) -> bytearray:
        """Return the record padded with zeros to a full settings block."""
        block = bytearray(BLOCK_SIZE)
        block[:_STRUCT.size] = self.pack()
        return block

    @classmethod
    def unpack(cls, data: bytes) -> "FlashConfig":
        """Read a record from the start of *data*."""
        if len(data) < _STRUCT.size:
            raise ValueError(f"need {_STRUCT.size} bytes for a config record, got {len(data)}")
        v = list(_STRUCT.unpack_from(bytes(data)))
        v[11] = _decode(v[11])
        v[12] = _decode(v[12])
        v[15] = _decode(v[15])
        return cls(*v)


def _checked(block: bytes) -> FlashConfig | None:
    """Return the record in *block* with its CRC zeroed, or None if it is not valid."""
    if len(block) != BLOCK_SIZE:
        return None
    record = FlashConfig.unpack(block)
    cleared = bytearray(block)
    cleared[6:8] = b"\0\0"
    if crc16_data(cleared) != record.crc:
        return None
    if record.magic != FLASH_MAGIC or record.version != FLASH_VERSION:
        return None
    record.crc = 0
    return record


def select_primary(block0: bytes, block1: bytes) -> int | None:
    """Return which of two settings blocks (0 or 1) to use, or None if neither is valid."""
    first = _checked(bytes(block0))
    second = _checked(bytes(block1))
    if first is not None:
        if second is None or first.seq >= second.seq:
            return 0
        return 1
    return 1 if second is not None else None


def flash_size_from_id(chip_id: int) -> int:
    """Return the flash size in bytes from a JEDEC id; 0 unless the maker is Winbond."""
    if chip_id & 0xFF != _WINBOND:
        return 0
    return 1 << ((chip_id >> 16) & 0xFF)


class ConfigStore:
    """Saves and restores a FlashConfig, keeping the previous copy as a backup."""

    def __init__(
        self,
        flash: FlashDevice,
        chip_id: int = 0,
        large_flash: bool = True,
        get_ssid: Callable[[], str | None] | None = None,
        set_ssid: Callable[[str], bool] | None = None,
        defaults: FlashConfig | None = None,
    ) -> None:
        self.flash = flash
        self.chip_id = chip_id
        self.large_flash = large_flash
        self._get_ssid = get_ssid
        self._set_ssid = set_ssid
        self.defaults = defaults if defaults is not None else FlashConfig()
        self.config = dataclasses.replace(self.defaults)
        self.primary = 0

    @property
    def address(self) -> int:
        """Flash address of the first of the two settings sectors."""
        if self.large_flash:
            return FLASH_SECT + FIRMWARE_SIZE + 2 * FLASH_SECT
        return FLASH_SECT + FIRMWARE_SIZE - 2 * FLASH_SECT

    def _write_block(self, addr: int, block: bytearray, seq: int) -> None:
        block[0:4] = struct.pack("<I", _ERASED_SEQ)
        self.flash.write(addr, bytes(block))
        self.flash.write(addr, struct.pack("<I", seq))

    def save(self) -> None:
        """Write the settings to the backup sector, then make the old primary the backup."""
        block = self.config.to_block()
        seq = (self.config.seq + 1) & 0xFFFFFFFF
        addr = self.address + (1 - self.primary) * FLASH_SECT
        struct.pack_into("<IHHI", block, 0, seq, FLASH_MAGIC, 0, FLASH_VERSION)
        struct.pack_into("<H", block, 6, crc16_data(block))
        try:
            self.flash.erase_sector(addr >> 12)
            self._write_block(addr, block, seq)
        except FlashError as exc:
            raise ConfigError("failed to save config") from exc
        addr = self.address + self.primary * FLASH_SECT
        self.primary = 1 - self.primary
        try:
            self.flash.erase_sector(addr >> 12)
            self._write_block(addr, block, seq)
        except FlashError:
            # The new copy is safely written; only the backup is missing.
            return

    def _read(self, addr: int) -> bytes:
        try:
            return self.flash.read(addr, BLOCK_SIZE)
        except FlashError:
            return bytes(BLOCK_SIZE)

    def restore(self) -> bool:
        """Load the newest valid settings; fall back to defaults and return False if none."""
        block0 = self._read(self.address)
        block1 = self._read(self.address + FLASH_SECT)
        primary = select_primary(block0, block1)
        if primary is None:
            self.restore_defaults()
            self.primary = 0
            return False
        self.primary = primary
        record = _checked(block0 if primary == 0 else block1)
        assert record is not None
        self.config = record
        if self._get_ssid is not None:
            ssid = self._get_ssid()
            if ssid is not None:
                self.config.module_name = ssid.encode("utf-8")[:_SSID_MAX].decode("utf-8", "ignore")
        return True

    def restore_defaults(self) -> bool:
        """Reset the settings to the defaults, naming the module after the chip id."""
        self.config = dataclasses.replace(self.defaults)
        self.config.module_name = f"wx-{self.chip_id:06x}"
        if self._set_ssid is not None and len(self.config.module_name.encode("utf-8")) <= _SSID_MAX:
            self._set_ssid(self.config.module_name)
        return True

    def wipe(self) -> None:
        """Erase both settings sectors."""
        self.flash.erase_sector(self.address >> 12)
        self.flash.erase_sector((self.address + FLASH_SECT) >> 12)