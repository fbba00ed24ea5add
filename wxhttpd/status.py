"""Connection LED that blinks a pattern telling the wifi mode and state."""

from __future__ import annotations

import enum
from typing import Callable

__all__ = ["WifiState", "OpMode", "led_step", "StatusLed", "UPDATE_DELAY_MS", "INITIAL_DELAY_MS"]

UPDATE_DELAY_MS = 500
INITIAL_DELAY_MS = 2000


class WifiState(enum.IntEnum):
    DISCONNECTED = 0
    CONNECTED = 1
    GOT_IP = 2


class OpMode(enum.IntEnum):
    STATION = 1
    SOFTAP = 2
    STATIONAP = 3


def led_step(opmode: int, wifi_state: int, phase: int) -> tuple[bool, int]:
    """Return (LED on, milliseconds until the next step) for a blink *phase* 0-3.

    Station without IP: off. Station with IP: off 4000 ms, on 25 ms.
    Access point: on. Both without station IP: off/on 2000 ms each.
    Both with station IP: off 2000, on 25, off 150, on 2000.
    """
    got_ip = wifi_state == WifiState.GOT_IP
    try:
        mode = OpMode(opmode)
    except ValueError:
        return False, 1000
    if mode is OpMode.STATION:
        if phase in (0, 2):
            return False, 4000
        if phase in (1, 3):
            return got_ip, 25
        return False, 1000
    if mode is OpMode.SOFTAP:
        return True, 2000
    if got_ip:
        return {
            0: (False, 2000),
            1: (True, 25),
            2: (False, 150),
            3: (True, 2000),
        }.get(phase, (False, 1000))
    if phase in (0, 2):
        return False, 2000
    if phase in (1, 3):
        return True, 2000
    return False, 2000


class StatusLed:
    """Drives the connection LED on *pin* through *write(pin, level)*.

    *opmode* is called to learn the current wifi mode. A negative pin
    disables the LED. ``next_delay`` holds the milliseconds until the
    next tick() is due.
    """

    def __init__(
        self,
        pin: int,
        write: Callable[[int, int], None],
        opmode: Callable[[], int],
        active_low: bool = False,
    ) -> None:
        self.pin = pin
        self._write = write
        self._opmode = opmode
        self.active_low = active_low
        self.wifi_state = WifiState.DISCONNECTED
        self.phase = 0
        self.led_on = False
        if pin >= 0:
            self._set(True)
        self.next_delay = INITIAL_DELAY_MS

    def _set(self, on: bool) -> None:
        if self.pin < 0:
            return
        self.led_on = on
        self._write(self.pin, int(on != self.active_low))

    def update(self, state: int) -> int:
        """Record a new wifi state and schedule a prompt refresh."""
        self.wifi_state = WifiState(state)
        self.next_delay = UPDATE_DELAY_MS
        return self.next_delay

    def tick(self) -> int:
        """Advance the blink pattern one step; return the delay to the next tick."""
        on, delay = led_step(self._opmode(), self.wifi_state, self.phase)
        self._set(on)
        self.phase = (self.phase + 1) % 4
        self.next_delay = delay
        return delay