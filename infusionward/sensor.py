"""Drop-counting sensor that reports elapsed seconds and drops over a serial line."""

from __future__ import annotations

import argparse
import logging
import time
from typing import Any, Callable, List, Optional

from infusionward.protocol import format_sensor_frame

log = logging.getLogger(__name__)

DEFAULT_PORT = "COM2"
BAUD_RATE = 9600
TICK_SECONDS = 1.0


def open_serial(port_name: str) -> Any:
    """Open a serial port at 9600 baud, 8 data bits, no parity, one stop bit."""
    import serial

    return serial.Serial(
        port=port_name,
        baudrate=BAUD_RATE,
        bytesize=serial.EIGHTBITS,
        parity=serial.PARITY_NONE,
        stopbits=serial.STOPBITS_ONE,
        timeout=1.0,
    )


class DropSensor:
    """Counts drops at a fixed rate per second and writes frames to a port."""

    def __init__(self, port: Any, clock: Callable[[], float] = time.time) -> None:
        self.port = port
        self.clock = clock
        self.rate = 1
        self.drops = 0
        self.started_at = 0
        self.running = False

    def start(self) -> None:
        """Open the port if needed and start counting from zero."""
        if not getattr(self.port, "is_open", True):
            self.port.open()
        self.drops = 0
        self.started_at = int(self.clock())
        self.running = True

    def tick(self) -> str:
        """Send the current frame, then add one second's worth of drops."""
        if not self.running:
            raise RuntimeError("sensor has not been started")
        elapsed = int(self.clock()) - self.started_at
        frame = format_sensor_frame(elapsed, self.drops)
        self.drops += self.rate
        log.debug("%s", frame)
        self.port.write(frame.encode("utf-8"))
        return frame

    def reset(self) -> None:
        """Stop counting, close the port and clear time and drops."""
        self.running = False
        self.port.close()
        self.started_at = 0
        self.drops = 0

    def set_rate(self, rate: int) -> None:
        """Set how many drops are added each second."""
        self.rate = rate


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Simulated infusion drop sensor.")
    parser.add_argument("--port", default=DEFAULT_PORT, help="serial port name")
    parser.add_argument("--rate", type=int, default=1, help="drops per second")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    try:
        port = open_serial(args.port)
    except Exception as exc:  # serial.SerialException and OS errors alike
        log.error("failed to open %s: %s", args.port, exc)
        return 1
    log.info("opened %s", args.port)

    sensor = DropSensor(port)
    sensor.set_rate(args.rate)
    sensor.start()
    try:
        while True:
            time.sleep(TICK_SECONDS)
            log.info("%s", sensor.tick())
    except KeyboardInterrupt:
        pass
    finally:
        sensor.reset()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())