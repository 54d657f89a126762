"""Bedside infusion monitor: reads the drop sensor and talks to the ward server."""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Any, List, Optional

from infusionward.protocol import (
    PatientInfo,
    ProtocolError,
    Report,
    ReportFlag,
    parse_sensor_frame,
)

log = logging.getLogger(__name__)

DEFAULT_HOST = "192.168.1.104"
DEFAULT_PORT = 9999
DEFAULT_SERIAL = "COM1"
DROP_VOLUME_ML = 0.01
DEFAULT_CAPACITY_ML = 50
RECONNECT_SECONDS = 3.0


class InfusionMonitor:
    """State of one bedside monitor, independent of any transport."""

    def __init__(self) -> None:
        self.bed = 1
        self.total_drops = DEFAULT_CAPACITY_ML / DROP_VOLUME_ML
        self.elapsed = 0
        self.drops = 0
        self.speed = 0.0
        self.minutes_left = 0.0
        self.name = ""
        self.doctor = ""
        self.nurses = ""
        self.alarm_active = False

    def handle_sensor_frame(self, data: Any) -> Report:
        """Update speed and time left from a sensor frame; return the report to upload."""
        elapsed, drops = parse_sensor_frame(data)
        if elapsed <= 0:
            raise ProtocolError("sensor frame has no elapsed time")
        speed = drops / (elapsed / 60.0)
        if speed <= 0:
            raise ProtocolError("no drops counted yet")
        self.elapsed = elapsed
        self.drops = drops
        self.speed = speed
        self.minutes_left = (self.total_drops - drops) / speed
        return Report(self.bed, int(self.minutes_left), int(speed), ReportFlag.READING)

    def handle_server_message(self, data: Any) -> PatientInfo:
        """Apply patient details from the server; an acknowledgement silences the call."""
        info = PatientInfo.from_json(data)
        self.name = info.name
        self.doctor = info.doctor
        self.nurses = info.nurses
        self.total_drops = info.capacity / DROP_VOLUME_ML
        if info.acknowledged:
            self.alarm_active = False
        return info

    def set_bed(self, number: int) -> Report:
        """Change the bed number; return the request for that bed's patient details."""
        if number < 1:
            raise ValueError(f"bed number must be at least 1, got {number}")
        self.bed = number
        return self.hello_message()

    def call_nurse(self) -> Report:
        """Raise the call alarm; return the call report for the server."""
        self.alarm_active = True
        return Report(self.bed, 0, 0, ReportFlag.CALL)

    def hello_message(self) -> Report:
        """The request sent on connecting, asking for this bed's patient details."""
        return Report(self.bed, 60, 110, ReportFlag.HELLO)


class _ServerLink:
    """Keeps a connection to the ward server, reconnecting while it is down."""

    def __init__(self, monitor: InfusionMonitor, host: str, port: int) -> None:
        self.monitor = monitor
        self.host = host
        self.port = port
        self.writer: Optional[asyncio.StreamWriter] = None

    def send(self, report: Report) -> None:
        if self.writer is None or self.writer.is_closing():
            return
        self.writer.write(report.to_json().encode("utf-8"))

    async def run(self) -> None:
        while True:
            try:
                reader, writer = await asyncio.open_connection(self.host, self.port)
            except OSError as exc:
                log.debug("connect to %s:%s failed: %s", self.host, self.port, exc)
                await asyncio.sleep(RECONNECT_SECONDS)
                continue
            self.writer = writer
            log.info("connected to server")
            self.send(self.monitor.hello_message())
            try:
                await self._receive(reader)
            finally:
                self.writer = None
                writer.close()
            log.info("disconnected from server")
            await asyncio.sleep(RECONNECT_SECONDS)

    async def _receive(self, reader: asyncio.StreamReader) -> None:
        while True:
            try:
                data = await reader.read(4096)
            except OSError:
                return
            if not data:
                return
            try:
                info = self.monitor.handle_server_message(data)
            except ProtocolError as exc:
                log.warning("bad server message: %s", exc)
                continue
            if info.acknowledged:
                log.info("call acknowledged")


async def _pump_sensor(monitor: InfusionMonitor, serial_port: Any, link: _ServerLink) -> None:
    buffer = b""
    while True:
        chunk = await asyncio.to_thread(serial_port.read_until, b"]")
        if not chunk:
            continue
        buffer += chunk
        while b"]" in buffer:
            frame, buffer = buffer.split(b"]", 1)
            try:
                report = monitor.handle_sensor_frame(frame + b"]")
            except ProtocolError as exc:
                log.debug("sensor frame skipped: %s", exc)
                continue
            log.info(
                "%d drops/min, %d min left", int(monitor.speed), int(monitor.minutes_left)
            )
            link.send(report)


async def run_client(host: str, port: int, serial_port: Any) -> None:
    """Read sensor frames from ``serial_port`` and report them to the server forever."""
    monitor = InfusionMonitor()
    link = _ServerLink(monitor, host, port)
    await asyncio.gather(link.run(), _pump_sensor(monitor, serial_port, link))


def main(argv: Optional[List[str]] = None) -> int:
    from infusionward.sensor import open_serial

    parser = argparse.ArgumentParser(description="Bedside infusion monitor.")
    parser.add_argument("--host", default=DEFAULT_HOST, help="ward server address")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="ward server port")
    parser.add_argument("--serial", default=DEFAULT_SERIAL, help="sensor serial port")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    try:
        serial_port = open_serial(args.serial)
    except Exception as exc:  # serial.SerialException and OS errors alike
        log.error("failed to open %s: %s", args.serial, exc)
        return 1
    try:
        asyncio.run(run_client(args.host, args.port, serial_port))
    except KeyboardInterrupt:
        pass
    finally:
        serial_port.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())