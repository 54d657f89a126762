"""Ward server: a 3 x 4 grid of beds fed by bedside monitors over TCP."""

from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from infusionward.protocol import PatientInfo, ProtocolError, Report, ReportFlag
from infusionward.records import PatientRecord, read_lines, upsert_line, write_lines

log = logging.getLogger(__name__)

ROWS = 3
COLUMNS = 4
BED_COUNT = ROWS * COLUMNS
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 9999
DEFAULT_RECORDS = "file.txt"
RELOAD_SECONDS = 3.0


@dataclass
class Bed:
    """What the ward screen shows for one bed, and the monitor attached to it."""

    number: int
    name: str = ""
    doctor: str = ""
    nurses: str = ""
    capacity: int = 0
    speed: Optional[float] = None
    minutes_left: Optional[float] = None
    calling: bool = False
    connection: Any = None

    @property
    def row(self) -> int:
        return (self.number - 1) // COLUMNS

    @property
    def column(self) -> int:
        return (self.number - 1) % COLUMNS

    def patient_info(self, acknowledged: bool = False) -> PatientInfo:
        return PatientInfo(self.name, self.doctor, self.nurses, self.capacity, acknowledged)


class Ward:
    """All beds of the ward, backed by the bed record file."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self.beds: Dict[int, Bed] = {n: Bed(n) for n in range(1, BED_COUNT + 1)}

    def _bed(self, number: int) -> Bed:
        try:
            return self.beds[number]
        except KeyError:
            raise KeyError(f"no bed numbered {number}") from None

    def reload(self) -> None:
        """Refresh patient details of every bed listed in the record file."""
        for line in read_lines(self.path):
            record = PatientRecord.from_line(line)
            if record.bed not in self.beds:
                raise ValueError(f"record for unknown bed {record.bed}: {line!r}")
            bed = self.beds[record.bed]
            bed.name = record.name
            bed.doctor = record.doctor
            bed.nurses = record.nurses
            bed.capacity = record.capacity

    def handle_message(self, data: Union[str, bytes], connection: Any) -> Optional[str]:
        """Apply one report from a monitor; return the reply sent to it, if any."""
        report = Report.from_json(data)
        if report.number not in self.beds:
            raise ProtocolError(f"report for unknown bed {report.number}")
        bed = self.beds[report.number]
        if report.flag is ReportFlag.READING:
            bed.speed = report.speed
            bed.minutes_left = report.time
            return None
        if report.flag is ReportFlag.HELLO:
            reply = bed.patient_info().to_json()
            connection.write(reply.encode("utf-8"))
            bed.connection = connection
            return reply
        bed.calling = True
        log.warning("bed %d is calling", bed.number)
        return None

    def edit_bed(
        self,
        bed: int,
        name: Optional[str] = None,
        doctor: Optional[str] = None,
        nurses: Optional[str] = None,
        capacity: Optional[int] = None,
    ) -> Bed:
        """Change a bed's details, store them in the file and tell its monitor.

        Empty or missing values keep what the bed already shows.
        """
        target = self._bed(bed)
        if name:
            target.name = name
        if doctor:
            target.doctor = doctor
        if nurses:
            target.nurses = nurses
        if capacity is not None:
            target.capacity = capacity

        record = PatientRecord(bed, target.name, target.doctor, target.nurses, target.capacity)
        lines = upsert_line(read_lines(self.path), bed, record.to_line())
        write_lines(self.path, lines)

        if target.connection is not None:
            target.connection.write(target.patient_info().to_json().encode("utf-8"))
        return target

    def acknowledge(self, bed: int) -> str:
        """Clear a bed's call and tell its monitor that the call was answered."""
        target = self._bed(bed)
        target.calling = False
        reply = target.patient_info(acknowledged=True).to_json()
        if target.connection is not None:
            target.connection.write(reply.encode("utf-8"))
        return reply

    def _forget_connection(self, connection: Any) -> None:
        for bed in self.beds.values():
            if bed.connection is connection:
                bed.connection = None


async def _reload_forever(ward: Ward) -> None:
    while True:
        try:
            ward.reload()
        except (OSError, ValueError) as exc:
            log.error("cannot load bed records: %s", exc)
        await asyncio.sleep(RELOAD_SECONDS)


async def serve(ward: Ward, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
    """Accept bedside monitors and keep the ward up to date, forever."""
    clients: List[asyncio.StreamWriter] = []

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        peer = writer.get_extra_info("peername")
        log.info("new client %s", peer)
        clients.append(writer)
        try:
            while True:
                try:
                    data = await reader.read(4096)
                except OSError:
                    break
                if not data:
                    break
                log.debug("%s: %r", peer, data)
                try:
                    ward.handle_message(data, writer)
                except ProtocolError as exc:
                    log.warning("bad message from %s: %s", peer, exc)
        finally:
            clients.remove(writer)
            ward._forget_connection(writer)
            writer.close()
            log.info("client %s left", peer)

    server = await asyncio.start_server(handle, host, port)
    reloader = asyncio.create_task(_reload_forever(ward))
    try:
        async with server:
            await server.serve_forever()
    finally:
        reloader.cancel()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Ward infusion server.")
    parser.add_argument("--records", default=DEFAULT_RECORDS, help="bed record file")
    parser.add_argument("--host", default=DEFAULT_HOST, help="address to listen on")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to listen on")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    ward = Ward(args.records)
    try:
        asyncio.run(serve(ward, args.host, args.port))
    except KeyboardInterrupt:
        pass
    except OSError as exc:
        log.error("server failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())