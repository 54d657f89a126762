"""Messages exchanged between the drop sensor, bedside monitors and the ward server."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Tuple, Union

Number = Union[int, float]


class ProtocolError(ValueError):
    """Raised when a message cannot be understood."""


class ReportFlag(IntEnum):
    """Kind of report a bedside monitor sends to the server."""

    READING = 0
    CALL = 1
    HELLO = 2


def _compact(value: Number) -> Number:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _dumps(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def _load_object(data: Union[str, bytes]) -> Dict[str, Any]:
    if isinstance(data, (bytes, bytearray)):
        try:
            data = bytes(data).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ProtocolError("message is not valid UTF-8") from exc
    try:
        obj = json.loads(data)
    except json.JSONDecodeError as exc:
        raise ProtocolError(f"malformed JSON: {exc}") from exc
    if not isinstance(obj, dict):
        raise ProtocolError("message is not a JSON object")
    return obj


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return 0


def _as_float(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


@dataclass
class Report:
    """A bedside monitor's report: bed number, minutes left, drops per minute."""

    number: int
    time: Number
    speed: Number
    flag: ReportFlag = ReportFlag.READING

    def to_json(self) -> str:
        return _dumps(
            {
                "number": self.number,
                "time": _compact(self.time),
                "speed": _compact(self.speed),
                "flag": int(self.flag),
            }
        )

    @classmethod
    def from_json(cls, data: Union[str, bytes]) -> "Report":
        """Parse a report; missing fields count as zero."""
        obj = _load_object(data)
        try:
            flag = ReportFlag(_as_int(obj.get("flag")))
        except ValueError as exc:
            raise ProtocolError(f"unknown report flag: {obj.get('flag')!r}") from exc
        return cls(
            number=_as_int(obj.get("number")),
            time=_as_float(obj.get("time")),
            speed=_as_float(obj.get("speed")),
            flag=flag,
        )


@dataclass
class PatientInfo:
    """The server's reply: patient details, and whether a call was acknowledged."""

    name: str
    doctor: str
    nurses: str
    capacity: Number
    acknowledged: bool = False

    def to_json(self) -> str:
        return _dumps(
            {
                "name": self.name,
                "doctor": self.doctor,
                "nurses": self.nurses,
                "capacity": _compact(self.capacity),
                "flag": 1 if self.acknowledged else 0,
            }
        )

    @classmethod
    def from_json(cls, data: Union[str, bytes]) -> "PatientInfo":
        """Parse a reply; missing fields are empty or zero."""
        obj = _load_object(data)
        return cls(
            name=_as_str(obj.get("name")),
            doctor=_as_str(obj.get("doctor")),
            nurses=_as_str(obj.get("nurses")),
            capacity=_as_float(obj.get("capacity")),
            acknowledged=_as_int(obj.get("flag")) == 1,
        )


def format_sensor_frame(elapsed: int, drops: int) -> str:
    """Build a sensor frame ``[seconds:drops]``."""
    return f"[{elapsed}:{drops}]"


def parse_sensor_frame(data: Union[str, bytes]) -> Tuple[int, int]:
    """Return ``(elapsed_seconds, drops)`` from a sensor frame."""
    if isinstance(data, (bytes, bytearray)):
        data = bytes(data).decode("utf-8", errors="replace")
    fields = data.replace("[", "").replace("]", "").split(":")
    if len(fields) < 2:
        raise ProtocolError(f"sensor frame needs two fields: {data!r}")
    try:
        return int(fields[0].strip()), int(fields[1].strip())
    except ValueError as exc:
        raise ProtocolError(f"sensor frame fields are not integers: {data!r}") from exc