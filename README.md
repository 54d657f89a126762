# infusionward

A small infusion-monitoring system for a hospital ward, in three cooperating
parts that each run as a command:

- **Drop sensor** (`infusionward-sensor`): once a second writes a frame of the
  form `[elapsed:drops]` to a serial port, adding a fixed number of drops per
  second.
- **Bedside monitor** (`infusionward-client`): reads sensor frames from a
  serial port, works out the drip rate (drops per minute) and the minutes left
  for the bottle (each drop counts as 0.01 ml, the bottle 50 ml until the
  server says otherwise), and reports them to the ward server over TCP as
  JSON. While the server is unreachable it retries every three seconds.
- **Ward server** (`infusionward-server`): a twelve-bed ward of three rows of
  four beds. It accepts bedside monitors over TCP, answers their requests for
  patient details, records each bed's live rate, time left and nurse call, and
  reloads the bed record file every three seconds.

## Installing

```
pip install .
```

The package needs `pyserial` for the serial links.

## Running

Start the ward server (listens on `0.0.0.0:9999` and reads `file.txt` by
default):

```
infusionward-server --records ward.txt --host 0.0.0.0 --port 9999
```

Start a bedside monitor next to each bed (defaults: server `192.168.1.104`,
port `9999`, serial port `COM1`):

```
infusionward-client --host 127.0.0.1 --port 9999 --serial COM1
```

Start the drop sensor on the serial line the monitor reads from (defaults:
port `COM2`, one drop per second):

```
infusionward-sensor --port COM2 --rate 2
```

All three log what they do to standard error and stop on Ctrl-C.

## Bed record file

One line per bed, in the form `bed:name:doctor:nurses:capacity`, where
capacity is in millilitres:

```
1:Alice:Bob:Carol:50
2:Dave:Erin:Frank:100
```

`infusionward.records` reads and writes this file: `PatientRecord.from_line`
and `PatientRecord.to_line` convert single lines, `read_lines` and
`write_lines` handle the whole file, and `upsert_line` stores a line for a
bed. `RecordBook` loads an existing file, collects changes with `add` and
writes them back with `save`.

## Messages

Sensor to bedside monitor, over the serial line: `[30:58]` (30 seconds
elapsed, 58 drops), built and read by `format_sensor_frame` and
`parse_sensor_frame` in `infusionward.protocol`.

Bedside monitor to ward server (`Report`):

```
{"number":3,"time":42,"speed":60,"flag":0}
```

`flag` is a `ReportFlag`: `0` (`READING`) for a rate report, `1` (`CALL`) for
a nurse call and `2` (`HELLO`) to ask for the bed's patient details. The
monitor sends `HELLO` each time it connects.

Ward server to bedside monitor (`PatientInfo`):

```
{"name":"Alice","doctor":"Bob","nurses":"Carol","capacity":50,"flag":0}
```

`flag` is `0` for patient details and `1` when a call has been answered.
Messages that cannot be parsed raise `ProtocolError`.

## Using it as a library

```python
from pathlib import Path

from infusionward.client import InfusionMonitor
from infusionward.records import RecordBook
from infusionward.server import Ward

Path("ward.txt").touch()          # RecordBook and Ward read an existing file
book = RecordBook("ward.txt")
book.add(3, "Alice", "Bob", "Carol", 50)
book.save()

ward = Ward("ward.txt")
ward.reload()

monitor = InfusionMonitor()
hello = monitor.set_bed(3)        # Report asking for bed 3's details
report = monitor.handle_sensor_frame("[60:60]")
print(report.to_json())           # {"number":3,"time":83,"speed":60,"flag":0}
```

`Ward.handle_message(data, connection)` applies a monitor's message (the
connection needs a `write` method), `Ward.edit_bed` changes a bed's details,
stores them in the record file and sends them to the bed's monitor, and
`Ward.acknowledge` clears a bed's call and tells its monitor. The sensor is
`DropSensor` in `infusionward.sensor`, driven by `start`, `tick`, `reset`
and `set_rate`; `run_client` and `serve` are the coroutines behind the client
and server commands.

## What it does not do

- There is no screen: the ward server keeps each bed's state in memory and
  only logs it. Editing a bed and acknowledging a call are done through
  `Ward.edit_bed` and `Ward.acknowledge`; the `infusionward-server` command
  offers no way to do either.
- The `infusionward-client` command has no way to change the bed number or
  to call the nurse; those are `InfusionMonitor.set_bed` and
  `InfusionMonitor.call_nurse`. A call sets `alarm_active`; no sound is
  played.
- There is no command for entering bed records; write the file by hand or
  with `RecordBook`.

## Tests

```
pip install .[test]
pytest
```