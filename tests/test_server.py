import pytest

from infusionward.protocol import PatientInfo, ProtocolError, Report, ReportFlag
from infusionward.server import Bed, Ward

RECORDS = "1:Alice:Dr Lee:Nina:50\n2:Bob:Dr Kim:Omar:20\n3:Cat:Dr Roe:Pia:30\n"


class FakeConnection:
    def __init__(self):
        self.sent = []

    def write(self, data):
        self.sent.append(data)


@pytest.fixture
def ward(tmp_path):
    path = tmp_path / "records.txt"
    path.write_text(RECORDS, encoding="utf-8")
    w = Ward(path)
    w.reload()
    return w


def test_ward_has_twelve_beds_in_grid():
    w = Ward("unused.txt")
    assert sorted(w.beds) == list(range(1, 13))
    positions = {(b.row, b.column) for b in w.beds.values()}
    assert len(positions) == 12
    assert w.beds[5].row == 1 and w.beds[5].column == 0


def test_reload_fills_listed_beds(ward):
    assert ward.beds[1].name == "Alice"
    assert ward.beds[1].doctor == "Dr Lee"
    assert ward.beds[2].nurses == "Omar"
    assert ward.beds[3].capacity == 30
    assert ward.beds[4].name == ""


def test_reload_missing_file(tmp_path):
    w = Ward(tmp_path / "absent.txt")
    with pytest.raises(FileNotFoundError):
        w.reload()


def test_reload_unknown_bed(tmp_path):
    path = tmp_path / "records.txt"
    path.write_text("13:X:Y:Z:10\n", encoding="utf-8")
    with pytest.raises(ValueError):
        Ward(path).reload()


def test_hello_sends_patient_info(ward):
    conn = FakeConnection()
    hello = Report(1, 60, 110, ReportFlag.HELLO).to_json()
    reply = ward.handle_message(hello, conn)
    assert conn.sent == [
        b'{"name":"Alice","doctor":"Dr Lee","nurses":"Nina","capacity":50,"flag":0}'
    ]
    assert reply == conn.sent[0].decode("utf-8")
    assert ward.beds[1].connection is conn


def test_reading_updates_bed(ward):
    conn = FakeConnection()
    result = ward.handle_message(Report(2, 45, 88).to_json(), conn)
    assert result is None
    assert ward.beds[2].speed == 88
    assert ward.beds[2].minutes_left == 45
    assert conn.sent == []


def test_call_then_acknowledge(ward):
    conn = FakeConnection()
    ward.handle_message(Report(3, 60, 110, ReportFlag.HELLO).to_json(), conn)
    ward.handle_message(Report(3, 0, 0, ReportFlag.CALL).to_json(), conn)
    assert ward.beds[3].calling is True
    reply = ward.acknowledge(3)
    assert ward.beds[3].calling is False
    info = PatientInfo.from_json(conn.sent[-1])
    assert info.acknowledged is True
    assert info.name == "Cat"
    assert reply == conn.sent[-1].decode("utf-8")


def test_acknowledge_without_monitor(ward):
    reply = ward.acknowledge(4)
    assert PatientInfo.from_json(reply).acknowledged is True
    assert ward.beds[4].connection is None


def test_acknowledge_unknown_bed(ward):
    with pytest.raises(KeyError):
        ward.acknowledge(99)


def test_malformed_message(ward):
    with pytest.raises(ProtocolError):
        ward.handle_message(b"not json", FakeConnection())


def test_message_for_unknown_bed(ward):
    with pytest.raises(ProtocolError):
        ward.handle_message(Report(13, 1, 1).to_json(), FakeConnection())


def test_edit_bed_replaces_line_and_keeps_blank_fields(ward):
    bed = ward.edit_bed(2, "Dan", "", None, None)
    assert bed.name == "Dan"
    assert bed.doctor == "Dr Kim"
    lines = ward.path.read_text(encoding="utf-8").splitlines(keepends=True)
    assert lines[1] == "2:Dan:Dr Kim:Omar:20\n"
    assert len(lines) == 3


def test_edit_last_bed_appends(ward):
    ward.edit_bed(3, "Eve", "Dr Roe", "Pia", 40)
    lines = ward.path.read_text(encoding="utf-8").splitlines(keepends=True)
    assert len(lines) == 4
    assert lines[-1] == "3:Eve:Dr Roe:Pia:40\n"


def test_edit_bed_notifies_monitor(ward):
    conn = FakeConnection()
    ward.handle_message(Report(1, 60, 110, ReportFlag.HELLO).to_json(), conn)
    ward.edit_bed(1, None, None, "Ruth", 60)
    info = PatientInfo.from_json(conn.sent[-1])
    assert info.nurses == "Ruth"
    assert info.capacity == 60
    assert info.acknowledged is False


def test_edit_round_trips_through_reload(ward):
    ward.edit_bed(1, "Zed", "Dr Poe", "Lin", 70)
    fresh = Ward(ward.path)
    fresh.reload()
    assert fresh.beds[1] == Bed(1, "Zed", "Dr Poe", "Lin", 70)


def test_forget_connection(ward):
    conn = FakeConnection()
    ward.handle_message(Report(1, 60, 110, ReportFlag.HELLO).to_json(), conn)
    ward._forget_connection(conn)
    assert ward.beds[1].connection is None