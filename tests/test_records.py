import pytest

from infusionward.records import (
    PatientRecord,
    RecordBook,
    read_lines,
    upsert_line,
    write_lines,
)


def test_to_line_format():
    record = PatientRecord(3, "Alice", "Dr Bob", "Carol", 50)
    assert record.to_line() == "3:Alice:Dr Bob:Carol:50\n"


def test_from_line_round_trip():
    record = PatientRecord(7, "秦天", "秦羽", "秦瑶", 20)
    assert PatientRecord.from_line(record.to_line()) == record


def test_from_line_accepts_crlf():
    record = PatientRecord.from_line("2:Ann:Doc:Nurse:30\r\n")
    assert record == PatientRecord(2, "Ann", "Doc", "Nurse", 30)


def test_from_line_unreadable_capacity_is_zero():
    record = PatientRecord.from_line("1:Ann:Doc:Nurse:20ml\n")
    assert record.capacity == 0
    assert record.name == "Ann"


@pytest.mark.parametrize("line", ["1:Ann:Doc\n", "x:Ann:Doc:Nurse:20\n", "0:Ann:Doc:Nurse:20\n"])
def test_from_line_rejects_bad_lines(line):
    with pytest.raises(ValueError):
        PatientRecord.from_line(line)


def test_upsert_replaces_existing_line():
    lines = ["a\n", "b\n", "c\n"]
    result = upsert_line(lines, 2, "new\n")
    assert result == ["a\n", "new\n", "c\n"]
    assert lines == ["a\n", "b\n", "c\n"]


def test_upsert_appends_when_bed_not_below_count():
    lines = ["a\n", "b\n"]
    assert upsert_line(lines, 2, "new\n") == ["a\n", "b\n", "new\n"]
    assert upsert_line(lines, 9, "new\n") == ["a\n", "b\n", "new\n"]


def test_upsert_rejects_bed_zero():
    with pytest.raises(ValueError):
        upsert_line(["a\n", "b\n"], 0, "new\n")


def test_write_then_read_round_trip(tmp_path):
    path = tmp_path / "file.txt"
    lines = ["1:A:B:C:10\n", "2:D:E:F:20\n"]
    write_lines(path, lines)
    assert read_lines(path) == lines


def test_read_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_lines(tmp_path / "missing.txt")


def test_record_book_add_and_save(tmp_path):
    path = tmp_path / "file.txt"
    write_lines(path, ["1:A:B:C:10\n", "2:D:E:F:20\n", "3:G:H:I:30\n"])
    book = RecordBook(path)
    book.add(1, "Zed", "Doc", "Nurse", 40)
    book.add(5, "Yan", "Doc", "Nurse", 60)
    book.save()
    stored = [PatientRecord.from_line(line) for line in read_lines(path)]
    assert stored[0] == PatientRecord(1, "Zed", "Doc", "Nurse", 40)
    assert stored[1].name == "D"
    assert stored[-1] == PatientRecord(5, "Yan", "Doc", "Nurse", 60)
    assert len(stored) == 4


def test_record_book_not_saved_until_save(tmp_path):
    path = tmp_path / "file.txt"
    write_lines(path, ["1:A:B:C:10\n"])
    book = RecordBook(path)
    book.add(1, "Zed", "Doc", "Nurse", 40)
    assert read_lines(path) == ["1:A:B:C:10\n"]