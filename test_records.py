#!/usr/bin/env python3
"""
Test lettura tabella e normalizzazione record
"""
import pytest

from uprov.exceptions import MalformedRowError
from uprov.records import (
    InputRecord,
    MalformedRowPolicy,
    derive_group_name,
    normalize,
    open_table,
    read_table,
)

HEADER = "FirstName,LastName,UserID,JobRole,StartingPassword\n"


def make(first="Jane", last="Doe", user_id="jdoe", role="shipping", password="P@ssword1234!"):
    return InputRecord(first, last, user_id, role, password, line_number=2)


def test_normalize_trims_every_field():
    record = normalize(make("  Jane ", "\tDoe ", " jdoe ", " shipping ", " P@ss "))
    assert record.first_name == "Jane"
    assert record.last_name == "Doe"
    assert record.user_id == "jdoe"
    assert record.group_name == "shipping"
    assert record.starting_password == "P@ss"
    assert record.full_name == "Jane Doe"


@pytest.mark.parametrize("role, expected", [
    ("Sales Manager", "sales_manager"),
    ("CEO", "ceo"),
    ("  Head of  IT ", "head_of__it"),
    ("", "jdoe"),
    ("   ", "jdoe"),
])
def test_group_name_derivation(role, expected):
    assert derive_group_name(role, "jdoe") == expected
    assert normalize(make(role=role)).group_name == expected


def test_empty_user_id_is_sentinel():
    record = normalize(make(user_id="   ", role=""))
    assert record.is_empty
    assert record.user_id == ""


def test_user_id_is_not_sanitized():
    assert normalize(make(user_id=" bad name! ")).user_id == "bad name!"


def test_full_name_drops_missing_parts():
    assert normalize(make(first="", last="Doe")).full_name == "Doe"
    assert normalize(make(first="", last="")).full_name == ""


def test_password_not_in_repr():
    raw = make(password="S3cret!")
    assert "S3cret!" not in repr(raw)
    assert "S3cret!" not in repr(normalize(raw))


def test_read_table_skips_header_and_blank_lines():
    lines = [HEADER, "Jane,Doe,jdoe,shipping,pw\n", "\n", "Mateo,Jackson,mjackson,CEO,pw\r\n"]
    records = list(read_table(lines))
    assert [r.user_id for r in records] == ["jdoe", "mjackson"]
    assert [r.line_number for r in records] == [2, 4]
    assert records[1].starting_password == "pw"


def test_read_table_header_content_not_checked():
    records = list(read_table(["whatever\n", "a,b,c,d,e\n"]))
    assert len(records) == 1
    assert records[0].user_id == "c"


def test_read_table_is_lazy():
    consumed = []

    def source():
        for line in [HEADER, "a,b,u1,r,p\n", "a,b,u2,r,p\n"]:
            consumed.append(line)
            yield line

    rows = read_table(source())
    first = next(rows)
    assert first.user_id == "u1"
    assert len(consumed) == 2


def test_read_table_empty_source():
    assert list(read_table([])) == []
    assert list(read_table([HEADER])) == []


def test_malformed_row_skipped_with_warning():
    warnings = []
    lines = [HEADER, "only,three,fields\n", "a,b,u1,r,p\n", "a,b,u2,r,p,extra\n"]
    records = list(read_table(lines, warn=warnings.append))
    assert [r.user_id for r in records] == ["u1"]
    assert len(warnings) == 2
    assert "Riga 2" in warnings[0]
    assert "Riga 4" in warnings[1]


def test_malformed_row_fails_in_strict_mode():
    lines = [HEADER, "a,b,u1,r,p\n", "a,b,u2\n"]
    rows = read_table(lines, policy=MalformedRowPolicy.FAIL)
    assert next(rows).user_id == "u1"
    with pytest.raises(MalformedRowError) as exc:
        next(rows)
    assert exc.value.line_number == 3
    assert exc.value.field_count == 3


def test_custom_delimiter_and_no_quoting():
    records = list(read_table(["h\n", 'a;b;u1;"Sales, EMEA";p\n'], delimiter=";"))
    assert records[0].job_role == '"Sales, EMEA"'

    # Un valore con il delimitatore sposta le colonne: riga malformata
    assert list(read_table(["h\n", 'a,b,u1,"Sales, EMEA",p\n'])) == []


def test_invalid_delimiter():
    with pytest.raises(ValueError):
        list(read_table([HEADER], delimiter=",,"))


def test_open_table_handles_bom(tmp_path):
    path = tmp_path / "users.csv"
    path.write_text(HEADER + "Jane,Doe,jdoe,shipping,pw\n", encoding="utf-8-sig")
    with open_table(str(path)) as fh:
        records = list(read_table(fh))
    assert records[0].user_id == "jdoe"
