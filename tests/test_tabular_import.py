import codecs
import io

import pytest
from openpyxl import Workbook

from factory_kpi.services.tabular_import import (
    ParsedTable,
    TabularImportError,
    build_series,
    clean_header,
    coerce_cell,
    decode_bytes,
    detect_delimiter,
    map_user_rows,
    parse_chart_upload,
    parse_delimited,
    parse_user_upload,
    suggest_user_mapping,
)


def test_decode_prefers_turkish_codepage():
    text, encoding = decode_bytes("Şehir;Üretim\nİzmir;5\n".encode("windows-1254"))
    assert encoding == "windows-1254"
    assert text.startswith("Şehir;Üretim")


def test_decode_utf8_and_bom():
    text, encoding = decode_bytes("Şehir;Değer\nÇorum;7\n".encode("utf-8"))
    assert encoding == "utf-8"
    assert "Çorum" in text

    text, encoding = decode_bytes(codecs.BOM_UTF8 + "Ay;Değer".encode("utf-8"))
    assert encoding == "utf-8-sig"
    assert text == "Ay;Değer"


def test_decode_distrusts_a_mismatched_byte_order_mark():
    # UTF-8 mark in front of a windows-1254 export
    text, encoding = decode_bytes(b"\xef\xbb\xbfAy;De\xf0er\n1;2\n")
    assert (text, encoding) == ("Ay;Değer\n1;2\n", "windows-1254")

    # UTF-16 cut off in the middle of a code unit
    text, encoding = decode_bytes(b"\xff\xfeA\x00;\x00B\x00\n")
    assert (text, encoding) == ("A;B", "utf-16")


@pytest.mark.parametrize(
    "text, expected",
    [
        ("a;b;c\n1;2;3", ";"),
        ("a,b\n1,2", ","),
        ("a\tb\tc\n1\t2\t3", "\t"),
        ("a|b\n1|2", "|"),
        ("single\nvalue", "\t"),
    ],
)
def test_detect_delimiter(text, expected):
    assert detect_delimiter(text) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("12,5", 12.5),
        ("%95", 95.0),
        (' "42" ', 42.0),
        ("-3.25", -3.25),
        ("abc", "abc"),
        ("1.234,5", "1.234,5"),
        ("M500", 500.0),
        (None, ""),
    ],
)
def test_coerce_cell(raw, expected):
    assert coerce_cell(raw) == expected


def test_clean_header():
    assert clean_header('  "Üretim  Miktarı" ', 0) == "Üretim Miktarı"
    assert clean_header("", 2) == "Column_3"
    assert clean_header("Fire (%)", 0) == "Fire"


def test_parse_delimited_skips_blank_rows_and_dedupes_headers():
    table = parse_delimited("Ay;Değer;Değer\nOcak;1;2\n;;\n\nŞubat;3\n")
    assert table.columns == ["Ay", "Değer", "Değer_2"]
    assert table.rows == [
        {"Ay": "Ocak", "Değer": 1.0, "Değer_2": 2.0},
        {"Ay": "Şubat", "Değer": 3.0, "Değer_2": ""},
    ]


def test_parse_delimited_rejects_empty_text():
    with pytest.raises(TabularImportError):
        parse_delimited("\n\n")


def test_build_series_defaults_and_limit():
    table = ParsedTable(columns=["x", "y", "z"], rows=[{"x": i, "y": i * 2, "z": "n/a"} for i in range(1500)])
    series = build_series(table)
    assert (series.x_column, series.y_column) == ("x", "y")
    assert len(series.points) == 1000
    assert series.statistics["max"] == 1998
    assert series.statistics["min"] == 0

    other = build_series(table, "x", "z", limit=3)
    assert [p["y"] for p in other.points] == [0.0, 0.0, 0.0]

    with pytest.raises(TabularImportError):
        build_series(table, y_column="missing")


def test_build_series_with_single_column():
    series = build_series(ParsedTable(columns=["only"], rows=[{"only": 1}]))
    assert series.points == []
    assert series.statistics == {"count": 0}


def _workbook_bytes(rows):
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def test_parse_chart_upload_reads_xlsx():
    data = _workbook_bytes([["Ay", "Değer"], ["Ocak", 10], ["Şubat", 12.5], [None, None]])
    table = parse_chart_upload(data, "trend.xlsx")
    assert table.columns == ["Ay", "Değer"]
    assert table.rows == [{"Ay": "Ocak", "Değer": 10.0}, {"Ay": "Şubat", "Değer": 12.5}]
    assert table.encoding is None


def test_parse_chart_upload_rejects_broken_workbook():
    with pytest.raises(TabularImportError):
        parse_chart_upload(b"not a zip", "trend.xlsx")


def test_suggest_user_mapping_understands_turkish_headers():
    mapping = suggest_user_mapping(["Kullanıcı Adı", "Ad Soyad", "E-posta", "Şifre", "Durum", "Notes"])
    assert mapping == {
        "Kullanıcı Adı": "username",
        "Ad Soyad": "name",
        "E-posta": "email",
        "Şifre": "password",
        "Durum": "is_active",
    }


def test_first_header_wins_a_field():
    assert suggest_user_mapping(["Email", "Mail"]) == {"Email": "email"}


def test_parse_user_upload_keeps_text():
    table = parse_user_upload(b"username,email,phone\nali,ali@factory.com,0123\n", "users.csv")
    assert table.columns == ["username", "email", "phone"]
    assert table.rows == [{"username": "ali", "email": "ali@factory.com", "phone": "0123"}]


def test_parse_user_upload_reads_xlsx():
    data = _workbook_bytes([["username", "email"], ["veli", "veli@factory.com"], [None, None]])
    table = parse_user_upload(data, "users.xlsx")
    assert table.rows == [{"username": "veli", "email": "veli@factory.com"}]


def test_map_user_rows():
    rows = [
        {"user": "ali", "mail": "ali@factory.com", "rol": "Admin", "durum": "Pasif", "dep": ""},
        {"user": "", "mail": "", "rol": "", "durum": "", "dep": ""},
    ]
    mapping = {"user": "username", "mail": "email", "rol": "role", "durum": "is_active", "dep": "department"}
    users = map_user_rows(rows, mapping, generate_passwords=True, default_department="General")
    assert len(users) == 1
    user = users[0]
    assert user["username"] == "ali"
    assert user["name"] == "ali"
    assert user["role"] == "admin"
    assert user["is_active"] is False
    assert user["department"] == "General"
    assert len(user["password"]) == 8
