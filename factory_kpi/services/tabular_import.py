"""
Parsing of uploaded spreadsheets (CSV/TSV text exports and XLSX workbooks).

Text exports from Turkish Excel installs arrive in a mix of encodings and
delimiters, so both are detected:

  - encoding: every candidate that decodes cleanly is scored by the number of
    Turkish letters it yields; the highest score wins, ties keep the earlier
    candidate, and a byte-order mark short-circuits the search when the bytes
    behind it decode under it
  - delimiter: the candidate that splits the first two lines into the same,
    largest number of columns

The user import helpers map free-form sheet headers (English or Turkish) onto
user fields.
"""

from __future__ import annotations

import codecs
import io
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from factory_kpi.core.security import generate_password

logger = logging.getLogger(__name__)

ENCODINGS = ("windows-1254", "iso-8859-9", "utf-8", "utf-16-le", "utf-16-be")
TURKISH_CHARS = "çÇğĞıİöÖşŞüÜ"
REPLACEMENT_CHAR = "�"
DELIMITERS = ("\t", ";", ",", "|")
MAX_SERIES_POINTS = 1000
EXCEL_EXTENSIONS = (".xlsx", ".xls")

_BOMS = (
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)
_EDGE_QUOTES = re.compile(r"^[\"']+|[\"']+$")
_HEADER_JUNK = re.compile(r"[^\w\s" + TURKISH_CHARS + r"\-_]", re.ASCII)
_NOT_NUMERIC = re.compile(r"[^0-9,.\-]")
_WHITESPACE = re.compile(r"\s+")


class TabularImportError(ValueError):
    """The upload could not be turned into a table."""


@dataclass
class ParsedTable:
    columns: List[str]
    rows: List[Dict[str, Any]]
    encoding: Optional[str] = None
    delimiter: Optional[str] = None


@dataclass
class ChartSeries:
    x_column: Optional[str]
    y_column: Optional[str]
    points: List[Dict[str, Any]] = field(default_factory=list)
    statistics: Dict[str, Any] = field(default_factory=dict)


def _turkish_score(text: str) -> int:
    return sum(text.count(ch) for ch in TURKISH_CHARS) - 10 * text.count(REPLACEMENT_CHAR)


# PUBLIC_INTERFACE
def decode_bytes(data: bytes) -> Tuple[str, str]:
    """
    Decode raw upload bytes, returning (text, encoding).

    A byte-order mark that does not match the bytes behind it is not trusted: a
    broken UTF-16 file keeps what decodes and drops the rest, a UTF-8 mark in front
    of single-byte text is stripped and the candidates are scored as usual.
    """
    for bom, encoding in _BOMS:
        if not data.startswith(bom):
            continue
        try:
            return data.decode(encoding), encoding
        except UnicodeDecodeError as exc:
            logger.info("Byte-order mark does not match the content (%s)", exc.reason)
        if encoding == "utf-16":
            return data.decode(encoding, errors="replace").replace(REPLACEMENT_CHAR, ""), encoding
        data = data[len(bom):]
        break

    best_text: Optional[str] = None
    best_encoding = ""
    best_score = -1
    for encoding in ENCODINGS:
        try:
            decoded = data.decode(encoding)
        except UnicodeDecodeError:
            continue
        if REPLACEMENT_CHAR in decoded:
            continue
        score = _turkish_score(decoded)
        if score > best_score:
            best_score = score
            best_encoding = encoding
            best_text = decoded

    # iso-8859-9 maps every byte value, so some candidate always decodes
    assert best_text is not None
    return best_text, best_encoding


# PUBLIC_INTERFACE
def detect_delimiter(text: str) -> str:
    """Pick the delimiter splitting the first two lines into equal, maximal column counts."""
    lines = text.split("\n")
    first = lines[0] if lines else ""
    second = lines[1] if len(lines) > 1 else ""
    best, max_columns = "\t", 0
    for delimiter in DELIMITERS:
        count = len(first.split(delimiter))
        if count == len(second.split(delimiter)) and count > max_columns:
            best, max_columns = delimiter, count
    return best


def _strip_quotes(value: str) -> str:
    return _EDGE_QUOTES.sub("", value.strip())


# PUBLIC_INTERFACE
def clean_header(raw: str, index: int) -> str:
    """Normalize a header cell; empty results get a positional Column_<n> name."""
    header = _WHITESPACE.sub(" ", _strip_quotes(raw)).strip()
    header = _HEADER_JUNK.sub("", header.replace(REPLACEMENT_CHAR, "")).strip()
    return header or f"Column_{index + 1}"


# PUBLIC_INTERFACE
def coerce_cell(raw: Any) -> Any:
    """
    Turn a text cell into a float when its digits form a number, else cleaned text.

    Turkish decimal commas are accepted ("12,5" -> 12.5) and unit noise is ignored
    ("%95" -> 95.0).
    """
    if raw is None:
        return ""
    text = _strip_quotes(str(raw)).replace(REPLACEMENT_CHAR, "").strip()
    numeric = _NOT_NUMERIC.sub("", text).replace(",", ".")
    if numeric:
        try:
            return float(numeric)
        except ValueError:
            pass
    return text


def _unique_columns(columns: List[str]) -> List[str]:
    seen: Dict[str, int] = {}
    unique = []
    for name in columns:
        if name in seen:
            seen[name] += 1
            name = f"{name}_{seen[name]}"
        else:
            seen[name] = 1
        unique.append(name)
    return unique


# PUBLIC_INTERFACE
def parse_delimited(text: str, delimiter: Optional[str] = None) -> ParsedTable:
    """Parse delimited text into typed rows. Blank lines and blank rows are dropped."""
    lines = [line for line in text.split("\n") if line.strip()]
    if not lines:
        raise TabularImportError("The file contains no data")
    delimiter = delimiter or detect_delimiter(text)
    columns = _unique_columns([clean_header(h, i) for i, h in enumerate(lines[0].split(delimiter))])

    rows: List[Dict[str, Any]] = []
    for line in lines[1:]:
        values = line.split(delimiter)
        row = {col: coerce_cell(values[i] if i < len(values) else "") for i, col in enumerate(columns)}
        if any(v != "" for v in row.values()):
            rows.append(row)
    return ParsedTable(columns=columns, rows=rows, delimiter=delimiter)


def _read_workbook(data: bytes) -> List[List[Any]]:
    """First sheet as a list of rows; empty cells become ''."""
    try:
        frame = pd.read_excel(io.BytesIO(data), header=None, dtype=object, engine="openpyxl")
    except Exception as exc:
        raise TabularImportError(f"Could not read the Excel file: {exc}") from exc
    frame = frame.astype(object).where(pd.notna(frame), "")
    return frame.values.tolist()


def _is_excel(file_name: Optional[str]) -> bool:
    return bool(file_name) and file_name.lower().endswith(EXCEL_EXTENSIONS)


# PUBLIC_INTERFACE
def parse_chart_upload(data: bytes, file_name: Optional[str] = None) -> ParsedTable:
    """Parse an uploaded chart source file (CSV/TSV text or XLSX)."""
    if not data:
        raise TabularImportError("The file is empty")
    if _is_excel(file_name):
        matrix = _read_workbook(data)
        if not matrix:
            raise TabularImportError("The file contains no data")
        columns = _unique_columns([clean_header(str(h), i) for i, h in enumerate(matrix[0])])
        rows = []
        for values in matrix[1:]:
            row = {col: coerce_cell(values[i] if i < len(values) else "") for i, col in enumerate(columns)}
            if any(v != "" for v in row.values()):
                rows.append(row)
        return ParsedTable(columns=columns, rows=rows)

    text, encoding = decode_bytes(data)
    table = parse_delimited(text)
    table.encoding = encoding
    return table


def _to_number(value: Any) -> float:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return 0.0 if math.isnan(value) else float(value)
    try:
        return float(str(value).strip().replace(",", "."))
    except ValueError:
        return 0.0


# PUBLIC_INTERFACE
def build_series(
    table: ParsedTable,
    x_column: Optional[str] = None,
    y_column: Optional[str] = None,
    limit: int = MAX_SERIES_POINTS,
) -> ChartSeries:
    """
    Build chart points from two columns (defaults: the first two).

    Non-numeric y values count as 0. At most `limit` points are returned.
    """
    for name in (x_column, y_column):
        if name and name not in table.columns:
            raise TabularImportError(f"Unknown column: {name}")
    x_column = x_column or (table.columns[0] if table.columns else None)
    y_column = y_column or (table.columns[1] if len(table.columns) > 1 else None)
    if x_column is None or y_column is None:
        return ChartSeries(x_column=x_column, y_column=y_column, statistics={"count": 0})

    points = [
        {"x": row.get(x_column, ""), "y": _to_number(row.get(y_column, 0))}
        for row in table.rows[:limit]
    ]
    values = [p["y"] for p in points]
    stats: Dict[str, Any] = {"count": len(values)}
    if values:
        stats.update(max=max(values), min=min(values), avg=sum(values) / len(values))
    return ChartSeries(x_column=x_column, y_column=y_column, points=points, statistics=stats)


# User import

USER_HEADER_MAP: Dict[str, str] = {
    "username": "username",
    "kullaniciadi": "username",
    "kullanici": "username",
    "name": "name",
    "adsoyad": "name",
    "isim": "name",
    "ad": "name",
    "email": "email",
    "eposta": "email",
    "mail": "email",
    "department": "department",
    "departman": "department",
    "bolum": "department",
    "role": "role",
    "rol": "role",
    "yetki": "role",
    "password": "password",
    "sifre": "password",
    "parola": "password",
    "permissions": "permissions",
    "izinler": "permissions",
    "status": "is_active",
    "durum": "is_active",
    "aktif": "is_active",
    "active": "is_active",
}

ROLE_MAP = {
    "admin": "admin",
    "yönetici": "admin",
    "manager": "manager",
    "müdür": "manager",
    "user": "user",
    "kullanıcı": "user",
}

STATUS_MAP = {"active": True, "aktif": True, "inactive": False, "pasif": False}


def map_role(value: Any) -> str:
    return ROLE_MAP.get(str(value or "").strip().lower(), "user")


def map_status(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return STATUS_MAP.get(str(value or "").strip().lower(), True)


_TURKISH_ASCII = str.maketrans("çÇğĞıİöÖşŞüÜ", "cCgGiIoOsSuU")


def normalize_header(header: str) -> str:
    """Lowercase ASCII letters only; Turkish letters are transliterated first."""
    return re.sub(r"[^a-z]", "", header.translate(_TURKISH_ASCII).lower())


# PUBLIC_INTERFACE
def suggest_user_mapping(headers: List[str]) -> Dict[str, str]:
    """Map sheet headers to user fields; the first header claiming a field wins."""
    mapping: Dict[str, str] = {}
    for header in headers:
        target = USER_HEADER_MAP.get(normalize_header(header))
        if target and target not in mapping.values():
            mapping[header] = target
    return mapping


def _user_cell(value: Any) -> str:
    return "" if value is None else _EDGE_QUOTES.sub("", str(value).strip(), count=1)


# PUBLIC_INTERFACE
def parse_user_upload(data: bytes, file_name: Optional[str] = None) -> ParsedTable:
    """Read a user sheet without numeric coercion; every cell stays text."""
    if not data:
        raise TabularImportError("The file is empty")
    if _is_excel(file_name):
        matrix = _read_workbook(data)
        if not matrix:
            raise TabularImportError("The Excel file is empty")
        headers = [str(h).strip() for h in matrix[0]]
        positions = [(i, h) for i, h in enumerate(headers) if h]
        rows = [
            {h: _user_cell(values[i] if i < len(values) else "") for i, h in positions}
            for values in matrix[1:]
            if any(str(v).strip() for v in values)
        ]
        return ParsedTable(columns=[h for _, h in positions], rows=rows)

    text, encoding = decode_bytes(data)
    lines = [line for line in re.split(r"\r?\n", text) if line.strip()]
    if not lines:
        raise TabularImportError("The file contains no data")
    first = lines[0]
    delimiter = ";" if ";" in first else ("\t" if "\t" in first else ",")
    headers = [_user_cell(h) for h in first.split(delimiter)]
    rows = []
    for line in lines[1:]:
        values = [_user_cell(v) for v in line.split(delimiter)]
        rows.append({h: values[i] if i < len(values) else "" for i, h in enumerate(headers)})
    return ParsedTable(columns=headers, rows=rows, encoding=encoding, delimiter=delimiter)


# PUBLIC_INTERFACE
def map_user_rows(
    rows: List[Dict[str, Any]],
    mapping: Dict[str, str],
    generate_passwords: bool = False,
    default_department: str = "General",
) -> List[Dict[str, Any]]:
    """Apply a header mapping to sheet rows, producing user dicts ready for import."""
    users = []
    for row in rows:
        if not any(str(v).strip() for v in row.values()):
            continue
        user: Dict[str, Any] = {
            "username": "",
            "name": "",
            "department": default_department,
            "role": "user",
            "is_active": True,
        }
        for column, target in mapping.items():
            value = str(row.get(column) or "").strip()
            if target == "role":
                user["role"] = map_role(value)
            elif target == "is_active":
                user["is_active"] = map_status(value)
            elif target == "department":
                user["department"] = value or default_department
            else:
                user[target] = value
        if generate_passwords and not user.get("password"):
            user["password"] = generate_password()
        if not user["name"]:
            user["name"] = user["username"]
        users.append(user)
    return users
