"""Import files -> ImportRow. Accepts the English and Chinese column names catalog exports use."""
import csv
import io
import logging
import zipfile
from typing import Any, Dict, Iterable, List, Optional

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from storefront.core.config import settings
from storefront.core.exceptions import ValidationError
from storefront.schemas.imports import ImportRow

logger = logging.getLogger(__name__)

# Field -> accepted header names, first match wins
COLUMN_ALIASES: Dict[str, List[str]] = {
    "name": ["name", "NAME", "product_name", "商品名称"],
    "description": ["description", "DESCRIPTION", "product_description", "商品描述"],
    "price": ["price", "PRICE", "product_price", "商品价格"],
    "stock": ["stock", "STOCK", "product_stock", "商品库存"],
    "image": ["image", "IMAGE", "product_image", "image_url", "IMAGE_URL", "商品图片", "图片链接"],
    "category_name": ["category", "CATEGORY", "category_name", "分类名称", "分类"],
}
KNOWN_HEADERS = {alias for aliases in COLUMN_ALIASES.values() for alias in aliases}


def _cell_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = value if isinstance(value, str) else str(value)
    return text.strip() or None


def _pick(record: Dict[str, Any], aliases: List[str]) -> Optional[str]:
    for alias in aliases:
        value = _cell_text(record.get(alias))
        if value is not None:
            return value
    return None


def normalize_record(record: Dict[str, Any]) -> ImportRow:
    """Map one raw record onto ImportRow. Values become trimmed strings; the reconciler validates them."""
    record = {_cell_text(k) or "": v for k, v in record.items()}
    values = {field: _pick(record, aliases) for field, aliases in COLUMN_ALIASES.items()}
    return ImportRow(**values)


def _check_headers(headers: Iterable[Any]) -> None:
    if not {_cell_text(h) for h in headers} & KNOWN_HEADERS:
        raise ValidationError("Import file has no recognizable header row", field="file")


def _collect(records: Iterable[Dict[str, Any]], max_rows: int) -> List[ImportRow]:
    rows: List[ImportRow] = []
    for record in records:
        if not any(_cell_text(v) for v in record.values() if not isinstance(v, list)):
            continue  # blank line
        if len(rows) >= max_rows:
            raise ValidationError(f"Import file exceeds {max_rows} rows", field="file")
        rows.append(normalize_record(record))
    return rows


def parse_csv(text: str, max_rows: Optional[int] = None) -> List[ImportRow]:
    """
    Parse CSV text into rows, in file order.

    Raises:
        ValidationError: empty file, no recognizable header, or too many rows.
            Per-row problems are not raised here.
    """
    max_rows = max_rows or settings.IMPORT_MAX_ROWS
    text = text.lstrip("\ufeff")  # Excel writes a BOM
    if not text.strip():
        raise ValidationError("Import file is empty", field="file")

    reader = csv.DictReader(io.StringIO(text))
    _check_headers(reader.fieldnames or [])
    rows = _collect(reader, max_rows)

    logger.info(f"[Import] Parsed {len(rows)} row(s) from CSV")
    return rows


def parse_xlsx(data: bytes, max_rows: Optional[int] = None) -> List[ImportRow]:
    """
    Parse the first worksheet of an .xlsx workbook. The first non-empty row is
    the header; same column names and errors as parse_csv.
    """
    max_rows = max_rows or settings.IMPORT_MAX_ROWS
    if not data:
        raise ValidationError("Import file is empty", field="file")
    try:
        workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        logger.warning(f"[Import] Unreadable workbook: {exc}")
        raise ValidationError("Import file is not a valid .xlsx workbook", field="file")

    try:
        sheet_rows = workbook.worksheets[0].iter_rows(values_only=True) if workbook.worksheets else iter(())
        header = None
        for values in sheet_rows:
            if any(_cell_text(v) for v in values):
                header = [_cell_text(v) or "" for v in values]
                break
        if header is None:
            raise ValidationError("Import file is empty", field="file")
        _check_headers(header)
        rows = _collect((dict(zip(header, values)) for values in sheet_rows), max_rows)
    finally:
        workbook.close()

    logger.info(f"[Import] Parsed {len(rows)} row(s) from XLSX")
    return rows
