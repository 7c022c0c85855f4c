import io

import pytest
from openpyxl import Workbook

from storefront.core.exceptions import ValidationError
from storefront.services.import_parser import normalize_record, parse_csv, parse_xlsx


def test_parse_english_headers():
    rows = parse_csv(
        "name,description,price,stock,category\n"
        "Oolong,Roasted,8.80,20,Tea\n"
        "Sencha,,6.5,,Tea\n"
    )

    assert len(rows) == 2
    assert rows[0].name == "Oolong"
    assert rows[0].description == "Roasted"
    assert rows[0].price == "8.80"
    assert rows[0].stock == "20"
    assert rows[0].category_name == "Tea"
    assert rows[1].description is None
    assert rows[1].stock is None


def test_parse_chinese_headers():
    rows = parse_csv("商品名称,商品价格,商品库存,分类名称\n乌龙茶,8.80,20,茶\n")

    assert rows[0].name == "乌龙茶"
    assert rows[0].price == "8.80"
    assert rows[0].stock == "20"
    assert rows[0].category_name == "茶"


def test_values_are_trimmed_and_blank_lines_skipped():
    rows = parse_csv("name , price,category\n  Oolong , 8.80 , Tea \n\n,,\nSencha,6.5,Tea\n")

    assert [r.name for r in rows] == ["Oolong", "Sencha"]
    assert rows[0].price == "8.80"
    assert rows[0].category_name == "Tea"


def test_byte_order_mark_is_ignored():
    rows = parse_csv("\ufeffname,price,category\nOolong,8.80,Tea\n")
    assert rows[0].name == "Oolong"


def test_unparsable_values_are_left_for_the_reconciler():
    rows = parse_csv("name,price,stock,category\nOolong,cheap,many,Tea\n")
    assert (rows[0].price, rows[0].stock) == ("cheap", "many")


@pytest.mark.parametrize("text", ["", "   \n\n"])
def test_empty_file_is_rejected(text):
    with pytest.raises(ValidationError):
        parse_csv(text)


def test_unknown_header_is_rejected():
    with pytest.raises(ValidationError):
        parse_csv("foo,bar\n1,2\n")


def test_row_limit():
    text = "name,price,category\n" + "".join(f"P{i},1,C\n" for i in range(4))

    assert len(parse_csv(text, max_rows=4)) == 4
    with pytest.raises(ValidationError):
        parse_csv(text, max_rows=3)


def test_normalize_record_prefers_first_alias():
    result = normalize_record({"name": "", "product_name": "Fallback", "category": "Tea"})
    assert result.name == "Fallback"
    assert result.category_name == "Tea"


def workbook_bytes(*rows, title=None):
    workbook = Workbook()
    sheet = workbook.active
    if title:
        sheet.title = title
    for values in rows:
        sheet.append(list(values))
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def test_parse_xlsx_uses_first_non_empty_row_as_header():
    data = workbook_bytes(
        (None, None),
        ("name", "price", "stock", "category"),
        ("Oolong", 8.8, 20, "Tea"),
        (None, None, None, None),
        ("Sencha", "6.50", None, "Tea"),
    )

    rows = parse_xlsx(data)

    assert [r.name for r in rows] == ["Oolong", "Sencha"]
    assert rows[0].price == "8.8"
    assert rows[0].stock == "20"
    assert rows[1].stock is None
    assert rows[1].category_name == "Tea"


def test_parse_xlsx_chinese_headers():
    rows = parse_xlsx(workbook_bytes(("商品名称", "商品价格", "分类"), ("乌龙茶", 8.8, "茶")))
    assert (rows[0].name, rows[0].category_name) == ("乌龙茶", "茶")


def test_parse_xlsx_errors():
    with pytest.raises(ValidationError):
        parse_xlsx(b"")
    with pytest.raises(ValidationError):
        parse_xlsx(b"not a workbook")
    with pytest.raises(ValidationError):
        parse_xlsx(workbook_bytes())
    with pytest.raises(ValidationError):
        parse_xlsx(workbook_bytes(("foo", "bar"), (1, 2)))
    with pytest.raises(ValidationError):
        parse_xlsx(workbook_bytes(("name", "price"), ("A", 1), ("B", 2)), max_rows=1)


def test_normalize_record_stringifies_cell_values():
    result = normalize_record({"name": 2024, "price": 12.5, "stock": 3, "category": "Tea"})
    assert (result.name, result.price, result.stock) == ("2024", "12.5", "3")
