import csv

import pytest

from asset_models import Employee, Department, STATUS_IDLE, STATUS_IN_USE
from config_manager import AppConfig
from error_handling import TransactionError
from import_service import (
    CSV_HEADER, ImportService, OUTCOME_DUPLICATE, OUTCOME_ERROR, OUTCOME_SUCCESS,
    decode_import_bytes, is_header_record,
)

HEADER = ",".join(CSV_HEADER)


def _snapshot(db):
    return (len(db.get_all_assets()), len(db.get_all_categories()),
            len(db.get_all_departments()), len(db.get_all_employees()))


def test_template_imports_three_assets(db, importer, tmp_path):
    path = importer.write_template(str(tmp_path / "template.csv"))

    result = importer.import_file(path)

    assert (result.success_count, result.skip_count, result.error_count) == (3, 0, 0)
    assert {c.name for c in db.get_all_categories()} == {"电脑设备", "办公家具", "电子设备"}
    assert {d.name for d in db.get_all_departments()} == {"技术部", "行政部"}

    laptop = db.get_asset_by_code("ZC001")
    assert (laptop.name, laptop.user_name, laptop.department_name) == ("联想笔记本电脑", "张三", "技术部")
    assert laptop.price == 6999
    assert laptop.status == STATUS_IN_USE

    printer = db.get_asset_by_code("ZC003")
    assert printer.user_id is None
    assert printer.status == STATUS_IDLE
    assert printer.remark == "待分配"


def test_template_file_layout(importer, tmp_path):
    path = importer.write_template(str(tmp_path / "template.csv"))
    with open(path, "rb") as f:
        assert f.read(3) == b"\xef\xbb\xbf"
    with open(path, newline="", encoding="utf-8-sig") as f:
        rows = list(csv.reader(f))
    assert rows[0] == CSV_HEADER
    assert rows[4] == []
    assert all(row[0].startswith("#") for row in rows[5:])


def test_reimport_is_idempotent(db, importer, tmp_path):
    path = importer.write_template(str(tmp_path / "template.csv"))
    importer.import_file(path)
    before = _snapshot(db)

    result = importer.import_file(path)

    assert (result.success_count, result.skip_count, result.error_count) == (0, 3, 0)
    assert all(o.kind == OUTCOME_DUPLICATE for o in result.outcomes)
    assert _snapshot(db) == before


def test_lookups_created_once_and_reused(db, importer):
    text = "\n".join([
        "ZC101,显示器,显示设备,王五,市场部,,899,,,",
        "ZC102,显示器,显示设备,王五,市场部,,899,,,",
        "ZC103,键盘,显示设备,,市场部,,99,,,",
    ])
    result = importer.import_text(text)

    assert result.success_count == 3
    assert [c.name for c in db.get_all_categories()] == ["显示设备"]
    assert [d.name for d in db.get_all_departments()] == ["市场部"]
    employees = db.get_employees_by_name("王五")
    assert len(employees) == 1
    assert db.get_employee_asset_count(employees[0].id) == 2


def test_department_only_resolved_with_user(db, importer):
    importer.import_text("ZC201,键盘,,,财务部,,99,,,")
    assert db.get_all_departments() == []


def test_employee_matching_by_department(db, importer):
    finance = Department(name="财务部")
    assert db.add_department(finance)
    existing = Employee(name="王五", department_id=finance.id)
    assert db.add_employee(existing)

    result = importer.import_text("\n".join([
        "ZC301,计算器,,王五,,,50,,,",
        "ZC302,计算器,,王五,财务部,,50,,,",
        "ZC303,计算器,,王五,技术部,,50,,,",
    ]))

    assert result.success_count == 3
    assert db.get_asset_by_code("ZC301").user_id == existing.id
    assert db.get_asset_by_code("ZC302").user_id == existing.id
    newcomer = db.get_asset_by_code("ZC303")
    assert newcomer.user_id != existing.id
    assert newcomer.department_name == "技术部"
    assert len(db.get_employees_by_name("王五")) == 2


def test_header_comments_blank_and_short_records(db, importer):
    text = "\n".join([
        HEADER,
        "# 这是注释",
        "",
        "ZC401",
        "ZC402,显示器",
        "  # indented comment,x",
    ])
    result = importer.import_text(text)

    assert result.success_count == 1
    assert result.error_count == 1
    error = [o for o in result.outcomes if o.kind == OUTCOME_ERROR][0]
    assert error.record_number == 4
    assert db.get_asset_by_code("ZC402").name == "显示器"


def test_first_record_imported_without_header(db, importer):
    result = importer.import_text("ZC501,打印机\nZC502,扫描仪\n")
    assert result.success_count == 2


@pytest.mark.parametrize("header", [
    "asset_code,name",
    "Asset Code,Name",
    "序号,资产编号,资产名称",
])
def test_header_tokens(header):
    assert is_header_record(header.split(","))


@pytest.mark.parametrize("fields", [
    ["ZC100", "Scanner", "", "", "", "", "10", "", "", "relabel asset code sticker"],
    ["ZC100", "资产编号贴纸"],
])
def test_header_tokens_must_match_whole_field(fields):
    assert not is_header_record(fields)


def test_first_record_with_header_word_in_remark_is_imported(db, importer):
    result = importer.import_text("ZC100,Scanner,,,,,10,,,relabel asset code sticker\nZC101,Printer\n")
    assert result.success_count == 2
    assert db.get_asset_by_code("ZC100").remark == "relabel asset code sticker"


def test_header_only_checked_on_first_record(importer):
    result = importer.import_text("ZC601,打印机\n资产编号,资产名称\n")
    assert result.success_count == 2


@pytest.mark.parametrize("row, reason", [
    (",打印机", "required"),
    ("ZC701,", "required"),
    ("ZC701,打印机,,,,,abc,,,", "amount"),
    ("ZC701,打印机,,,,,-5,,,", "amount"),
    ("ZC701,打印机,,,,,nan,,,", "amount"),
    ("ZC701,打印机,,,,,inf,,,", "amount"),
    ("ZC701,打印机,,,,,-Infinity,,,", "amount"),
    ("ZC701,打印机,,,,,100,,丢失,", "status"),
])
def test_invalid_records_are_errors(db, importer, row, reason):
    result = importer.import_text(row)
    assert result.error_count == 1
    assert result.success_count == 0
    assert reason in result.outcomes[0].message.lower()
    assert db.get_all_assets() == []


def test_bad_rows_do_not_abort_batch(db, importer):
    result = importer.import_text("ZC801,打印机,,,,,abc\nZC802,扫描仪,,,,,100\n")
    assert (result.success_count, result.error_count) == (1, 1)
    assert db.get_asset_by_code("ZC802") is not None


def test_quoted_fields(db, importer):
    text = 'ZC901,"椅子, 人体工学",办公家具,,,2024-03-01,1200.5,,维修中,"第一行\n第二行"\n'
    result = importer.import_text(text)

    assert result.success_count == 1
    chair = db.get_asset_by_code("ZC901")
    assert chair.name == "椅子, 人体工学"
    assert chair.remark == "第一行\n第二行"
    assert chair.price == 1200.5
    assert chair.status == "维修中"


def test_status_corrected_on_import(db, importer):
    importer.import_text("ZC951,电脑,,赵六,,,,,闲置,\nZC952,电脑,,,,,,,在用,")
    assert db.get_asset_by_code("ZC951").status == STATUS_IN_USE
    assert db.get_asset_by_code("ZC952").status == STATUS_IDLE


def test_legacy_encoded_file(db, importer, tmp_path):
    path = tmp_path / "legacy.csv"
    path.write_bytes("资产编号,资产名称,分类\nZC001,笔记本电脑,电脑设备\n".encode("gbk"))

    result = importer.import_file(str(path))

    assert result.success_count == 1
    assert db.get_asset_by_code("ZC001").category_name == "电脑设备"


def test_utf8_bom_file(db, importer, tmp_path):
    path = tmp_path / "utf8.csv"
    path.write_text("ZC001,笔记本电脑\n", encoding="utf-8-sig")

    result = importer.import_file(str(path))

    assert result.success_count == 1
    assert db.get_asset_by_code("ZC001").name == "笔记本电脑"


def test_decode_replaces_undecodable_bytes():
    assert decode_import_bytes(b"\xef\xbb\xbfZC001") == "ZC001"
    assert "�" in decode_import_bytes(b"ZC\xff001")


def test_messages_capped(db, logger):
    importer = ImportService(db, AppConfig(import_message_limit=2), logger)
    importer.import_text("ZC001,打印机")

    result = importer.import_text("\n".join(["ZC001,打印机"] * 4 + ["ZC002,扫描仪"]))

    assert (result.success_count, result.skip_count) == (1, 4)
    assert len(result.messages) == 2
    assert result.hidden_message_count == 2
    summary = result.summary()
    assert "Imported: 1" in summary
    assert "Skipped: 4" in summary
    assert "... and 2 more message(s)" in summary


def test_success_outcome_carries_asset_id(db, importer):
    result = importer.import_text("ZC001,打印机")
    outcome = result.outcomes[0]
    assert outcome.kind == OUTCOME_SUCCESS
    assert outcome.asset_id == db.get_asset_by_code("ZC001").id


def test_import_refused_inside_open_transaction(db, importer):
    assert db.begin_transaction()
    try:
        with pytest.raises(TransactionError):
            importer.import_text("ZC001,打印机")
    finally:
        db.rollback()
    assert db.get_all_assets() == []
