"""
Unit tests for the knowledge loader: bundled records, malformed fields, and unreadable files.
"""

import json
from pathlib import Path

from app.knowledge.loader import load_knowledge_base
from app.knowledge.schema import ContactsRecord, HistoryRecord, TuitionsRecord
from app.services.classifier import KnowledgeCategory
from app.services.context_builder import build_context

BUNDLED_DIR = Path(__file__).resolve().parent.parent / "app" / "knowledge" / "data"


def _copy_bundled(tmp_path: Path) -> None:
    for path in BUNDLED_DIR.glob("*.json"):
        (tmp_path / path.name).write_text(path.read_text(encoding="utf-8"), encoding="utf-8")


def _patch_record(tmp_path: Path, name: str, mutate) -> None:
    path = tmp_path / name
    data = json.loads(path.read_text(encoding="utf-8"))
    mutate(data)
    path.write_text(json.dumps(data), encoding="utf-8")


def test_bundled_records_all_load() -> None:
    kb = load_knowledge_base()
    assert kb.loaded() == ["contacts", "faculties", "history", "tuitions"]
    assert isinstance(kb.get(KnowledgeCategory.CONTACTS), ContactsRecord)
    assert kb.tuitions.tuition_fees_thb.undergraduate.domestic_students.annual_fee_range.min == 112000


def test_unreadable_files_are_skipped(tmp_path: Path) -> None:
    (tmp_path / "contacts.json").write_text(json.dumps({"main_website": "example.edu"}), encoding="utf-8")
    (tmp_path / "faculties.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "history.json").write_text(
        json.dumps({"history": {"origins": {"notable_dates": [{"event": "no year"}]}}}), encoding="utf-8"
    )
    # tuitions.json missing
    kb = load_knowledge_base(tmp_path)
    assert kb.loaded() == ["contacts", "history"]
    assert kb.contacts.main_website == "example.edu"
    assert kb.faculties is None
    assert kb.get(KnowledgeCategory.TUITIONS) is None


def test_year_less_notable_date_still_renders_history(tmp_path: Path) -> None:
    (tmp_path / "history.json").write_text(
        json.dumps({"history": {"origins": {"notable_dates": [{"event": "no year"}]}}}), encoding="utf-8"
    )
    kb = load_knowledge_base(tmp_path)
    assert kb.history.history.origins.notable_dates[0].year is None
    prompt = build_context({KnowledgeCategory.HISTORY}, knowledge=kb).prompt
    assert "UNIVERSITY HISTORY:" in prompt
    assert "- University Status: Granted full university status" in prompt


def test_bad_student_count_falls_back_and_keeps_other_fields(tmp_path: Path) -> None:
    _copy_bundled(tmp_path)
    _patch_record(
        tmp_path, "history.json",
        lambda d: d["history"]["origins"]["student_body"].update(total_students="about 100k"),
    )
    kb = load_knowledge_base(tmp_path)
    origins = kb.history.history.origins
    assert origins.student_body.total_students == 100000
    assert origins.student_body.international_students == "over 100 countries"
    assert origins.event_in(1990) == "Granted full university status"
    prompt = build_context({KnowledgeCategory.HISTORY}, knowledge=kb).prompt
    assert "UNIVERSITY HISTORY:" in prompt
    assert "- Students: 100,000+ students from over 100 countries" in prompt


def test_campuses_of_wrong_shape_fall_back(tmp_path: Path) -> None:
    _copy_bundled(tmp_path)
    _patch_record(tmp_path, "contacts.json", lambda d: d.update(campuses={"x": 1}))
    kb = load_knowledge_base(tmp_path)
    assert kb.contacts.campuses == ()
    assert kb.contacts.main_website == "au.edu"
    prompt = build_context({KnowledgeCategory.CONTACTS}, knowledge=kb).prompt
    assert "CONTACT INFORMATION:" in prompt
    assert "Hua Mak Campus: Bangkok, Phone: +66 2 719 1919" in prompt


def test_nested_object_of_wrong_type_falls_back() -> None:
    record = HistoryRecord.model_validate({"history": {"origins": "not an object"}})
    assert record.history.origins.registration_year == "1938"
    assert record.history.origins.founder == "Brothers of St. Gabriel"


def test_non_object_file_uses_defaults(tmp_path: Path) -> None:
    (tmp_path / "tuitions.json").write_text(json.dumps([1, 2, 3]), encoding="utf-8")
    kb = load_knowledge_base(tmp_path)
    prompt = build_context({KnowledgeCategory.TUITIONS}, knowledge=kb).prompt
    assert "- Undergraduate: 112,000-350,000 per year" in prompt


def test_missing_fields_get_defaults() -> None:
    record = TuitionsRecord.model_validate({"tuition_fees_thb": {}})
    fees = record.tuition_fees_thb.undergraduate.domestic_students.additional_fees
    assert fees.matriculation_fee == 23500
    assert fees.health_insurance == 3650


def test_bad_fee_falls_back_to_default() -> None:
    record = TuitionsRecord.model_validate(
        {"tuition_fees_thb": {"undergraduate": {"domestic_students": {"additional_fees": {"health_insurance": "n/a"}}}}}
    )
    fees = record.tuition_fees_thb.undergraduate.domestic_students.additional_fees
    assert fees.health_insurance == 3650
    assert fees.matriculation_fee == 23500


def test_numeric_year_coerced_to_string(tmp_path: Path) -> None:
    (tmp_path / "history.json").write_text(
        json.dumps({"history": {"origins": {"registration_year": 1938}}}), encoding="utf-8"
    )
    kb = load_knowledge_base(tmp_path)
    assert kb.history.history.origins.registration_year == "1938"
