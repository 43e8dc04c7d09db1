"""
Knowledge store: load the four AU records once and keep them read-only.

A record file that is missing, unreadable, or not JSON is logged and left as None;
the context assembler then simply omits its section. Loading never raises.
"""

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, ValidationError

from app.core.config import KNOWLEDGE_DIR
from app.core.errors import KnowledgeLoadError
from app.knowledge.schema import ContactsRecord, FacultiesRecord, HistoryRecord, TuitionsRecord
from app.services.classifier import KnowledgeCategory

logger = logging.getLogger(__name__)

_PACKAGE_DATA_DIR = Path(__file__).resolve().parent / "data"

# category -> (file name, schema)
RECORD_FILES: dict[KnowledgeCategory, tuple[str, type[BaseModel]]] = {
    KnowledgeCategory.CONTACTS: ("contacts.json", ContactsRecord),
    KnowledgeCategory.FACULTIES: ("faculties.json", FacultiesRecord),
    KnowledgeCategory.HISTORY: ("history.json", HistoryRecord),
    KnowledgeCategory.TUITIONS: ("tuitions.json", TuitionsRecord),
}


@dataclass(frozen=True)
class KnowledgeBase:
    contacts: ContactsRecord | None = None
    faculties: FacultiesRecord | None = None
    history: HistoryRecord | None = None
    tuitions: TuitionsRecord | None = None

    def get(self, category: KnowledgeCategory) -> BaseModel | None:
        """Return the record backing a category, or None when it failed to load."""
        return getattr(self, category.value, None)

    def loaded(self) -> list[str]:
        return [c.value for c in KnowledgeCategory if self.get(c) is not None]


def _read_record(path: Path, schema: type[BaseModel]) -> BaseModel:
    """
    Parse one record. Only unreadable or non-JSON files raise; malformed fields fall
    back to their defaults inside the schema.
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise KnowledgeLoadError(path.name, f"unreadable ({e})") from e
    except json.JSONDecodeError as e:
        raise KnowledgeLoadError(path.name, f"invalid JSON ({e})") from e
    if not isinstance(raw, dict):
        logger.warning("[knowledge:load] %s is not a JSON object, using defaults", path.name)
        raw = {}
    try:
        return schema.model_validate(raw)
    except ValidationError as e:
        raise KnowledgeLoadError(path.name, f"schema validation failed ({e.error_count()} errors)") from e


def load_knowledge_base(data_dir: str | Path | None = None) -> KnowledgeBase:
    """
    Load and validate every knowledge record from data_dir (default: KNOWLEDGE_DIR or bundled data).
    Unreadable or non-JSON records are logged and set to None.
    """
    base = Path(data_dir) if data_dir else (Path(KNOWLEDGE_DIR) if KNOWLEDGE_DIR else _PACKAGE_DATA_DIR)
    logger.info("[knowledge:load] IN  data_dir=%s", base)
    records: dict[str, BaseModel | None] = {}
    for category, (filename, schema) in RECORD_FILES.items():
        try:
            records[category.value] = _read_record(base / filename, schema)
        except KnowledgeLoadError as e:
            logger.warning("[knowledge:load] skipping record %s: %s", category.value, e)
            records[category.value] = None
    kb = KnowledgeBase(**records)
    logger.info("[knowledge:load] OUT loaded=%s", kb.loaded())
    return kb


@lru_cache(maxsize=1)
def get_knowledge_base() -> KnowledgeBase:
    """Process-wide knowledge base, loaded on first use."""
    return load_knowledge_base()
