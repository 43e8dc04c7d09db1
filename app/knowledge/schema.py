"""
Typed knowledge records: contacts, faculties, history, tuitions.

Each record is validated once at load time. Every field the context templates read
has a default equal to the fallback literal shown to the model when the field is
absent. A field that is present but malformed (wrong type, wrong shape) is replaced
by that same default and logged; the rest of the record is kept.
"""

import logging
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)

logger = logging.getLogger(__name__)


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, coerce_numbers_to_str=True)

    @field_validator("*", mode="wrap")
    @classmethod
    def default_on_error(cls, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo) -> Any:
        try:
            return handler(value)
        except ValidationError as e:
            field = cls.model_fields[info.field_name]
            default = field.get_default(call_default_factory=True)
            logger.warning(
                "[knowledge:schema] %s.%s invalid (%d errors), using default %r",
                cls.__name__, info.field_name, e.error_count(), default,
            )
            return default


# --- contacts ---

class Campus(_Record):
    name: str = ""
    address: str = ""
    phone: str = ""


class ContactsRecord(_Record):
    main_website: str = "au.edu"
    campuses: tuple[Campus, ...] = ()

    def campus_at(self, index: int) -> Campus:
        """Campus at position index, or an empty Campus when the list is shorter."""
        if 0 <= index < len(self.campuses):
            return self.campuses[index]
        return Campus()


# --- faculties ---

class School(_Record):
    name: str = ""
    programs: tuple[str, ...] = ()


class FacultyGroups(_Record):
    undergraduate: tuple[School, ...] = ()
    graduate: tuple[School, ...] = ()


class FacultiesRecord(_Record):
    faculties: FacultyGroups = Field(default_factory=FacultyGroups)


# --- history ---

class NotableDate(_Record):
    year: int | None = None
    event: str = ""


class StudentBody(_Record):
    total_students: int = 100000
    international_students: str = "over 100 countries"


class Origins(_Record):
    registration_year: str = "1938"
    original_institution: str = "Assumption Commercial College"
    founder: str = "Brothers of St. Gabriel"
    notable_dates: tuple[NotableDate, ...] = ()
    student_body: StudentBody = Field(default_factory=StudentBody)
    philosophy: str = "Open, international community with moral integrity"

    def event_in(self, year: int) -> str | None:
        for item in self.notable_dates:
            if item.year == year and item.event:
                return item.event
        return None


class HistoryBody(_Record):
    origins: Origins = Field(default_factory=Origins)


class HistoryRecord(_Record):
    history: HistoryBody = Field(default_factory=HistoryBody)


# --- tuitions ---

class FeeRange(_Record):
    min: int | None = None
    max: int | None = None


class AdditionalFees(_Record):
    matriculation_fee: int = 23500
    health_insurance: int = 3650


class DomesticStudents(_Record):
    annual_fee_range: FeeRange = Field(default_factory=lambda: FeeRange(min=112000, max=350000))
    additional_fees: AdditionalFees = Field(default_factory=AdditionalFees)


class UndergraduateFees(_Record):
    domestic_students: DomesticStudents = Field(default_factory=DomesticStudents)


class MastersPrograms(_Record):
    annual_fee_range: FeeRange = Field(default_factory=lambda: FeeRange(min=200000))


class MbaPrograms(_Record):
    total_fee_range: FeeRange = Field(default_factory=lambda: FeeRange(max=550000))


class GraduateFees(_Record):
    masters_programs: MastersPrograms = Field(default_factory=MastersPrograms)
    mba_programs: MbaPrograms = Field(default_factory=MbaPrograms)


class TuitionFees(_Record):
    undergraduate: UndergraduateFees = Field(default_factory=UndergraduateFees)
    graduate: GraduateFees = Field(default_factory=GraduateFees)


class TuitionsRecord(_Record):
    tuition_fees_thb: TuitionFees = Field(default_factory=TuitionFees)
