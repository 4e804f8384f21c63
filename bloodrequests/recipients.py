# bloodrequests/recipients.py
"""
Who a blood request is for: a patient (optionally admitted at an
institution) or an institution on its own.

Stored on the request as ``recipient_type`` plus the variant's fields in a
JSON column.
"""
from dataclasses import asdict, dataclass, field, fields
from typing import Optional

PATIENT = 'patient'
INSTITUTION = 'institution'

GENDERS = ('male', 'female', 'other')
INSTITUTION_TYPES = ('hospital', 'clinic', 'emergency', 'surgical_center', 'other')


def _pick(cls, data):
    names = {f.name for f in fields(cls)}
    return {key: value for key, value in (data or {}).items() if key in names}


@dataclass
class Institution:
    name: str
    type: str = 'hospital'
    address: dict = field(default_factory=dict)
    license_number: str = ''

    def __post_init__(self):
        if not self.name or not str(self.name).strip():
            raise ValueError('Institution name is required')
        if self.type not in INSTITUTION_TYPES:
            raise ValueError('Valid institution type is required')

    @classmethod
    def from_dict(cls, data):
        return cls(**_pick(cls, data))

    def to_dict(self):
        return asdict(self)


@dataclass
class Patient:
    name: str
    age: Optional[int] = None
    gender: str = ''
    medical_record_number: str = ''
    diagnosis: str = ''
    ward: str = ''
    bed_number: str = ''
    institution: Optional[Institution] = None

    def __post_init__(self):
        if not self.name or not str(self.name).strip():
            raise ValueError('Patient name is required')
        if self.gender and self.gender not in GENDERS:
            raise ValueError('Valid patient gender is required')
        if self.age is not None and self.age < 0:
            raise ValueError('Patient age must not be negative')

    @classmethod
    def from_dict(cls, data):
        values = _pick(cls, data)
        if values.get('institution'):
            values['institution'] = Institution.from_dict(values['institution'])
        else:
            values.pop('institution', None)
        return cls(**values)

    def to_dict(self):
        data = asdict(self)
        if self.institution is None:
            data.pop('institution')
        return data


def build_recipient(patient=None, institution=None):
    """
    Resolve the submitted patient and/or institution blocks into one variant.
    A patient takes precedence and carries the institution as its admitting
    institution.

    Returns:
        tuple: (recipient_type, recipient)
    """
    if patient:
        data = dict(patient)
        if institution and not data.get('institution'):
            data['institution'] = institution
        return PATIENT, Patient.from_dict(data)
    if institution:
        return INSTITUTION, Institution.from_dict(institution)
    raise ValueError('Either patient or institution information is required')


def load_recipient(recipient_type, data):
    if recipient_type == PATIENT:
        return Patient.from_dict(data)
    return Institution.from_dict(data)
