# Record types shared by the data layer and the front ends
import uuid
from datetime import date, datetime

BLOOD_TYPES = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")

# Order used in inventory.csv and in every inventory listing
INVENTORY_ORDER = tuple(sorted(BLOOD_TYPES))

DATE_FORMAT = "%Y-%m-%d"

CREDIT = "credit"
DEBIT = "debit"
DIRECTIONS = (CREDIT, DEBIT)


class RequestStatus:
    PENDING = "Pending"
    FULFILLED = "Fulfilled"
    CANCELLED = "Cancelled"

    ALL = (PENDING, FULFILLED, CANCELLED)


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12].upper()}"


def parse_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value).strip(), DATE_FORMAT).date()


class Donor:
    def __init__(self, id, name, blood_type, age, contact="", last_donation=None):
        self.id = id
        self.name = name
        self.blood_type = blood_type
        self.age = age
        self.contact = contact
        self.last_donation = last_donation or date.today()

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "blood_type": self.blood_type,
            "age": self.age,
            "contact": self.contact,
            "last_donation": self.last_donation.strftime(DATE_FORMAT),
        }

    def row(self):
        return (self.id, self.name, self.blood_type, self.age, self.contact,
                self.last_donation.strftime(DATE_FORMAT))

    def __eq__(self, other):
        if not isinstance(other, Donor):
            return NotImplemented
        return self.row() == other.row()

    def __repr__(self):
        return f"Donor({self.id!r}, {self.name!r}, {self.blood_type!r})"


class Request:
    def __init__(self, id, requester, blood_type, units, status=RequestStatus.PENDING):
        self.id = id
        self.requester = requester
        self.blood_type = blood_type
        self.units = units
        self.status = status

    @property
    def is_pending(self):
        return self.status == RequestStatus.PENDING

    def to_dict(self):
        return {
            "id": self.id,
            "requester": self.requester,
            "blood_type": self.blood_type,
            "units": self.units,
            "status": self.status,
        }

    def row(self):
        return (self.id, self.requester, self.blood_type, self.units, self.status)

    def __eq__(self, other):
        if not isinstance(other, Request):
            return NotImplemented
        return self.row() == other.row()

    def __repr__(self):
        return f"Request({self.id!r}, {self.blood_type!r}, {self.units}, {self.status!r})"
