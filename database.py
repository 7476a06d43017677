# Data layer: donors, inventory and requests held in memory, synced to flat CSV files
import threading
from pathlib import Path

from loguru import logger

import storage
from errors import (
    AlreadyFulfilled,
    InsufficientInventory,
    InsufficientUnits,
    NotPending,
    RecordNotFound,
    StorageError,
    ValidationError,
)
from models import (
    BLOOD_TYPES,
    CREDIT,
    DEBIT,
    DIRECTIONS,
    INVENTORY_ORDER,
    Donor,
    Request,
    RequestStatus,
    new_id,
    parse_date,
)

DATA_DIR = Path("data")
DONORS_FILE = "donors.csv"
INVENTORY_FILE = "inventory.csv"
REQUESTS_FILE = "requests.csv"

LOW_STOCK_THRESHOLD = 5


def normalize_blood_group(bg: str) -> str:
    bg = (bg or "").strip().upper()
    if bg in BLOOD_TYPES:
        return bg
    raise ValidationError("Invalid blood group. Allowed: " + ", ".join(BLOOD_TYPES))


def positive_int(value, label: str) -> int:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f"Invalid {label.lower()}.")
    try:
        value = int(str(value).strip()) if isinstance(value, str) else int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {label.lower()}.")
    if value <= 0:
        raise ValidationError(f"{label} must be positive")
    return value


def required_text(value, label: str) -> str:
    value = str(value or "").strip()
    if not value:
        raise ValidationError(f"{label} is required.")
    return value


class DonorRegistry:
    FIELDS = {"name", "blood_type", "age", "contact", "last_donation"}

    def __init__(self, path, lock=None):
        self.path = Path(path)
        self._lock = lock or threading.RLock()
        self._donors = []

    def load(self):
        with self._lock:
            self._donors.clear()
            for donor in storage.read_donors(self.path):
                self._donors.append(donor)
            logger.debug("Loaded {} donors from {}", len(self._donors), self.path)

    def save(self):
        with self._lock:
            storage.write_donors(self.path, self._donors)

    @staticmethod
    def _validate(name, blood_type, age, contact, last_donation):
        name = str(name or "")
        if not name.strip() or age in (None, ""):
            raise ValidationError("Name and Age are required.")
        try:
            last = parse_date(last_donation) if last_donation else None
        except ValueError:
            raise ValidationError("Last donation date must be YYYY-MM-DD")
        return {
            "name": name.strip(),
            "blood_type": normalize_blood_group(blood_type),
            "age": positive_int(age, "Age"),
            "contact": (contact or "").strip(),
            "last_donation": last,
        }

    def add(self, name, blood_type, age, contact="", last_donation=None) -> Donor:
        values = self._validate(name, blood_type, age, contact, last_donation)
        with self._lock:
            donor = Donor(new_id("D"), **values)
            self._donors.append(donor)
            logger.info("Added donor {} ({})", donor.id, donor.blood_type)
            self.save()
        return donor

    def edit(self, donor_id, **fields) -> Donor:
        unknown = set(fields) - self.FIELDS
        if unknown:
            raise ValidationError("Unknown donor field(s): " + ", ".join(sorted(unknown)))
        with self._lock:
            donor = self.get(donor_id)
            merged = {k: getattr(donor, k) for k in self.FIELDS}
            merged.update(fields)
            values = self._validate(**merged)
            if values["last_donation"] is None:
                values["last_donation"] = donor.last_donation
            for key, value in values.items():
                setattr(donor, key, value)
            logger.info("Updated donor {}", donor.id)
            self.save()
        return donor

    def delete(self, donor_id, confirm=None) -> bool:
        """Remove a donor once ``confirm(donor)`` agrees; no callback means confirmed."""
        with self._lock:
            donor = self.get(donor_id)
            if confirm is not None and not confirm(donor):
                return False
            self._donors.remove(donor)
            logger.info("Deleted donor {}", donor.id)
            self.save()
        return True

    def get(self, donor_id) -> Donor:
        for d in self._donors:
            if d.id == donor_id:
                return d
        raise RecordNotFound(f"Donor {donor_id} not found")

    def search(self, query):
        q = (query or "").strip().lower()
        with self._lock:
            return [d for d in self._donors if q in d.name.lower() or q in d.blood_type.lower()]

    def list(self):
        with self._lock:
            return list(self._donors)

    def __len__(self):
        return len(self._donors)


class InventoryLedger:
    def __init__(self, path, lock=None):
        self.path = Path(path)
        self._lock = lock or threading.RLock()
        self._units = dict.fromkeys(INVENTORY_ORDER, 0)

    def load(self):
        with self._lock:
            self._units = dict.fromkeys(INVENTORY_ORDER, 0)
            for blood_type, units in storage.read_inventory(self.path):
                self._units[blood_type] = units
            logger.debug("Loaded inventory from {}", self.path)

    def save(self):
        with self._lock:
            storage.write_inventory(self.path, self.list())

    def count(self, blood_type) -> int:
        return self._units[normalize_blood_group(blood_type)]

    def adjust(self, blood_type, units, direction) -> int:
        blood_type = normalize_blood_group(blood_type)
        units = positive_int(units, "Units")
        if direction not in DIRECTIONS:
            raise ValidationError("Direction must be one of: " + ", ".join(DIRECTIONS))
        with self._lock:
            current = self._units[blood_type]
            updated = current + units if direction == CREDIT else current - units
            if updated < 0:
                raise InsufficientUnits(blood_type, units, current)
            self._units[blood_type] = updated
            logger.info("Inventory {} {} {} -> {}", direction, units, blood_type, updated)
            self.save()
        return updated

    def credit(self, blood_type, units) -> int:
        return self.adjust(blood_type, units, CREDIT)

    def debit(self, blood_type, units) -> int:
        return self.adjust(blood_type, units, DEBIT)

    def list(self):
        with self._lock:
            return [(bt, self._units[bt]) for bt in INVENTORY_ORDER]

    def total(self) -> int:
        return sum(self._units.values())

    def low_stock(self, threshold=LOW_STOCK_THRESHOLD):
        low, out = [], []
        for bt, units in self.list():
            if units == 0:
                out.append(bt)
            elif units < threshold:
                low.append(bt)
        return low, out


class RequestLedger:
    def __init__(self, path, inventory: InventoryLedger, lock=None):
        self.path = Path(path)
        self.inventory = inventory
        self._lock = lock or threading.RLock()
        self._requests = []

    def load(self):
        with self._lock:
            self._requests.clear()
            for request in storage.read_requests(self.path):
                self._requests.append(request)
            logger.debug("Loaded {} requests from {}", len(self._requests), self.path)

    def save(self):
        with self._lock:
            storage.write_requests(self.path, self._requests)

    def create(self, requester, blood_type, units) -> Request:
        requester = required_text(requester, "Requester name")
        blood_type = normalize_blood_group(blood_type)
        units = positive_int(units, "Units")
        with self._lock:
            request = Request(new_id("R"), requester, blood_type, units)
            self._requests.append(request)
            logger.info("Created request {} for {} x {}", request.id, units, blood_type)
            self.save()
        return request

    def fulfill(self, request_id) -> Request:
        with self._lock:
            request = self.get(request_id)
            if not request.is_pending:
                raise NotPending(request.id, request.status)
            available = self.inventory.count(request.blood_type)
            if available < request.units:
                raise InsufficientInventory(request.blood_type, request.units, available)
            # Inventory file is written first; the two writes are not atomic together
            self.inventory.debit(request.blood_type, request.units)
            request.status = RequestStatus.FULFILLED
            logger.info("Fulfilled request {}", request.id)
            self.save()
        return request

    def cancel(self, request_id) -> Request:
        with self._lock:
            request = self.get(request_id)
            if request.status == RequestStatus.FULFILLED:
                raise AlreadyFulfilled(request.id)
            request.status = RequestStatus.CANCELLED
            logger.info("Cancelled request {}", request.id)
            self.save()
        return request

    def get(self, request_id) -> Request:
        for r in self._requests:
            if r.id == request_id:
                return r
        raise RecordNotFound(f"Request {request_id} not found")

    def list(self):
        with self._lock:
            return list(self._requests)

    def __len__(self):
        return len(self._requests)


class BloodBank:
    """The store handed to every front end: three managers sharing one lock and data directory."""

    def __init__(self, data_dir=None):
        self.data_dir = Path(data_dir or DATA_DIR)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.lock = threading.RLock()
        self.donors = DonorRegistry(self.data_dir / DONORS_FILE, self.lock)
        self.inventory = InventoryLedger(self.data_dir / INVENTORY_FILE, self.lock)
        self.requests = RequestLedger(self.data_dir / REQUESTS_FILE, self.inventory, self.lock)

    @classmethod
    def open(cls, data_dir=None):
        bank = cls(data_dir)
        for msg in bank.load_all():
            logger.error(msg)
        return bank

    def load_all(self):
        """Load every collection; returns the error messages of the ones that failed."""
        errors = []
        for manager in (self.donors, self.inventory, self.requests):
            try:
                manager.load()
            except StorageError as exc:
                errors.append(str(exc))
        return errors

    def save_all(self):
        with self.lock:
            self.donors.save()
            self.inventory.save()
            self.requests.save()
        logger.info("Saved all data to {}", self.data_dir)

    def export_donors(self, path):
        storage.export_donors(path, self.donors.list())
        logger.info("Exported donors to {}", path)

    def totals(self):
        return len(self.donors), self.inventory.total()

    def report(self) -> str:
        lines = ["=== Blood Bank Report ===", "", "Inventory:"]
        for bt, units in self.inventory.list():
            lines.append(f"  {bt} : {units}")
        donors = self.donors.list()
        lines += ["", f"Donors ({len(donors)}):"]
        for d in donors:
            lines.append(f"  {d.name} ({d.id}) - {d.blood_type} - {d.age} yrs - last {d.last_donation:%Y-%m-%d}")
        lines += ["", "Requests:"]
        for r in self.requests.list():
            lines.append(f"  {r.id} : {r.blood_type} ({r.units}) -> {r.status}")
        return "\n".join(lines) + "\n"
