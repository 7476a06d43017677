# Flat-file persistence: one comma-separated record per line, no header, no quoting
from pathlib import Path

from loguru import logger

from errors import StorageError
from models import BLOOD_TYPES, DATE_FORMAT, Donor, Request, RequestStatus, parse_date

SEPARATOR = ","

DONOR_FIELDS = 6
INVENTORY_FIELDS = 2
REQUEST_FIELDS = 5


def clean(text) -> str:
    """Replace the separator and line breaks inside free text; lossy, there is no escaping."""
    if text is None:
        return ""
    return str(text).replace(SEPARATOR, " ").replace("\r", " ").replace("\n", " ")


def _records(path, arity):
    """Yield (line number, fields) for every line with at least ``arity`` fields."""
    path = Path(path)
    if not path.exists():
        logger.debug("{} not found, starting empty", path)
        return
    try:
        # Records end at \n only; splitlines would also break on \x0c, \x85 and \u2028
        lines = path.read_text(encoding="utf-8").split("\n")
    except (OSError, UnicodeDecodeError) as exc:
        raise StorageError(f"Failed to load {path.name}: {exc}") from exc
    for lineno, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        fields = line.split(SEPARATOR)
        if len(fields) < arity:
            logger.warning("{}:{} skipped, expected {} fields but found {}",
                           path.name, lineno, arity, len(fields))
            continue
        yield lineno, fields[:arity]


def _parse_error(path, lineno, exc):
    return StorageError(f"Failed to load {Path(path).name}: line {lineno}: {exc}")


def read_donors(path):
    for lineno, (did, name, blood_type, age, contact, last) in _records(path, DONOR_FIELDS):
        if blood_type not in BLOOD_TYPES:
            logger.warning("{}:{} skipped, unknown blood type {!r}", Path(path).name, lineno, blood_type)
            continue
        try:
            yield Donor(did, name, blood_type, int(age), contact, parse_date(last))
        except ValueError as exc:
            raise _parse_error(path, lineno, exc) from exc


def read_inventory(path):
    """Yield (blood type, units) pairs; unknown types are skipped."""
    for lineno, (blood_type, units) in _records(path, INVENTORY_FIELDS):
        if blood_type not in BLOOD_TYPES:
            logger.warning("{}:{} skipped, unknown blood type {!r}", Path(path).name, lineno, blood_type)
            continue
        try:
            units = int(units)
        except ValueError as exc:
            raise _parse_error(path, lineno, exc) from exc
        if units < 0:
            raise _parse_error(path, lineno, f"negative unit count {units}")
        yield blood_type, units


def read_requests(path):
    for lineno, (rid, requester, blood_type, units, status) in _records(path, REQUEST_FIELDS):
        if status not in RequestStatus.ALL or blood_type not in BLOOD_TYPES:
            logger.warning("{}:{} skipped, unknown status or blood type {!r}",
                           Path(path).name, lineno, (status, blood_type))
            continue
        try:
            yield Request(rid, requester, blood_type, int(units), status)
        except ValueError as exc:
            raise _parse_error(path, lineno, exc) from exc


def _write_lines(path, lines):
    path = Path(path)
    try:
        with open(path, "w", encoding="utf-8") as f:
            for line in lines:
                f.write(line + "\n")
    except OSError as exc:
        logger.error("Failed to save {}: {}", path, exc)
        raise StorageError(f"Failed to save {path.name}: {exc}") from exc
    logger.debug("Saved {}", path)


def donor_line(d: Donor) -> str:
    return SEPARATOR.join([d.id, clean(d.name), d.blood_type, str(d.age), clean(d.contact),
                           d.last_donation.strftime(DATE_FORMAT)])


def request_line(r: Request) -> str:
    return SEPARATOR.join([r.id, clean(r.requester), r.blood_type, str(r.units), r.status])


def write_donors(path, donors):
    _write_lines(path, [donor_line(d) for d in donors])


def write_inventory(path, inventory):
    """``inventory`` is an iterable of (blood type, units) pairs."""
    _write_lines(path, [f"{bt}{SEPARATOR}{units}" for bt, units in inventory])


def write_requests(path, requests):
    _write_lines(path, [request_line(r) for r in requests])


def export_donors(path, donors):
    # Raw fields, no separator substitution
    lines = [SEPARATOR.join([d.id, d.name, d.blood_type, str(d.age), d.contact,
                             d.last_donation.strftime(DATE_FORMAT)]) for d in donors]
    _write_lines(path, lines)
