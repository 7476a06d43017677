"""
Flat-file persistence: round trips, lossy comma handling, malformed lines and load failures.
"""

from datetime import date

import pytest

import storage
from database import BloodBank
from errors import StorageError
from models import Donor, Request, RequestStatus


def test_missing_files_mean_empty(bank):
    assert bank.donors.list() == []
    assert bank.requests.list() == []
    assert bank.inventory.total() == 0


def test_save_all_and_reload(bank, data_dir):
    d1 = bank.donors.add("Alice", "A+", 30, "555-0100", "2024-01-15")
    d2 = bank.donors.add("Bob", "O-", 41, "", "2023-06-01")
    bank.inventory.credit("O+", 7)
    r1 = bank.requests.create("Clinic", "O+", 2)
    bank.save_all()

    reloaded = BloodBank(data_dir)
    assert reloaded.load_all() == []
    assert reloaded.donors.list() == [d1, d2]
    assert reloaded.requests.list() == [r1]
    assert reloaded.inventory.list() == bank.inventory.list()


def test_commas_in_free_text_become_spaces(bank, data_dir):
    bank.donors.add("Smith, John", "B+", 50, "Main St, Apt 2", "2024-03-01")
    bank.requests.create("City Hospital, Ward 3", "B+", 1)

    reloaded = BloodBank(data_dir)
    assert reloaded.load_all() == []
    donor = reloaded.donors.list()[0]
    assert donor.name == "Smith  John"
    assert donor.contact == "Main St  Apt 2"
    assert reloaded.requests.list()[0].requester == "City Hospital  Ward 3"


def test_line_breaks_in_free_text_become_spaces(bank, data_dir):
    bank.donors.add("Ann\nLee", "A+", 30, "555\r\n0100", "2024-01-01")
    bank.requests.create("Ward\n3", "A+", 1)

    reloaded = BloodBank(data_dir)
    assert reloaded.load_all() == []
    donors = reloaded.donors.list()
    assert len(donors) == 1
    assert donors[0].name == "Ann Lee"
    assert donors[0].contact == "555  0100"
    assert reloaded.requests.list()[0].requester == "Ward 3"


def test_form_feed_in_name_survives(bank, data_dir):
    bank.donors.add("Ann\x0cLee", "A+", 30, "555", "2024-01-01")
    reloaded = BloodBank(data_dir)
    assert reloaded.load_all() == []
    assert [d.name for d in reloaded.donors.list()] == ["Ann\x0cLee"]


def test_file_layout(bank, data_dir):
    d = bank.donors.add("Alice", "A+", 30, "555", "2024-01-15")
    r = bank.requests.create("Clinic", "A+", 2)
    assert (data_dir / "donors.csv").read_text(encoding="utf-8") == f"{d.id},Alice,A+,30,555,2024-01-15\n"
    assert (data_dir / "requests.csv").read_text(encoding="utf-8") == f"{r.id},Clinic,A+,2,Pending\n"
    bank.inventory.credit("O-", 1)
    lines = (data_dir / "inventory.csv").read_text(encoding="utf-8").splitlines()
    assert lines == ["A+,0", "A-,0", "AB+,0", "AB-,0", "B+,0", "B-,0", "O+,0", "O-,1"]


def test_short_donor_line_skipped(write_file, data_dir):
    write_file(
        "donors.csv",
        "D-1,Ann,A+,30,555,2024-01-01",
        "D-2,Bad,O+",
        "",
        "D-3,Cy,B-,45,,2022-12-31,extra",
    )
    bank = BloodBank(data_dir)
    assert bank.load_all() == []
    assert [d.id for d in bank.donors.list()] == ["D-1", "D-3"]
    assert bank.donors.get("D-3").contact == ""


def test_bad_donor_field_aborts_with_partial_state(write_file, data_dir):
    write_file(
        "donors.csv",
        "D-1,Ann,A+,30,555,2024-01-01",
        "D-2,Ben,O+,old,555,2024-01-01",
        "D-3,Cy,B-,45,555,2024-01-01",
    )
    bank = BloodBank(data_dir)
    errors = bank.load_all()
    assert len(errors) == 1
    assert "donors.csv" in errors[0] and "line 2" in errors[0]
    assert [d.id for d in bank.donors.list()] == ["D-1"]


def test_non_utf8_file_reported(data_dir):
    data_dir.mkdir(parents=True, exist_ok=True)
    (data_dir / "donors.csv").write_bytes("D-1,Jos\xe9,A+,30,555,2024-01-01\n".encode("latin-1"))
    bank = BloodBank(data_dir)
    errors = bank.load_all()
    assert len(errors) == 1
    assert "donors.csv" in errors[0]
    assert bank.donors.list() == []


def test_donor_with_unknown_blood_type_skipped(write_file, data_dir):
    write_file("donors.csv", "D-1,Ann,ZZ,30,555,2024-01-01", "D-2,Ben,O+,41,555,2024-01-01")
    bank = BloodBank(data_dir)
    assert bank.load_all() == []
    assert [d.id for d in bank.donors.list()] == ["D-2"]


def test_bad_date_aborts(write_file, data_dir):
    write_file("donors.csv", "D-1,Ann,A+,30,555,01/02/2024")
    with pytest.raises(StorageError):
        list(storage.read_donors(data_dir / "donors.csv"))


def test_one_failed_collection_does_not_stop_the_others(write_file, data_dir):
    write_file("requests.csv", "R-1,Ann,A+,two,Pending")
    write_file("inventory.csv", "A+,4")
    bank = BloodBank(data_dir)
    errors = bank.load_all()
    assert len(errors) == 1
    assert bank.inventory.count("A+") == 4


def test_save_failure_raises_storage_error(tmp_path):
    target = tmp_path / "is_a_directory"
    target.mkdir()
    with pytest.raises(StorageError):
        storage.write_requests(target, [Request("R-1", "Ann", "A+", 1, RequestStatus.PENDING)])


def test_export_is_raw(bank, tmp_path):
    d = bank.donors.add("Smith, John", "B+", 50, "555", "2024-03-01")
    out = tmp_path / "donors_export.csv"
    bank.export_donors(out)
    assert out.read_text(encoding="utf-8") == f"{d.id},Smith, John,B+,50,555,2024-03-01\n"


def test_clean():
    assert storage.clean("a,b,,c") == "a b  c"
    assert storage.clean(None) == ""
    assert storage.clean("a\r\nb\nc") == "a  b c"


def test_donor_line():
    d = Donor("D-9", "Ann", "O+", 22, "x,y", date(2020, 2, 29))
    assert storage.donor_line(d) == "D-9,Ann,O+,22,x y,2020-02-29"
