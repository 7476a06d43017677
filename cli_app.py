# Terminal front end: numbered menu over a BloodBank
import argparse

from loguru import logger

import database
from errors import BloodBankError
from models import CREDIT, DEBIT


def ask(prompt, input_fn=input):
    return input_fn(prompt).strip()


# Donor Management
def add_donor(bank, input_fn=input):
    donor = bank.donors.add(
        name=ask("Name: ", input_fn),
        blood_type=ask("Blood Group: ", input_fn),
        age=ask("Age: ", input_fn),
        contact=ask("Contact: ", input_fn),
        last_donation=ask("Last donation date (YYYY-MM-DD or blank for today): ", input_fn) or None,
    )
    print(f"Donor added: {donor.id}")


def edit_donor(bank, input_fn=input):
    donor_id = ask("Donor ID: ", input_fn)
    fields = {}
    for key, label in (("name", "Name"), ("blood_type", "Blood Group"), ("age", "Age"),
                       ("contact", "Contact"), ("last_donation", "Last donation date (YYYY-MM-DD)")):
        value = ask(f"{label} (blank to keep): ", input_fn)
        if value:
            fields[key] = value
    bank.donors.edit(donor_id, **fields)
    print("Donor updated.")


def delete_donor(bank, input_fn=input):
    donor_id = ask("Donor ID: ", input_fn)
    confirm = lambda d: ask(f"Delete donor {d.name}? (y/n): ", input_fn).lower() == "y"
    if bank.donors.delete(donor_id, confirm=confirm):
        print("Donor deleted.")
    else:
        print("Cancelled.")


def print_donors(donors):
    if not donors:
        print("No donors found.")
        return
    for d in donors:
        print(f"{d.id}: {d.name} | {d.blood_type} | {d.age} yrs | {d.contact} | Last donation: {d.last_donation}")


def view_donors(bank, input_fn=None):
    print_donors(bank.donors.list())


def search_donors(bank, input_fn=input):
    print_donors(bank.donors.search(ask("Search by name or blood: ", input_fn)))


# Inventory
def adjust_inventory(bank, direction, input_fn=input):
    blood_type = ask("Blood Group: ", input_fn)
    units = bank.inventory.adjust(blood_type, ask("Units: ", input_fn), direction)
    print(f"Inventory updated. {blood_type.upper()}: {units} units")


def add_units(bank, input_fn=input):
    adjust_inventory(bank, CREDIT, input_fn)


def remove_units(bank, input_fn=input):
    adjust_inventory(bank, DEBIT, input_fn)


def view_inventory(bank, input_fn=None):
    for bt, units in bank.inventory.list():
        print(f"{bt}: {units} units")
    low, out = bank.inventory.low_stock()
    print(f"Low stock: {low} | Out of stock: {out}")


# Requests
def create_request(bank, input_fn=input):
    req = bank.requests.create(ask("Requester: ", input_fn), ask("Blood Group: ", input_fn),
                               ask("Units: ", input_fn))
    print(f"Request created: {req.id}")


def fulfill_request(bank, input_fn=input):
    bank.requests.fulfill(ask("Request ID: ", input_fn))
    print("Request fulfilled.")


def cancel_request(bank, input_fn=input):
    bank.requests.cancel(ask("Request ID: ", input_fn))
    print("Request cancelled.")


def view_requests(bank, input_fn=None):
    reqs = bank.requests.list()
    if not reqs:
        print("No requests.")
        return
    for r in reqs:
        print(f"{r.id}: {r.requester} | {r.blood_type} - {r.units} unit(s) | {r.status}")


# Reports
def show_report(bank, input_fn=None):
    print(bank.report())


def export_donors(bank, input_fn=input):
    path = ask("Export to [donors_export.csv]: ", input_fn) or "donors_export.csv"
    bank.export_donors(path)
    print(f"Exported donors to {path}")


def save_all(bank, input_fn=None):
    bank.save_all()
    print("All data saved.")


MENU = [
    ("1", "Add Donor", add_donor),
    ("2", "Edit Donor", edit_donor),
    ("3", "Delete Donor", delete_donor),
    ("4", "View Donors", view_donors),
    ("5", "Search Donors", search_donors),
    ("6", "Add Units", add_units),
    ("7", "Remove Units", remove_units),
    ("8", "View Inventory", view_inventory),
    ("9", "Create Request", create_request),
    ("10", "Fulfill Request", fulfill_request),
    ("11", "Cancel Request", cancel_request),
    ("12", "View Requests", view_requests),
    ("13", "Report", show_report),
    ("14", "Export Donors", export_donors),
    ("15", "Save All Data", save_all),
]


def dispatch(bank, choice, input_fn=input):
    """Run one menu choice; returns False when the user asked to exit."""
    if choice == "0":
        print("Bye.")
        return False
    for key, _, action in MENU:
        if key == choice:
            try:
                action(bank, input_fn)
            except BloodBankError as e:
                logger.debug("Menu action {} failed: {}", choice, e)
                print("Error:", e)
            return True
    print("Invalid choice.")
    return True


def main(argv=None, input_fn=input):
    parser = argparse.ArgumentParser(description="Blood bank management (terminal)")
    parser.add_argument("--data-dir", default=str(database.DATA_DIR))
    args = parser.parse_args(argv)

    bank = database.BloodBank(args.data_dir)
    for msg in bank.load_all():
        print("Error:", msg)
    while True:
        print("\n=== Blood Bank ===")
        for key, label, _ in MENU:
            print(f"{key}. {label}")
        print("0. Exit")
        if not dispatch(bank, ask("Choose: ", input_fn), input_fn):
            break


if __name__ == "__main__":
    main()
