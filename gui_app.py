# Tkinter desktop front end (uses database.BloodBank)
import tkinter as tk
from tkinter import ttk, messagebox, filedialog

from loguru import logger

import database
from errors import BloodBankError
from models import BLOOD_TYPES, CREDIT, DEBIT


class BloodBankApp:
    def __init__(self, root, bank):
        self.root = root
        self.bank = bank
        self.root.title("Blood Bank Management System")
        self.root.geometry("900x600")
        self.create_main()
        for msg in self.bank.load_all():
            messagebox.showerror("Error", msg)
        self.refresh_all()

    def run(self, action, success=None):
        """Run one user action; any bank error is reported, never raised."""
        try:
            result = action()
        except BloodBankError as e:
            logger.warning("Action failed: {}", e)
            messagebox.showerror("Error", str(e))
            return None
        if success:
            messagebox.showinfo("Info", success)
        return result

    def create_main(self):
        nb = ttk.Notebook(self.root)
        nb.pack(fill=tk.BOTH, expand=True, padx=10, pady=10)
        donors_f = ttk.Frame(nb); nb.add(donors_f, text="Donors")
        inventory_f = ttk.Frame(nb); nb.add(inventory_f, text="Inventory")
        requests_f = ttk.Frame(nb); nb.add(requests_f, text="Requests")
        reports_f = ttk.Frame(nb); nb.add(reports_f, text="Reports")

        self.build_donors_tab(donors_f)
        self.build_inventory_tab(inventory_f)
        self.build_requests_tab(requests_f)
        self.build_reports_tab(reports_f)

    def make_tree(self, parent, cols, width=120):
        tf = ttk.Frame(parent); tf.pack(fill=tk.BOTH, expand=True, padx=10, pady=10)
        tree = ttk.Treeview(tf, columns=cols, show="headings", height=15, selectmode="browse")
        for c in cols: tree.heading(c, text=c); tree.column(c, width=width)
        vs = ttk.Scrollbar(tf, orient=tk.VERTICAL, command=tree.yview); tree.configure(yscrollcommand=vs.set)
        tree.grid(row=0, column=0, sticky="nsew"); vs.grid(row=0, column=1, sticky="ns")
        tf.grid_rowconfigure(0, weight=1); tf.grid_columnconfigure(0, weight=1)
        return tree

    @staticmethod
    def fill_tree(tree, rows):
        for i in tree.get_children(): tree.delete(i)
        for row in rows:
            tree.insert("", tk.END, iid=row[0], values=row)

    @staticmethod
    def selected_id(tree):
        sel = tree.selection()
        return sel[0] if sel else None

    def refresh_all(self):
        self.load_donors(); self.load_inventory(); self.load_requests()

    # Donors
    def build_donors_tab(self, parent):
        lf = ttk.LabelFrame(parent, text="Add/Edit Donor", padding=10)
        lf.pack(fill=tk.X, padx=10, pady=10)
        self.d_fields = {}
        labels = ["Name", "Age", "Contact", "Last Donation (YYYY-MM-DD)"]
        keys = ["name", "age", "contact", "last_donation"]
        for i, (lbl, key) in enumerate(zip(labels, keys)):
            ttk.Label(lf, text=lbl).grid(row=i//3, column=(i%3)*2, sticky="w", pady=5)
            e = ttk.Entry(lf, width=22)
            e.grid(row=i//3, column=(i%3)*2+1, padx=5, pady=5)
            self.d_fields[key] = e
        ttk.Label(lf, text="Blood Group").grid(row=1, column=2, sticky="w")
        self.d_blood = ttk.Combobox(lf, values=BLOOD_TYPES, state="readonly", width=8)
        self.d_blood.current(0); self.d_blood.grid(row=1, column=3, sticky="w", padx=5)
        ttk.Button(lf, text="Add Donor", command=self.add_donor).grid(row=2, column=0, columnspan=2, pady=8)
        ttk.Button(lf, text="Edit Selected", command=self.edit_donor).grid(row=2, column=2, columnspan=2, pady=8)
        ttk.Button(lf, text="Delete Selected", command=self.delete_donor).grid(row=2, column=4, columnspan=2, pady=8)

        sf = ttk.LabelFrame(parent, text="Search by name or blood", padding=10)
        sf.pack(fill=tk.X, padx=10, pady=10)
        self.search_term = ttk.Entry(sf, width=25); self.search_term.grid(row=0, column=0)
        ttk.Button(sf, text="Search", command=self.search_donors).grid(row=0, column=1, padx=5)
        ttk.Button(sf, text="Clear", command=self.clear_search).grid(row=0, column=2)

        cols = ("ID", "Name", "Blood", "Age", "Contact", "Last Donation")
        self.d_tree = self.make_tree(parent, cols)
        self.d_tree.bind("<Double-1>", lambda e: self.load_selected_donor())

    def donor_form(self):
        f = self.d_fields
        return dict(name=f["name"].get(), blood_type=self.d_blood.get(), age=f["age"].get(),
                    contact=f["contact"].get(), last_donation=f["last_donation"].get().strip() or None)

    def clear_donor_form(self):
        for e in self.d_fields.values(): e.delete(0, tk.END)
        self.d_blood.current(0)

    def add_donor(self):
        if self.run(lambda: self.bank.donors.add(**self.donor_form())):
            self.load_donors(); self.clear_donor_form()

    def edit_donor(self):
        did = self.selected_id(self.d_tree)
        if not did:
            messagebox.showerror("Error", "Select a donor to edit."); return
        form = self.donor_form()
        if form["last_donation"] is None:
            form.pop("last_donation")
        if self.run(lambda: self.bank.donors.edit(did, **form)):
            self.load_donors(); self.clear_donor_form()

    def delete_donor(self):
        did = self.selected_id(self.d_tree)
        if not did:
            messagebox.showerror("Error", "Select a donor to delete."); return
        confirm = lambda d: messagebox.askyesno("Confirm", f"Delete donor {d.name}?")
        if self.run(lambda: self.bank.donors.delete(did, confirm=confirm)):
            self.load_donors()

    def load_selected_donor(self):
        did = self.selected_id(self.d_tree)
        if not did: return
        d = self.run(lambda: self.bank.donors.get(did))
        if d is None: return
        self.clear_donor_form()
        for key, value in (("name", d.name), ("age", d.age), ("contact", d.contact),
                           ("last_donation", d.last_donation.isoformat())):
            self.d_fields[key].insert(0, str(value))
        self.d_blood.set(d.blood_type)

    def load_donors(self):
        self.fill_tree(self.d_tree, [d.row() for d in self.bank.donors.list()])

    def search_donors(self):
        self.fill_tree(self.d_tree, [d.row() for d in self.bank.donors.search(self.search_term.get())])

    def clear_search(self):
        self.search_term.delete(0, tk.END); self.load_donors()

    # Inventory
    def build_inventory_tab(self, parent):
        lf = ttk.LabelFrame(parent, text="Adjust Inventory", padding=10)
        lf.pack(fill=tk.X, padx=10, pady=10)
        ttk.Label(lf, text="Blood Type").grid(row=0, column=0)
        self.inv_type = ttk.Combobox(lf, values=BLOOD_TYPES, state="readonly", width=8)
        self.inv_type.current(0); self.inv_type.grid(row=0, column=1)
        ttk.Label(lf, text="Units").grid(row=0, column=2)
        self.inv_units = ttk.Spinbox(lf, from_=0, to=1000, width=8); self.inv_units.set(0); self.inv_units.grid(row=0, column=3)
        ttk.Button(lf, text="Add Units", command=lambda: self.adjust_inventory(CREDIT)).grid(row=0, column=4, padx=5)
        ttk.Button(lf, text="Remove Units", command=lambda: self.adjust_inventory(DEBIT)).grid(row=0, column=5)

        self.inv_tree = self.make_tree(parent, ("Blood Type", "Units"), width=160)

        alert_f = ttk.LabelFrame(parent, text="Alerts", padding=10); alert_f.pack(fill=tk.X, padx=10, pady=10)
        self.alert_lbl = ttk.Label(alert_f, text=""); self.alert_lbl.pack(anchor="w")

    def adjust_inventory(self, direction):
        if self.run(lambda: self.bank.inventory.adjust(self.inv_type.get(), self.inv_units.get(), direction),
                    "Inventory updated.") is not None:
            self.load_inventory()

    def load_inventory(self):
        self.fill_tree(self.inv_tree, self.bank.inventory.list())
        low, out = self.bank.inventory.low_stock(database.LOW_STOCK_THRESHOLD)
        self.alert_lbl.config(text=f"Low stock: {low} | Out of stock: {out}")

    # Requests
    def build_requests_tab(self, parent):
        lf = ttk.LabelFrame(parent, text="Requests", padding=10)
        lf.pack(fill=tk.X, padx=10, pady=10)
        ttk.Label(lf, text="Requester").grid(row=0, column=0); self.req_name = ttk.Entry(lf, width=16); self.req_name.grid(row=0, column=1)
        ttk.Label(lf, text="Blood").grid(row=0, column=2)
        self.req_bg = ttk.Combobox(lf, values=BLOOD_TYPES, state="readonly", width=8)
        self.req_bg.current(0); self.req_bg.grid(row=0, column=3)
        ttk.Label(lf, text="Units").grid(row=0, column=4)
        self.req_units = ttk.Spinbox(lf, from_=1, to=100, width=6); self.req_units.set(1); self.req_units.grid(row=0, column=5)
        ttk.Button(lf, text="Create Request", command=self.create_request).grid(row=0, column=6, padx=5)
        ttk.Button(lf, text="Fulfill Selected", command=self.fulfill_request).grid(row=0, column=7)
        ttk.Button(lf, text="Cancel Selected", command=self.cancel_request).grid(row=0, column=8, padx=5)

        self.req_tree = self.make_tree(parent, ("ID", "Requester", "Blood", "Units", "Status"))

    def create_request(self):
        req = self.run(lambda: self.bank.requests.create(self.req_name.get(), self.req_bg.get(), self.req_units.get()))
        if req:
            self.load_requests(); self.req_name.delete(0, tk.END)
            messagebox.showinfo("Info", f"Request created: {req.id}")

    def fulfill_request(self):
        rid = self.selected_id(self.req_tree)
        if not rid:
            messagebox.showerror("Error", "Select a request."); return
        if self.run(lambda: self.bank.requests.fulfill(rid), "Request fulfilled."):
            self.load_inventory(); self.load_requests()

    def cancel_request(self):
        rid = self.selected_id(self.req_tree)
        if not rid:
            messagebox.showerror("Error", "Select a request."); return
        if self.run(lambda: self.bank.requests.cancel(rid), "Request cancelled."):
            self.load_requests()

    def load_requests(self):
        self.fill_tree(self.req_tree, [r.row() for r in self.bank.requests.list()])

    # Reports
    def build_reports_tab(self, parent):
        top = ttk.Frame(parent, padding=8); top.pack(fill=tk.X)
        ttk.Button(top, text="Refresh Report", command=self.refresh_report).pack(side=tk.LEFT, padx=4)
        ttk.Button(top, text="Save All Data", command=self.save_all).pack(side=tk.LEFT, padx=4)
        ttk.Button(top, text="Export Donors CSV", command=self.export_donors).pack(side=tk.LEFT, padx=4)
        self.report_txt = tk.Text(parent, state=tk.DISABLED)
        self.report_txt.pack(fill=tk.BOTH, expand=True, padx=10, pady=10)

    def refresh_report(self):
        self.report_txt.config(state=tk.NORMAL)
        self.report_txt.delete("1.0", tk.END)
        self.report_txt.insert(tk.END, self.bank.report())
        self.report_txt.config(state=tk.DISABLED)

    def save_all(self):
        self.run(self.bank.save_all, "All data saved.")

    def export_donors(self):
        path = filedialog.asksaveasfilename(initialfile="donors_export.csv", defaultextension=".csv",
                                            filetypes=[("CSV files", "*.csv"), ("All files", "*.*")])
        if path:
            self.run(lambda: self.bank.export_donors(path), f"Exported donors to {path}")


def main():
    root = tk.Tk()
    BloodBankApp(root, database.BloodBank(database.DATA_DIR))
    root.mainloop()


if __name__ == "__main__":
    main()
