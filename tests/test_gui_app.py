"""
Desktop front end: action wrapper only, no window is created.
"""

import pytest

pytest.importorskip("tkinter")

import gui_app


@pytest.fixture
def app(bank, monkeypatch):
    shown = {"error": [], "info": []}
    monkeypatch.setattr(gui_app.messagebox, "showerror", lambda title, msg: shown["error"].append(msg))
    monkeypatch.setattr(gui_app.messagebox, "showinfo", lambda title, msg: shown["info"].append(msg))
    app = gui_app.BloodBankApp.__new__(gui_app.BloodBankApp)
    app.bank = bank
    app.shown = shown
    return app


def test_run_reports_bank_errors(app):
    assert app.run(lambda: app.bank.inventory.debit("A+", 1), "Inventory updated.") is None
    assert app.shown["error"] == ["Insufficient units to remove (0 A+ available)."]
    assert app.shown["info"] == []


def test_run_returns_result_and_confirms(app):
    assert app.run(lambda: app.bank.inventory.credit("A+", 2), "Inventory updated.") == 2
    assert app.shown["info"] == ["Inventory updated."]
