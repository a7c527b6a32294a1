import json
from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from elementor_relay import cli
from elementor_relay.config import Settings, StoreSettings
from elementor_relay.errors import StoreError
from elementor_relay.models.form_models import Contact, Form, FormField, Recipient
from elementor_relay.services.contact_service import ContactService
from elementor_relay.services.form_service import FormService
from elementor_relay.services.monitoring_service import MonitoringService
from elementor_relay.services.schema import SCHEMA_STATEMENTS

runner = CliRunner()

ANA = Contact(id=1, name="Ana", phone_number="5511911111111")


@pytest.fixture
def services(monkeypatch, settings, store):
    forms = MagicMock(spec=FormService)
    contacts = MagicMock(spec=ContactService)
    monitoring = MagicMock(spec=MonitoringService)
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    monkeypatch.setattr(cli, "get_form_service", lambda: forms)
    monkeypatch.setattr(cli, "get_contact_service", lambda: contacts)
    monkeypatch.setattr(cli, "get_monitoring_service", lambda: monitoring)
    monkeypatch.setattr(cli, "get_store", lambda: store)
    return forms, contacts, monitoring


def test_missing_store_credentials_abort(monkeypatch):
    bare = Settings(store=StoreSettings(account_id="", api_token="", database_id=""))
    monkeypatch.setattr(cli, "get_settings", lambda: bare)

    result = runner.invoke(cli.app, ["forms", "list"])

    assert result.exit_code == 1
    assert "DATABASE_ID" in result.output


def test_create_form_from_options(services):
    forms, contacts, _ = services
    contacts.get_contact.return_value = ANA

    result = runner.invoke(cli.app, [
        "forms", "create", "--id", "contato", "--name", "Contato", "--description", "Site",
        "--field", "nome=Nome", "--field", "email=E-mail", "--contact", "1",
    ])

    assert result.exit_code == 0, result.output
    form = forms.create_form.call_args.args[0]
    assert [(f.field_id, f.field_order) for f in form.fields] == [("nome", 0), ("email", 1)]
    assert form.recipients == [Recipient(phone_number="5511911111111", label="Ana", contact_id=1)]
    assert "https://relay.example.com/webhook/contato" in result.output


def test_create_form_rejects_unknown_contact(services):
    forms, contacts, _ = services
    contacts.get_contact.return_value = None

    result = runner.invoke(cli.app, [
        "forms", "create", "--id", "contato", "--name", "Contato", "--description", "",
        "--field", "nome=Nome", "--contact", "42",
    ])

    assert result.exit_code == 1
    forms.create_form.assert_not_called()


def test_delete_form_asks_for_confirmation(services):
    forms, _, _ = services
    forms.get_form.return_value = Form(id="contato", name="Contato")

    result = runner.invoke(cli.app, ["forms", "delete", "contato"], input="n\n")
    assert result.exit_code == 0
    forms.delete_form.assert_not_called()

    result = runner.invoke(cli.app, ["forms", "delete", "contato", "--yes"])
    assert result.exit_code == 0
    forms.delete_form.assert_called_once_with("contato")


def test_show_unknown_form_fails(services):
    forms, _, _ = services
    forms.get_form.return_value = None

    result = runner.invoke(cli.app, ["forms", "show", "nope"])

    assert result.exit_code == 1
    assert "not found" in result.output


def test_export_prints_json(services):
    forms, _, _ = services
    forms.export_form.return_value = {"id": "contato", "webhook_url": "https://relay.example.com/webhook/contato"}

    result = runner.invoke(cli.app, ["forms", "export", "contato"])

    assert result.exit_code == 0
    assert json.loads(result.output)["id"] == "contato"
    forms.export_form.assert_called_once_with("contato", "https://relay.example.com")


def test_edit_contact_phone(services):
    _, contacts, _ = services
    contacts.get_contact.return_value = ANA
    contacts.get_contact_form_count.return_value = 2

    result = runner.invoke(cli.app, ["contacts", "edit", "1", "--phone", "+55 11 93333-3333"])

    assert result.exit_code == 0, result.output
    contact_id, updated = contacts.update_contact.call_args.args
    assert contact_id == 1
    assert updated.phone_number == "5511933333333"
    assert updated.name == "Ana"
    assert "2 form(s)" in result.output


def test_init_db_applies_schema_in_one_batch(services, store):
    result = runner.invoke(cli.app, ["init-db"])

    assert result.exit_code == 0
    statements = store.batch.call_args.args[0]
    assert [sql for sql, _ in statements] == list(SCHEMA_STATEMENTS)


def test_monitor_once(services):
    _, _, monitoring = services
    monitoring.check.return_value = {"status": "unchanged", "connected": True, "alert": None}

    result = runner.invoke(cli.app, ["monitor", "--once"])

    assert result.exit_code == 0
    monitoring.check.assert_called_once()
    assert "unchanged" in result.output


def test_create_form_normalizes_id(services):
    forms, contacts, _ = services
    contacts.get_contact.return_value = ANA

    result = runner.invoke(cli.app, [
        "forms", "create", "--id", " Contato Site ", "--name", "Contato", "--description", "",
        "--field", "nome=Nome", "--contact", "1",
    ])

    assert result.exit_code == 0, result.output
    assert forms.create_form.call_args.args[0].id == "contato-site"


def test_create_form_generates_blank_id(services):
    forms, contacts, _ = services
    contacts.get_contact.return_value = ANA

    result = runner.invoke(cli.app, [
        "forms", "create", "--id", "", "--name", "Contato", "--description", "",
        "--field", "nome=Nome", "--contact", "1",
    ])

    assert result.exit_code == 0, result.output
    form_id = forms.create_form.call_args.args[0].id
    assert len(form_id) == 10
    assert f"/webhook/{form_id}" in result.output


def test_blank_field_id_is_reported_not_raised(services):
    forms, _, _ = services

    result = runner.invoke(cli.app, [
        "forms", "create", "--id", "contato", "--name", "Contato", "--description", "",
        "--field", " =Nome", "--contact", "1",
    ])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "invalid field" in result.output
    forms.create_form.assert_not_called()


@pytest.mark.parametrize("args, target, method", [
    (["forms", "delete", "contato", "--yes"], "forms", "delete_form"),
    (["contacts", "create", "--name", "Ana", "--phone", "5511911111111", "--role", "", "--company", ""],
     "contacts", "create_contact"),
    (["contacts", "edit", "1", "--name", "Ana Maria"], "contacts", "update_contact"),
    (["contacts", "delete", "1", "--yes"], "contacts", "delete_contact"),
])
def test_store_failures_are_reported(services, args, target, method):
    forms, contacts, _ = services
    forms.get_form.return_value = Form(id="contato", name="Contato")
    contacts.get_contact.return_value = ANA
    contacts.get_forms_using_contact.return_value = []
    getattr({"forms": forms, "contacts": contacts}[target], method).side_effect = StoreError("D1 down")

    result = runner.invoke(cli.app, args)

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "D1 down" in result.output


def test_init_db_store_failure_is_reported(services, store):
    store.batch.side_effect = StoreError("D1 down")

    result = runner.invoke(cli.app, ["init-db"])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "applying schema: D1 down" in result.output
