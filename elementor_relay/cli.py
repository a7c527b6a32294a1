"""
relayctl: administration CLI for forms, contacts and monitoring.

Examples:
    relayctl forms create --id contato --name "Contato" --field nome=Nome --contact 1
    relayctl forms test contato --format form
    relayctl contacts list
    relayctl monitor --interval 300
"""

import json
import time
from typing import List, Optional

import requests
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from elementor_relay.config import get_settings
from elementor_relay.dependencies import (
    get_contact_service,
    get_form_service,
    get_monitoring_service,
    get_store,
)
from elementor_relay.errors import RelayError
from elementor_relay.logging_config import setup_logging
from elementor_relay.models.form_models import Contact, Form, FormField, Recipient, normalize_form_id
from elementor_relay.services.form_service import dump_form
from elementor_relay.services.schema import SCHEMA_STATEMENTS
from elementor_relay.utils.helpers import format_duration

app = typer.Typer(help="Elementor → WhatsApp relay administration")
forms_app = typer.Typer(help="Manage forms, their field mappings and recipients")
contacts_app = typer.Typer(help="Manage the contact list")
app.add_typer(forms_app, name="forms")
app.add_typer(contacts_app, name="contacts")

console = Console()


@app.callback()
def main():
    """Check store credentials before any command runs."""
    settings = get_settings()
    setup_logging(settings.log_level)
    missing = settings.store.missing_keys()
    if missing:
        console.print("[red]❌ Missing required environment variables:[/red]")
        for key in missing:
            console.print(f"[red]  - {key}[/red]")
        console.print("[dim]Copy .env.example to .env and fill in the values.[/dim]")
        raise typer.Exit(code=1)


def _fail(message: str) -> None:
    console.print(f"[red]Error: {escape(message)}[/red]")
    raise typer.Exit(code=1)


def _field(field_id: str, label: str, order: int) -> FormField:
    try:
        return FormField(field_id=field_id, field_label=label, field_order=order)
    except ValidationError as e:
        _fail(f"invalid field '{field_id}={label}': {e.errors()[0]['msg']}")


def _parse_fields(specs: List[str]) -> List[FormField]:
    """`id=Label` pairs, in the order given."""
    fields = []
    for i, spec in enumerate(specs):
        if "=" not in spec:
            _fail(f"invalid --field '{spec}', expected id=Label")
        field_id, label = spec.split("=", 1)
        fields.append(_field(field_id, label, i))
    return fields


def _prompt_fields(current: Optional[List[FormField]] = None) -> List[FormField]:
    if current:
        console.print("Current fields: " + ", ".join(f"{f.field_id}={f.field_label}" for f in current))
        if not typer.confirm("Replace fields?", default=False):
            return current

    fields: List[FormField] = []
    while True:
        field_id = typer.prompt("Field id (blank to finish)", default="", show_default=False).strip()
        if not field_id:
            break
        label = typer.prompt("Label", default=field_id)
        fields.append(_field(field_id, label, len(fields)))
    if not fields:
        _fail("a form needs at least one field")
    return fields


def _contacts_table(contacts: List[Contact]) -> Table:
    table = Table(header_style="cyan")
    for column in ("ID", "Name", "Role", "Company", "Phone", "Forms", "Created"):
        table.add_column(column)
    for c in contacts:
        table.add_row(
            str(c.id), c.name, c.role or "-", c.company or "-", c.phone_number,
            str(c.form_count), (c.created_at or "-")[:10],
        )
    return table


def _recipients_for(contact_ids: List[int]) -> List[Recipient]:
    contacts_service = get_contact_service()
    recipients = []
    for contact_id in contact_ids:
        contact = contacts_service.get_contact(contact_id)
        if not contact:
            _fail(f"contact {contact_id} not found")
        recipients.append(contact.as_recipient())
    return recipients


def _prompt_contact_ids(current: Optional[List[int]] = None) -> List[int]:
    contacts = get_contact_service().list_contacts()
    if not contacts:
        _fail("no contacts found, add one with `relayctl contacts create` first")
    console.print(_contacts_table(contacts))
    default = ",".join(str(i) for i in current or [])
    raw = typer.prompt("Contact ids (comma separated)", default=default)
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        _fail(f"invalid contact ids '{raw}'")


def _webhook_url(form_id: str) -> str:
    return f"{get_settings().worker_url}/webhook/{form_id}"


# =================================================================
#  FORMS
# =================================================================

@forms_app.command("list")
def list_forms():
    """List forms with field and recipient counts."""
    forms = get_form_service().list_forms()
    if not forms:
        console.print("[yellow]No forms found. Create your first form![/yellow]")
        return

    table = Table(header_style="cyan")
    for column in ("ID", "Name", "Fields", "Numbers", "Created"):
        table.add_column(column)
    for f in forms:
        table.add_row(f.id, f.name, str(f.field_count), str(f.number_count), (f.created_at or "-")[:10])
    console.print(table)


@forms_app.command("show")
def show_form(
    form_id: str = typer.Argument(..., help="Form id"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
):
    """Show one form: fields in message order and recipients."""
    form = get_form_service().get_form(form_id)
    if not form:
        _fail(f"form '{form_id}' not found")

    if as_json:
        console.print_json(dump_form(form))
        return

    console.print(f"[cyan]{form.name}[/cyan] ({form.id})")
    if form.description:
        console.print(f"[dim]{form.description}[/dim]")
    fields = Table(title="Fields", header_style="cyan")
    fields.add_column("#")
    fields.add_column("Field id")
    fields.add_column("Label")
    for f in form.ordered_fields():
        fields.add_row(str(f.field_order), f.field_id, f.field_label)
    console.print(fields)

    numbers = Table(title="Recipients", header_style="cyan")
    numbers.add_column("Phone")
    numbers.add_column("Label")
    numbers.add_column("Contact")
    for r in form.recipients:
        numbers.add_row(r.phone_number, r.label or "-", str(r.contact_id or "-"))
    console.print(numbers)
    console.print(f"📎 Webhook URL: [yellow]{_webhook_url(form.id)}[/yellow]")


@forms_app.command("create")
def create_form(
    form_id: str = typer.Option("", "--id", prompt="Form id (blank to auto-generate)",
                                help="Webhook path segment, normalized to a slug"),
    name: str = typer.Option(..., "--name", prompt="Form name"),
    description: str = typer.Option("", "--description", prompt="Description", help="Optional"),
    field: List[str] = typer.Option([], "--field", help="Field mapping id=Label, repeatable"),
    contact: List[int] = typer.Option([], "--contact", help="Recipient contact id, repeatable"),
):
    """Create a form and print its webhook URL."""
    fields = _parse_fields(field) if field else _prompt_fields()
    contact_ids = contact or _prompt_contact_ids()

    try:
        form = Form(
            id=normalize_form_id(form_id),
            name=name,
            description=description or None,
            fields=fields,
            recipients=_recipients_for(contact_ids),
        )
    except ValidationError as e:
        _fail(str(e))

    try:
        get_form_service().create_form(form)
    except RelayError as e:
        _fail(f"creating form: {e}")

    console.print("[green]✅ Form created successfully![/green]")
    console.print(f"📎 Webhook URL: [yellow]{_webhook_url(form.id)}[/yellow]")
    console.print("[dim]Copy this URL to your Elementor form webhook action.[/dim]")


@forms_app.command("edit")
def edit_form(
    form_id: str = typer.Argument(..., help="Form id"),
    name: Optional[str] = typer.Option(None, "--name"),
    description: Optional[str] = typer.Option(None, "--description"),
    field: List[str] = typer.Option([], "--field", help="Replace fields with these id=Label pairs"),
    contact: List[int] = typer.Option([], "--contact", help="Replace recipients with these contact ids"),
):
    """Edit a form. Without options, prompts for every part."""
    service = get_form_service()
    form = service.get_form(form_id)
    if not form:
        _fail(f"form '{form_id}' not found")

    interactive = not (name or description or field or contact)
    if interactive:
        console.print(f"[cyan]Editing form: {form.name}[/cyan]")
        name = typer.prompt("Form name", default=form.name)
        description = typer.prompt("Description", default=form.description or "")
        fields = _prompt_fields(form.ordered_fields())
        current_ids = [r.contact_id for r in form.recipients if r.contact_id]
        recipients = _recipients_for(_prompt_contact_ids(current_ids))
    else:
        fields = _parse_fields(field) if field else None
        recipients = _recipients_for(contact) if contact else None

    try:
        # Validates slug/uniqueness rules on the result before touching the store
        Form(id=form.id, name=name or form.name, fields=fields or form.fields,
             recipients=recipients if recipients is not None else form.recipients)
        service.update_form(form_id, name=name, description=description, fields=fields, recipients=recipients)
    except ValidationError as e:
        _fail(str(e))
    except RelayError as e:
        _fail(f"updating form: {e}")

    console.print("[green]✅ Form updated successfully![/green]")


@forms_app.command("delete")
def delete_form(
    form_id: str = typer.Argument(..., help="Form id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete a form with its fields and recipients."""
    service = get_form_service()
    form = service.get_form(form_id)
    if not form:
        _fail(f"form '{form_id}' not found")

    console.print(f'[red]⚠️  Warning: This will delete "{form.name}" permanently![/red]')
    if not yes and not typer.confirm("Are you sure you want to delete this form?", default=False):
        console.print("[dim]Deletion cancelled.[/dim]")
        return

    try:
        service.delete_form(form_id)
    except RelayError as e:
        _fail(f"deleting form: {e}")
    console.print("[green]Form deleted successfully![/green]")


def _sample_value(f: FormField) -> str:
    key = f"{f.field_id} {f.field_label}".lower()
    if "mail" in key:
        return "teste@example.com"
    if any(kw in key for kw in ("telefone", "phone", "celular", "whatsapp")):
        return "11999999999"
    return f"Teste {f.field_label}"


@forms_app.command("test")
def test_webhook(
    form_id: str = typer.Argument(..., help="Form id"),
    body_format: str = typer.Option("json", "--format", help="json or form (Elementor URL-encoded)"),
    value: List[str] = typer.Option([], "--value", help="Override a sample value with id=value"),
):
    """Send a sample submission to the deployed webhook."""
    form = get_form_service().get_form(form_id)
    if not form:
        _fail(f"form '{form_id}' not found")

    data = {f.field_id: _sample_value(f) for f in form.ordered_fields()}
    for spec in value:
        if "=" not in spec:
            _fail(f"invalid --value '{spec}', expected id=value")
        key, val = spec.split("=", 1)
        data[key] = val

    url = _webhook_url(form.id)
    headers = {"User-Agent": "Elementor-WhatsApp-Manager/Test"}
    console.print(f"[cyan]Testing webhook for: {form.name}[/cyan] → {url}")

    started = time.monotonic()
    try:
        if body_format == "form":
            payload = {f"fields[{k}][value]": v for k, v in data.items()}
            response = requests.post(url, data=payload, headers=headers, timeout=get_settings().request_timeout)
        else:
            response = requests.post(url, json={"fields": {k: {"value": v} for k, v in data.items()}},
                                     headers=headers, timeout=get_settings().request_timeout)
    except requests.RequestException as e:
        _fail(f"failed to send test webhook: {e}")

    elapsed = format_duration(time.monotonic() - started)
    color = "green" if response.ok else "red"
    console.print(f"[{color}]HTTP {response.status_code}[/{color}] in {elapsed}")
    try:
        console.print_json(json.dumps(response.json(), ensure_ascii=False))
    except ValueError:
        console.print(response.text)
    if not response.ok:
        raise typer.Exit(code=1)


@forms_app.command("export")
def export_form(form_id: str = typer.Argument(..., help="Form id")):
    """Print a form's configuration as JSON."""
    data = get_form_service().export_form(form_id, get_settings().worker_url)
    if not data:
        _fail(f"form '{form_id}' not found")
    console.print_json(json.dumps(data, ensure_ascii=False))


# =================================================================
#  CONTACTS
# =================================================================

@contacts_app.command("list")
def list_contacts():
    contacts = get_contact_service().list_contacts()
    if not contacts:
        console.print("[yellow]No contacts found. Add your first contact![/yellow]")
        return
    console.print(_contacts_table(contacts))


@contacts_app.command("show")
def show_contact(contact_id: int = typer.Argument(...)):
    """Contact details and the forms that send to it."""
    service = get_contact_service()
    contact = service.get_contact(contact_id)
    if not contact:
        _fail(f"contact {contact_id} not found")

    console.print("[cyan]📇 Contact Details[/cyan]")
    for label, val in (
        ("Name", contact.name), ("Phone", contact.phone_number), ("Role", contact.role),
        ("Company", contact.company), ("Notes", contact.notes),
        ("Created", contact.created_at), ("Updated", contact.updated_at),
    ):
        console.print(f"[dim]{label + ':':<11}[/dim] {val or '-'}")

    forms = service.get_forms_using_contact(contact_id)
    if forms:
        console.print("[cyan]📋 Used in Forms:[/cyan]")
        for f in forms:
            console.print(f"  - {f.name} ({f.id})")
    else:
        console.print("[yellow]⚠️  Not used in any forms yet.[/yellow]")


@contacts_app.command("create")
def create_contact(
    name: str = typer.Option(..., "--name", prompt="Name"),
    phone: str = typer.Option(..., "--phone", prompt="Phone (digits, with country code)"),
    role: str = typer.Option("", "--role", prompt="Role", help="Optional"),
    company: str = typer.Option("", "--company", prompt="Company", help="Optional"),
    notes: str = typer.Option("", "--notes", help="Optional"),
):
    try:
        contact = Contact(name=name, phone_number=phone, role=role or None,
                          company=company or None, notes=notes or None)
    except ValidationError as e:
        _fail(str(e))

    try:
        contact_id = get_contact_service().create_contact(contact)
    except RelayError as e:
        _fail(f"creating contact: {e}")
    console.print(f"[green]✅ Contact added to your contact list (id {contact_id})![/green]")


@contacts_app.command("edit")
def edit_contact(
    contact_id: int = typer.Argument(...),
    name: Optional[str] = typer.Option(None, "--name"),
    phone: Optional[str] = typer.Option(None, "--phone"),
    role: Optional[str] = typer.Option(None, "--role"),
    company: Optional[str] = typer.Option(None, "--company"),
    notes: Optional[str] = typer.Option(None, "--notes"),
):
    """Edit a contact. Phone changes reach every form that uses it."""
    service = get_contact_service()
    contact = service.get_contact(contact_id)
    if not contact:
        _fail(f"contact {contact_id} not found")

    if not any(v is not None for v in (name, phone, role, company, notes)):
        console.print(f"[cyan]Editing contact: {contact.name}[/cyan]")
        name = typer.prompt("Name", default=contact.name)
        phone = typer.prompt("Phone", default=contact.phone_number)
        role = typer.prompt("Role", default=contact.role or "")
        company = typer.prompt("Company", default=contact.company or "")
        notes = typer.prompt("Notes", default=contact.notes or "")

    try:
        updated = Contact(
            id=contact_id,
            name=name if name is not None else contact.name,
            phone_number=phone if phone is not None else contact.phone_number,
            role=(role if role is not None else contact.role) or None,
            company=(company if company is not None else contact.company) or None,
            notes=(notes if notes is not None else contact.notes) or None,
        )
    except ValidationError as e:
        _fail(str(e))

    try:
        service.update_contact(contact_id, updated)
    except RelayError as e:
        _fail(f"updating contact: {e}")
    console.print("[green]Contact updated successfully![/green]")
    if updated.phone_number != contact.phone_number:
        count = service.get_contact_form_count(contact_id)
        if count:
            console.print(f"[yellow]⚠️  Phone number changed in {count} form(s).[/yellow]")


@contacts_app.command("delete")
def delete_contact(
    contact_id: int = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    service = get_contact_service()
    contact = service.get_contact(contact_id)
    if not contact:
        _fail(f"contact {contact_id} not found")

    forms = service.get_forms_using_contact(contact_id)
    if forms:
        console.print(f"[yellow]⚠️  This contact is used in {len(forms)} form(s):[/yellow]")
        for f in forms:
            console.print(f"[dim]  - {f.name} ({f.id})[/dim]")

    if not yes and not typer.confirm(f"Are you sure you want to delete {contact.name}?", default=False):
        console.print("[dim]Deletion cancelled.[/dim]")
        return

    try:
        service.delete_contact(contact_id)
    except RelayError as e:
        _fail(f"deleting contact: {e}")
    console.print("[green]Contact deleted successfully![/green]")


# =================================================================
#  STORE & MONITORING
# =================================================================

@app.command("init-db")
def init_db():
    """Create the tables in the configured store (idempotent)."""
    try:
        get_store().batch([(sql, []) for sql in SCHEMA_STATEMENTS])
    except RelayError as e:
        _fail(f"applying schema: {e}")
    console.print(f"[green]Schema applied ({len(SCHEMA_STATEMENTS)} statements).[/green]")


@app.command("monitor")
def monitor(
    interval: Optional[int] = typer.Option(None, "--interval", help="Seconds between polls (MONITORING_INTERVAL)"),
    once: bool = typer.Option(False, "--once", help="Run a single check and exit"),
):
    """Poll provider connectivity on a fixed schedule, alerting on changes."""
    service = get_monitoring_service()
    interval = interval or get_settings().monitoring.interval_seconds

    while True:
        try:
            outcome = service.check()
        except RelayError as e:
            console.print(f"[red]Monitoring check failed: {e}[/red]")
            outcome = {"status": "error"}

        if outcome["status"] == "disabled":
            console.print("[yellow]Monitoring disabled (set MONITORING_ENABLED=true).[/yellow]")
            return
        console.print(f"[dim]{time.strftime('%H:%M:%S')}[/dim] {json.dumps(outcome)}")

        if once:
            return
        try:
            time.sleep(interval)
        except KeyboardInterrupt:
            console.print("[dim]Goodbye! 👋[/dim]")
            return


if __name__ == "__main__":
    app()
