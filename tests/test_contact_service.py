from elementor_relay.models.form_models import Contact
from elementor_relay.services.contact_service import ContactService


def test_create_contact_returns_row_id(store):
    store.query.return_value = {"results": [], "meta": {"last_row_id": 7}}

    contact_id = ContactService(store).create_contact(Contact(name="Ana", phone_number="+55 11 91111-1111"))

    assert contact_id == 7
    assert store.query.call_args.args[1][0] == "5511911111111"


def test_phone_change_reaches_recipients_in_same_batch(store):
    ContactService(store).update_contact(3, Contact(name="Ana", phone_number="5511933333333"))

    store.batch.assert_called_once()
    statements = store.batch.call_args.args[0]
    assert statements[0][0].startswith("UPDATE contacts")
    assert statements[1] == ("UPDATE form_numbers SET phone_number = ? WHERE contact_id = ?", ["5511933333333", 3])


def test_delete_contact_detaches_recipients_first(store):
    ContactService(store).delete_contact(3)

    sqls = [sql for sql, _ in store.batch.call_args.args[0]]
    assert sqls == [
        "UPDATE form_numbers SET contact_id = NULL WHERE contact_id = ?",
        "DELETE FROM contacts WHERE id = ?",
    ]


def test_list_contacts_includes_form_count(store):
    store.rows.return_value = [{"id": 1, "name": "Ana", "phone_number": "5511911111111", "form_count": 2}]

    contacts = ContactService(store).list_contacts()

    assert contacts[0].form_count == 2
    assert contacts[0].as_recipient().label == "Ana"


def test_form_count_defaults_to_zero(store):
    store.first.return_value = None
    assert ContactService(store).get_contact_form_count(9) == 0
