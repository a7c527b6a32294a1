"""DDL for the configuration store, applied by `relayctl init-db`."""

SCHEMA_STATEMENTS = [
    """CREATE TABLE IF NOT EXISTS forms (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )""",
    """CREATE TABLE IF NOT EXISTS form_fields (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        form_id TEXT NOT NULL REFERENCES forms(id) ON DELETE CASCADE,
        field_id TEXT NOT NULL,
        field_label TEXT NOT NULL,
        field_order INTEGER NOT NULL DEFAULT 0,
        UNIQUE (form_id, field_id)
    )""",
    """CREATE TABLE IF NOT EXISTS contacts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        phone_number TEXT NOT NULL,
        name TEXT NOT NULL,
        company TEXT,
        role TEXT,
        notes TEXT,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )""",
    """CREATE TABLE IF NOT EXISTS form_numbers (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        form_id TEXT NOT NULL REFERENCES forms(id) ON DELETE CASCADE,
        phone_number TEXT NOT NULL,
        label TEXT,
        contact_id INTEGER REFERENCES contacts(id) ON DELETE SET NULL
    )""",
    """CREATE TABLE IF NOT EXISTS monitoring_state (
        key TEXT PRIMARY KEY,
        connected INTEGER NOT NULL,
        session INTEGER NOT NULL DEFAULT 0,
        status_json TEXT,
        last_changed DATETIME DEFAULT CURRENT_TIMESTAMP
    )""",
    """CREATE TABLE IF NOT EXISTS monitoring_history (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        key TEXT NOT NULL,
        connected INTEGER NOT NULL,
        session INTEGER NOT NULL DEFAULT 0,
        status_json TEXT,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )""",
    "CREATE INDEX IF NOT EXISTS idx_form_fields_form ON form_fields(form_id)",
    "CREATE INDEX IF NOT EXISTS idx_form_numbers_form ON form_numbers(form_id)",
    "CREATE INDEX IF NOT EXISTS idx_form_numbers_contact ON form_numbers(contact_id)",
    "CREATE INDEX IF NOT EXISTS idx_monitoring_history_key ON monitoring_history(key, id)",
]
