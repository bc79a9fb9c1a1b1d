"""
Taxi Ledger - backup format constants.

Everything that both the encoder and the decoder must agree on lives here:
the format marker, collection keys, spreadsheet tab names and the ordered
column schema of every tab.  Changing a column list is a format change and
must be made on both sides at once.
"""

from typing import Dict, List, Tuple

# ---------------------------------------------------------------------------
# Backup file format
# ---------------------------------------------------------------------------

BACKUP_APP: str = "TAppXI"       # magic value checked verbatim on restore
BACKUP_VERSION: str = "1.0"      # carried, not enforced
BACKUP_FILE_PREFIX: str = "tappxi-backup"
BACKUP_MIME_TYPE: str = "application/json"
EXPORT_TITLE_PREFIX: str = "TAppXI Export"

# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------

SETTINGS: str = "settings"
BREAK_CONFIGURATION: str = "breakConfiguration"
EXCEPTIONS: str = "exceptions"
TRIPS: str = "trips"
EXPENSES: str = "expenses"
SHIFTS: str = "shifts"
SUPPLIERS: str = "suppliers"
CONCEPTS: str = "concepts"
WORKSHOPS: str = "workshops"

SINGLETON_COLLECTIONS: Tuple[str, ...] = (SETTINGS, BREAK_CONFIGURATION)
LIST_COLLECTIONS: Tuple[str, ...] = (
    EXCEPTIONS, TRIPS, EXPENSES, SHIFTS, SUPPLIERS, CONCEPTS, WORKSHOPS,
)

# Order in which the restore orchestrator applies collections.
RESTORE_ORDER: Tuple[str, ...] = (
    SETTINGS, BREAK_CONFIGURATION, TRIPS, EXPENSES, SHIFTS,
    SUPPLIERS, CONCEPTS, WORKSHOPS, EXCEPTIONS,
)
RESTORE_TOTAL_STEPS: int = len(RESTORE_ORDER)

# Emit an item-level progress event every N records within a list step.
PROGRESS_ITEM_STRIDE: int = 10

# Collection keys used by older backup files (Spanish names, and the short
# break configuration key).
PAYLOAD_KEY_ALIASES: Dict[str, str] = {
    "ajustes": SETTINGS,
    "breakConfig": BREAK_CONFIGURATION,
    "excepciones": EXCEPTIONS,
    "carreras": TRIPS,
    "gastos": EXPENSES,
    "turnos": SHIFTS,
    "proveedores": SUPPLIERS,
    "conceptos": CONCEPTS,
    "talleres": WORKSHOPS,
}

# Legacy settings key (accented spelling) → current key.
LEGACY_FONT_SIZE_KEY: str = "tamañoFuente"
FONT_SIZE_KEY: str = "fontSize"

# ---------------------------------------------------------------------------
# Spreadsheet tabs
# ---------------------------------------------------------------------------

TAB_TRIPS: str = "Trips"
TAB_EXPENSES: str = "Expenses"
TAB_SHIFTS: str = "Shifts"
TAB_SUPPLIERS: str = "Suppliers"
TAB_CONCEPTS: str = "Concepts"
TAB_WORKSHOPS: str = "Workshops"
TAB_SETTINGS: str = "Settings"
TAB_BREAK_CONFIGURATION: str = "BreakConfiguration"
TAB_EXCEPTIONS: str = "Exceptions"
TAB_SERVICES: str = "Services"

COLLECTION_TABS: Dict[str, str] = {
    TRIPS: TAB_TRIPS,
    EXPENSES: TAB_EXPENSES,
    SHIFTS: TAB_SHIFTS,
    SUPPLIERS: TAB_SUPPLIERS,
    CONCEPTS: TAB_CONCEPTS,
    WORKSHOPS: TAB_WORKSHOPS,
    SETTINGS: TAB_SETTINGS,
    BREAK_CONFIGURATION: TAB_BREAK_CONFIGURATION,
    EXCEPTIONS: TAB_EXCEPTIONS,
}

# Tab creation order for an export (Services is derived, export-only).
EXPORT_TABS: Tuple[str, ...] = (
    TAB_TRIPS, TAB_EXPENSES, TAB_SHIFTS, TAB_SUPPLIERS, TAB_CONCEPTS,
    TAB_WORKSHOPS, TAB_SETTINGS, TAB_BREAK_CONFIGURATION, TAB_EXCEPTIONS,
    TAB_SERVICES,
)

# Column span requested when reading a tab back.
ENTITY_RANGE_COLUMNS: str = "A:Z"
SINGLETON_RANGE_COLUMNS: str = "A:B"

KEY_VALUE_HEADER: List[str] = ["Key", "Value"]

# ---------------------------------------------------------------------------
# Column schemas (ordered, part of the spreadsheet contract)
# ---------------------------------------------------------------------------

TRIP_COLUMNS: List[str] = [
    "id", "taximeterFare", "chargedAmount", "paymentMethod", "tripType",
    "dispatch", "airport", "station", "dateTime", "shiftId", "voucherInfo",
    "notes",
]

EXPENSE_COLUMNS: List[str] = [
    "id", "amount", "date", "type", "category", "paymentMethod", "supplier",
    "concept", "workshop", "invoiceNumber", "taxableBase", "vatAmount",
    "vatPercentage", "kilometers", "vehicleKilometers", "partialKilometers",
    "liters", "pricePerLiter", "discount", "services", "notes",
]

SERVICE_COLUMNS: List[str] = [
    "ExpenseId", "Date", "Service", "Reference", "Amount", "Quantity",
    "Discount", "Description",
]

SHIFT_COLUMNS: List[str] = [
    "id", "startDate", "startKilometers", "endDate", "endKilometers", "number",
]

SUPPLIER_COLUMNS: List[str] = ["id", "name", "address", "phone", "taxId", "createdAt"]
CONCEPT_COLUMNS: List[str] = ["id", "name", "description", "category", "createdAt"]
WORKSHOP_COLUMNS: List[str] = ["id", "name", "address", "phone", "createdAt"]

EXCEPTION_COLUMNS: List[str] = [
    "id", "startDate", "endDate", "type", "newLetter", "note", "description",
    "appliesEven", "appliesOdd", "createdAt",
]

ENTITY_COLUMNS: Dict[str, List[str]] = {
    TRIPS: TRIP_COLUMNS,
    EXPENSES: EXPENSE_COLUMNS,
    SHIFTS: SHIFT_COLUMNS,
    SUPPLIERS: SUPPLIER_COLUMNS,
    CONCEPTS: CONCEPT_COLUMNS,
    WORKSHOPS: WORKSHOP_COLUMNS,
    EXCEPTIONS: EXCEPTION_COLUMNS,
}

# Expense ``type`` value that gets exploded into the Services tab.
VEHICLE_EXPENSE_TYPE: str = "vehicle"

# ---------------------------------------------------------------------------
# Singleton defaults applied after decoding a Key/Value tab
# ---------------------------------------------------------------------------

SETTINGS_DEFAULTS: Dict[str, object] = {
    "darkTheme": False,
    FONT_SIZE_KEY: 14,
    "breakLetter": "",
    "dailyGoal": 100,
    "themeColor": "blue",
    "highContrast": False,
}

BREAK_CONFIGURATION_DEFAULTS: Dict[str, object] = {
    "startDate": "",
    "startDayLetter": "A",
    "weekendPattern": "Saturday: AC / Sunday: BD",
    "userBreakLetter": "A",
}
