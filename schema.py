"""DB Models for the app."""

from dataclasses import dataclass

TABLES = [
    """CREATE TABLE IF NOT EXISTS stones (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        carat REAL NOT NULL,
        shape TEXT NOT NULL,
        color TEXT NOT NULL,
        clarity TEXT NOT NULL,
        cut TEXT,
        certification TEXT,
        cert_number TEXT,
        asking_price REAL,
        cost_price REAL,
        source TEXT,
        supplier_id INTEGER,
        status TEXT DEFAULT 'Available',
        notes TEXT,
        date_added TEXT,
        date_updated TEXT)""",
    """CREATE TABLE IF NOT EXISTS contacts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        company TEXT,
        type TEXT NOT NULL,
        email TEXT,
        phone TEXT,
        location TEXT,
        preferences TEXT,
        notes TEXT,
        last_contact TEXT,
        date_added TEXT)""",
    """CREATE TABLE IF NOT EXISTS deals (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        stone_id INTEGER,
        buyer_id INTEGER,
        status TEXT DEFAULT 'Pending',
        asking_price REAL,
        offered_price REAL,
        final_price REAL,
        commission REAL,
        commission_percent REAL DEFAULT 3.0,
        notes TEXT,
        date_started TEXT,
        date_closed TEXT)""",
    """CREATE TABLE IF NOT EXISTS price_log (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        shape TEXT NOT NULL,
        carat_min REAL NOT NULL,
        carat_max REAL NOT NULL,
        color TEXT NOT NULL,
        clarity TEXT NOT NULL,
        price_per_carat REAL NOT NULL,
        source TEXT,
        notes TEXT,
        date_logged TEXT)""",
]


@dataclass(frozen=True)
class Stone:
    id: int  # primary key (auto-incremented)
    carat: float
    shape: str
    color: str
    clarity: str
    cut: str | None = None
    certification: str | None = None
    cert_number: str | None = None
    asking_price: float | None = None
    cost_price: float | None = None
    source: str | None = None
    supplier_id: int | None = None  # -> Contact.id (not enforced)
    status: str = 'Available'
    notes: str | None = None
    date_added: str | None = None
    date_updated: str | None = None


@dataclass(frozen=True)
class StoneListing(Stone):
    supplier_name: str | None = None


@dataclass(frozen=True)
class Contact:
    id: int  # primary key (auto-incremented)
    name: str
    type: str  # Buyer, Supplier or any other category
    company: str | None = None
    email: str | None = None
    phone: str | None = None
    location: str | None = None
    preferences: str | None = None
    notes: str | None = None
    last_contact: str | None = None
    date_added: str | None = None


@dataclass(frozen=True)
class Deal:
    id: int  # primary key (auto-incremented)
    stone_id: int | None = None  # -> Stone.id (not enforced)
    buyer_id: int | None = None  # -> Contact.id (not enforced)
    status: str | None = 'Pending'
    asking_price: float | None = None
    offered_price: float | None = None
    final_price: float | None = None
    commission: float | None = None
    commission_percent: float | None = 3.0
    notes: str | None = None
    date_started: str | None = None
    date_closed: str | None = None


@dataclass(frozen=True)
class DealListing(Deal):
    carat: float | None = None
    shape: str | None = None
    color: str | None = None
    clarity: str | None = None
    buyer_name: str | None = None
    buyer_company: str | None = None


@dataclass(frozen=True)
class PriceLogEntry:
    id: int  # primary key (auto-incremented)
    shape: str
    carat_min: float
    carat_max: float
    color: str
    clarity: str
    price_per_carat: float
    source: str | None = None
    notes: str | None = None
    date_logged: str | None = None


@dataclass(frozen=True)
class Stats:
    inventory: dict
    deals: dict
    contacts: dict
    recent_stones: list[Stone]
    recent_deals: list[DealListing]


@dataclass(frozen=True)
class CalculatorResult:
    cost_price: float
    cost_per_carat: int
    sell_price: int
    sell_per_carat: int
    profit: int
    commission: int
    net_profit: int
    margin_percent: float
    net_margin_percent: str
