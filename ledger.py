"""Record-keeping operations for stones, contacts, deals and prices."""

from datetime import datetime, timezone
import logging

from schema import (Contact, Deal, DealListing, PriceLogEntry, Stats, Stone,
                    StoneListing)
from storage_strategy import StorageStrategy

logger = logging.getLogger(__name__)

STONE_FIELDS = ('carat', 'shape', 'color', 'clarity', 'cut', 'certification',
                'cert_number', 'asking_price', 'cost_price', 'source',
                'supplier_id', 'status', 'notes')
CONTACT_FIELDS = ('name', 'company', 'type', 'email', 'phone', 'location',
                  'preferences', 'notes')
PRICE_FIELDS = ('shape', 'carat_min', 'carat_max', 'color', 'clarity',
                'price_per_carat', 'source', 'notes')

DEFAULT_COMMISSION_PERCENT = 3.0
# deal status that closes the deal -> resulting stone status
CLOSING_STATUSES = {'Completed': 'Sold', 'Lost': 'Available'}

DEAL_LISTING_SQL = """
    SELECT d.*, s.carat, s.shape, s.color, s.clarity,
           c.name AS buyer_name, c.company AS buyer_company
    FROM deals d
    LEFT JOIN stones s ON d.stone_id = s.id
    LEFT JOIN contacts c ON d.buyer_id = c.id
    ORDER BY d.id DESC"""


def today() -> str:
    """Current UTC date as YYYY-MM-DD."""

    return datetime.now(timezone.utc).date().isoformat()


def _insert_sql(table: str, fields) -> str:
    return 'INSERT INTO {} ({}) VALUES ({})'.format(
        table, ', '.join(fields), ', '.join(':' + f for f in fields))


def _update_sql(table: str, fields) -> str:
    return 'UPDATE {} SET {} WHERE id = :id'.format(
        table, ', '.join(f'{f} = :{f}' for f in fields))


def _pick(data: dict, fields) -> dict:
    return {field: data.get(field) for field in fields}


class Ledger:
    """The brokerage's records, kept in a StorageStrategy."""

    def __init__(self, storage_strategy: StorageStrategy):
        self.storage = storage_strategy

    # stones

    def list_stones(self) -> list[StoneListing]:
        """All stones, newest first, with their supplier's name."""

        rows = self.storage.fetch_all(
            'SELECT s.*, c.name AS supplier_name FROM stones s '
            'LEFT JOIN contacts c ON s.supplier_id = c.id ORDER BY s.id DESC')
        return [StoneListing(**row) for row in rows]

    def get_stone(self, stone_id: int) -> Stone | None:
        """Get one stone (or None)."""

        row = self.storage.fetch_one('SELECT * FROM stones WHERE id = :id',
                                     {'id': stone_id})
        return Stone(**row) if row else None

    def create_stone(self, data: dict) -> Stone:
        """Add a stone to inventory (Available unless told otherwise)."""

        params = _pick(data, STONE_FIELDS)
        params['status'] = params['status'] or 'Available'
        params['date_added'] = params['date_updated'] = today()
        stone_id = self.storage.execute(
            _insert_sql('stones', STONE_FIELDS + ('date_added', 'date_updated')),
            params)
        return self.get_stone(stone_id)

    def update_stone(self, stone_id: int, data: dict) -> Stone | None:
        """Replace every editable field of a stone (None if it doesn't exist)."""

        params = _pick(data, STONE_FIELDS)
        params['date_updated'] = today()
        params['id'] = stone_id
        self.storage.execute(
            _update_sql('stones', STONE_FIELDS + ('date_updated', )), params)
        return self.get_stone(stone_id)

    def delete_stone(self, stone_id: int):
        """Hard delete a stone."""

        # deals pointing at the stone are left as they are
        self.storage.execute('DELETE FROM stones WHERE id = :id',
                             {'id': stone_id})

    def _set_stone_status(self, stone_id: int | None, status: str):
        """Move a stone to Available, Reserved or Sold."""

        self.storage.execute('UPDATE stones SET status = :status WHERE id = :id',
                             {'status': status, 'id': stone_id})

    # contacts

    def list_contacts(self) -> list[Contact]:
        """All contacts, by name."""

        rows = self.storage.fetch_all('SELECT * FROM contacts ORDER BY name')
        return [Contact(**row) for row in rows]

    def get_contact(self, contact_id: int) -> Contact | None:
        """Get one contact (or None)."""

        row = self.storage.fetch_one('SELECT * FROM contacts WHERE id = :id',
                                     {'id': contact_id})
        return Contact(**row) if row else None

    def create_contact(self, data: dict) -> Contact:
        """Add a buyer, supplier or other contact, last contacted today."""

        params = _pick(data, CONTACT_FIELDS)
        params['last_contact'] = params['date_added'] = today()
        contact_id = self.storage.execute(
            _insert_sql('contacts',
                        CONTACT_FIELDS + ('last_contact', 'date_added')),
            params)
        return self.get_contact(contact_id)

    def update_contact(self, contact_id: int, data: dict) -> Contact | None:
        """Replace every editable field of a contact (None if it doesn't exist)."""

        params = _pick(data, CONTACT_FIELDS)
        params['id'] = contact_id
        self.storage.execute(_update_sql('contacts', CONTACT_FIELDS), params)
        return self.get_contact(contact_id)

    def delete_contact(self, contact_id: int):
        """Hard delete a contact (stones and deals keep their reference)."""

        self.storage.execute('DELETE FROM contacts WHERE id = :id',
                             {'id': contact_id})

    # deals

    def list_deals(self) -> list[DealListing]:
        """All deals, newest first, with stone and buyer details."""

        return [
            DealListing(**row)
            for row in self.storage.fetch_all(DEAL_LISTING_SQL)
        ]

    def get_deal(self, deal_id: int) -> Deal | None:
        """Get one deal (or None)."""

        row = self.storage.fetch_one('SELECT * FROM deals WHERE id = :id',
                                     {'id': deal_id})
        return Deal(**row) if row else None

    def create_deal(self, data: dict) -> Deal:
        """
        Open a deal on a stone and reserve the stone.

        Both writes happen in one transaction.
        """

        params = _pick(data, ('stone_id', 'buyer_id', 'asking_price',
                              'offered_price', 'commission_percent', 'notes'))
        if params['commission_percent'] is None:
            params['commission_percent'] = DEFAULT_COMMISSION_PERCENT
        params['date_started'] = today()

        with self.storage.transaction():
            deal_id = self.storage.execute(_insert_sql('deals', params), params)
            self._set_stone_status(params['stone_id'], 'Reserved')
            deal = self.get_deal(deal_id)

        logger.info('Deal %s opened on stone %s', deal_id, params['stone_id'])
        return deal

    def update_deal(self, deal_id: int, data: dict) -> Deal | None:
        """
        Move a deal to a new status.

        Completed and Lost close the deal: date_closed is stamped and the
        stone becomes Sold or Available. Any other status leaves the stone
        alone and clears date_closed. Closing an already closed deal does it
        all again.

        The commission is taken from the payload when given, otherwise
        computed from final_price and the deal's commission_percent.

        Returns:
            The updated deal, or None if there is no such deal.
        """

        status = data.get('status')
        final_price = data.get('final_price')
        commission = data.get('commission')

        with self.storage.transaction():
            deal = self.get_deal(deal_id)
            if not deal:
                return None

            date_closed = None
            if status in CLOSING_STATUSES:
                date_closed = today()
                self._set_stone_status(deal.stone_id, CLOSING_STATUSES[status])

            if commission is None and final_price is not None:
                commission = final_price * (deal.commission_percent / 100)

            self.storage.execute(
                _update_sql('deals', ('status', 'offered_price', 'final_price',
                                      'commission', 'notes', 'date_closed')),
                {
                    'id': deal_id,
                    'status': status,
                    'offered_price': data.get('offered_price'),
                    'final_price': final_price,
                    'commission': commission,
                    'notes': data.get('notes'),
                    'date_closed': date_closed
                })
            deal = self.get_deal(deal_id)

        logger.info('Deal %s is now %s', deal_id, status)
        return deal

    def delete_deal(self, deal_id: int):
        """Delete a deal, putting its stone back on the market."""

        with self.storage.transaction():
            deal = self.get_deal(deal_id)
            if deal:
                self._set_stone_status(deal.stone_id, 'Available')
            self.storage.execute('DELETE FROM deals WHERE id = :id',
                                 {'id': deal_id})

    # price log

    def list_prices(self) -> list[PriceLogEntry]:
        """Logged market prices, latest first (ties broken by newest entry)."""

        rows = self.storage.fetch_all(
            'SELECT * FROM price_log ORDER BY date_logged DESC, id DESC')
        return [PriceLogEntry(**row) for row in rows]

    def create_price(self, data: dict) -> PriceLogEntry:
        """Log a per-carat price; carat_max defaults to carat_min."""

        params = _pick(data, PRICE_FIELDS)
        if params['carat_max'] is None:
            params['carat_max'] = params['carat_min']
        params['date_logged'] = today()
        price_id = self.storage.execute(
            _insert_sql('price_log', PRICE_FIELDS + ('date_logged', )), params)
        row = self.storage.fetch_one('SELECT * FROM price_log WHERE id = :id',
                                     {'id': price_id})
        return PriceLogEntry(**row)

    # stats

    def stats(self) -> Stats:
        """Summarize inventory, deals and contacts, one query per table."""

        inventory = self.storage.fetch_one("""
            SELECT COUNT(*) AS total_stones,
                   COALESCE(SUM(CASE WHEN status = 'Available' THEN 1 ELSE 0 END), 0) AS available,
                   COALESCE(SUM(CASE WHEN status = 'Reserved' THEN 1 ELSE 0 END), 0) AS reserved,
                   COALESCE(SUM(CASE WHEN status = 'Sold' THEN 1 ELSE 0 END), 0) AS sold,
                   COALESCE(SUM(CASE WHEN status = 'Available' THEN asking_price ELSE 0 END), 0) AS available_value
            FROM stones""")
        deals = self.storage.fetch_one("""
            SELECT COUNT(*) AS total_deals,
                   COALESCE(SUM(CASE WHEN status IN ('Pending', 'Negotiating', 'Agreed') THEN 1 ELSE 0 END), 0) AS active,
                   COALESCE(SUM(CASE WHEN status = 'Completed' THEN 1 ELSE 0 END), 0) AS completed,
                   COALESCE(SUM(CASE WHEN status = 'Completed' THEN final_price ELSE 0 END), 0) AS completed_value,
                   COALESCE(SUM(CASE WHEN status = 'Completed' THEN commission ELSE 0 END), 0) AS total_commission
            FROM deals""")
        contacts = self.storage.fetch_one("""
            SELECT COUNT(*) AS total,
                   COALESCE(SUM(CASE WHEN type = 'Buyer' THEN 1 ELSE 0 END), 0) AS buyers,
                   COALESCE(SUM(CASE WHEN type = 'Supplier' THEN 1 ELSE 0 END), 0) AS suppliers
            FROM contacts""")
        recent_stones = self.storage.fetch_all(
            'SELECT * FROM stones ORDER BY id DESC LIMIT 5')
        recent_deals = self.storage.fetch_all(DEAL_LISTING_SQL + ' LIMIT 5')

        return Stats(inventory=inventory or {},
                     deals=deals or {},
                     contacts=contacts or {},
                     recent_stones=[Stone(**row) for row in recent_stones],
                     recent_deals=[DealListing(**row) for row in recent_deals])
