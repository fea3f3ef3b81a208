"""
Unit tests for CSV and JSON exports.
"""

import csv
import io
import pytest
from datetime import datetime

from retail_pos.exceptions import BusinessLogicError
from retail_pos.models import CustomerInfo
from retail_pos.services import export_service
from retail_pos.services.customer_service import aggregate_customers


def parse(text):
    return list(csv.reader(io.StringIO(text)))


class TestTransactionsCsv:

    def test_headers_and_row(self, sale_factory):
        sale = sale_factory(1700000000000, datetime(2026, 1, 12, 15, 30),
                            [(1, 2, '10.00')], customer=CustomerInfo('Asha, Jr.', '555'))
        text = export_service.transactions_csv([sale], 'INV')

        rows = parse(text)
        assert rows[0] == export_service.TRANSACTION_HEADERS
        assert rows[1] == ['INV1700000000000', '1/12/2026', '3:30:00 PM', 'Asha, Jr.', '555',
                           '1', '20.00', '0.00', '0.00', '20.00']

    def test_every_field_quoted(self, sale_factory):
        text = export_service.transactions_csv([sale_factory(1, datetime(2026, 1, 12), [(1, 1)])])
        assert text.splitlines()[0].startswith('"Invoice ID","Date"')
        assert text.splitlines()[1].startswith('"INV1","1/12/2026"')

    def test_quotes_are_doubled(self, sale_factory):
        sale = sale_factory(1, datetime(2026, 1, 12), [(1, 1)], customer=CustomerInfo('The "Boss"'))
        assert '"The ""Boss"""' in export_service.transactions_csv([sale])

    def test_nothing_to_export(self):
        with pytest.raises(BusinessLogicError, match='No transactions to export'):
            export_service.transactions_csv([])


class TestCustomersCsv:

    def test_customers(self, sale_factory):
        customers = aggregate_customers([
            sale_factory(1, datetime(2026, 1, 2, 9), [(1, 1, '5.00')], customer=CustomerInfo('Ravi', '1')),
            sale_factory(2, datetime(2026, 1, 9, 9), [(1, 1, '7.50')], customer=CustomerInfo('Ravi', '1')),
        ])
        rows = parse(export_service.customers_csv(customers))

        assert rows[0] == export_service.CUSTOMER_HEADERS
        assert rows[1] == ['Ravi', '1', '', '2', '12.50', '1/2/2026', '1/9/2026']

    def test_nothing_to_export(self):
        with pytest.raises(BusinessLogicError, match='No customers to export'):
            export_service.customers_csv({})


def test_export_filename(now):
    assert export_service.export_filename('transactions', 'csv', now) == 'transactions_2026-01-14.csv'
