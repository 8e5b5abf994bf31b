"""
Tests for monthly document numbering
"""
from datetime import datetime, timedelta

from backoffice import db
from backoffice.buisness.core.numbering import next_document_number
from backoffice.data.quotes.quote import Quote

JANUARY = datetime(2024, 1, 15)


def _seed_quote(number):
    db.session.add(Quote(
        quote_number=number,
        customer_name='Acme',
        quote_date=JANUARY,
        valid_until=JANUARY + timedelta(days=30),
    ))
    db.session.commit()


def test_first_number_of_month(ctx):
    assert next_document_number(Quote.quote_number, 'COT-', JANUARY) == 'COT-2024-01-001'


def test_sequence_continues_past_three_digits(ctx):
    _seed_quote('COT-2024-01-999')
    assert next_document_number(Quote.quote_number, 'COT-', JANUARY) == 'COT-2024-01-1000'

    _seed_quote('COT-2024-01-1000')
    assert next_document_number(Quote.quote_number, 'COT-', JANUARY) == 'COT-2024-01-1001', \
        "-1000 must outrank -999 even though it sorts lower as text"


def test_other_months_do_not_count(ctx):
    _seed_quote('COT-2023-12-041')
    _seed_quote('COT-2024-02-007')
    assert next_document_number(Quote.quote_number, 'COT-', JANUARY) == 'COT-2024-01-001'
