"""
Tests for consuming cursors: scan_one, scan_all and the module facades.
"""
from dataclasses import dataclass

import dbmap
import pytest
from dbmap import build_mapping, column
from dbmap.exceptions import ColumnListUnavailable, IncompatibleTarget
from dbmap.exceptions import ScanFailure
from tests.fixtures.values import SampleRecord, check_sample


@dataclass
class Person:
    name: str = column('name', default=None)
    age: int = column('age', default=None)


@dataclass
class Account:
    userID: int = None
    displayName: str = None


class Money:
    """Amount in cents, scanned from an integer column."""

    def __init__(self):
        self.cents = None

    def scan(self, value):
        self.cents = value

    def value(self):
        return self.cents


@dataclass
class Order:
    id: int = column('id', default=None)
    amount: Money = column('amount', default=Money())


PEOPLE = [
    {'name': 'Alice', 'age': 30},
    {'name': 'Bob', 'age': 25},
    {'name': 'Charlie', 'age': 35},
]


class TestScanOne:

    def test_found(self, create_fake_rows, sample_row):
        rows = create_fake_rows([sample_row, sample_row])
        target = SampleRecord()

        assert build_mapping(SampleRecord).scan_one(target, rows) is True
        check_sample(target, rows.rows[0])
        assert rows.close_count == 1
        assert rows.next_calls == 1

    def test_no_row(self, create_fake_rows):
        """Test an empty cursor leaves the target alone and is closed once"""
        rows = create_fake_rows([], columns=['name', 'age'])
        target = Person(name='unchanged')

        assert build_mapping(Person).scan_one(target, rows) is False
        assert target == Person(name='unchanged')
        assert rows.close_count == 1

    def test_no_row_with_cursor_error(self, create_fake_rows):
        rows = create_fake_rows([], columns=['name'], end_error=ConnectionError('lost'))
        with pytest.raises(ConnectionError, match='lost'):
            build_mapping(Person).scan_one(Person(), rows)
        assert rows.close_count == 1

    def test_scan_error_closes(self, create_fake_rows):
        rows = create_fake_rows([{'name': 'Alice', 'age': 'thirty'}], fail_at=0)
        with pytest.raises(RuntimeError, match='row 0 is broken'):
            build_mapping(Person).scan_one(Person(), rows)
        assert rows.close_count == 1

    def test_columns_error_closes(self, create_fake_rows):
        rows = create_fake_rows(PEOPLE, columns_error=RuntimeError('cursor is closed'))
        with pytest.raises(ColumnListUnavailable, match='cursor is closed'):
            build_mapping(Person).scan_one(Person(), rows)
        assert rows.close_count == 1
        assert rows.next_calls == 0

    def test_incompatible_target_closes(self, create_fake_rows):
        rows = create_fake_rows(PEOPLE)
        with pytest.raises(IncompatibleTarget):
            build_mapping(Person).scan_one(Account(), rows)
        assert rows.close_count == 1

    def test_decode_failure(self, create_fake_rows, sample_row):
        rows = create_fake_rows([sample_row | {'json': 'not json'}])
        with pytest.raises(ScanFailure) as exc_info:
            build_mapping(SampleRecord).scan_one(SampleRecord(), rows)
        assert exc_info.value.index == rows.rows[0].cols().index('json')
        assert rows.close_count == 1


class TestScanAll:

    def test_all_rows(self, create_fake_rows):
        rows = create_fake_rows(PEOPLE)
        people = build_mapping(Person).scan_all(rows)

        assert people == [Person('Alice', 30), Person('Bob', 25), Person('Charlie', 35)]
        assert rows.close_count == 1

    def test_records_are_independent(self, create_fake_rows, sample_row):
        rows = create_fake_rows([sample_row, sample_row | {'bar': 'second'}])
        first, second = build_mapping(SampleRecord).scan_all(rows)

        assert first is not second
        assert first.embedded is not second.embedded
        assert first.json is not second.json
        assert (first.bar, second.bar) == ('yep', 'second')

    def test_scanner_field_with_shared_default(self, create_fake_rows):
        """Test each record gets its own scanner even when the field default is shared"""
        rows = create_fake_rows([{'id': 1, 'amount': 100}, {'id': 2, 'amount': 250}])
        orders = build_mapping(Order).scan_all(rows)

        assert [o.amount.cents for o in orders] == [100, 250]
        assert orders[0].amount is not orders[1].amount
        assert Order.amount.cents is None

    def test_empty(self, create_fake_rows):
        rows = create_fake_rows([], columns=['name', 'age'])
        assert build_mapping(Person).scan_all(rows) == []
        assert rows.close_count == 1

    @pytest.mark.parametrize('fail_at', [0, 1, 2])
    def test_scan_error_returns_nothing(self, create_fake_rows, fail_at):
        """Test a failing row aborts the whole result and closes the cursor"""
        rows = create_fake_rows(PEOPLE, fail_at=fail_at)
        with pytest.raises(RuntimeError, match=f'row {fail_at} is broken'):
            build_mapping(Person).scan_all(rows)
        assert rows.close_count == 1
        assert rows.next_calls == fail_at + 1

    def test_end_error(self, create_fake_rows):
        """Test an error reported after the last row is raised"""
        rows = create_fake_rows(PEOPLE, end_error=TimeoutError('statement timeout'))
        with pytest.raises(TimeoutError, match='statement timeout'):
            build_mapping(Person).scan_all(rows)
        assert rows.close_count == 1

    def test_columns_error(self, create_fake_rows):
        rows = create_fake_rows(PEOPLE, columns_error=RuntimeError('no result set'))
        with pytest.raises(ColumnListUnavailable):
            build_mapping(Person).scan_all(rows)
        assert rows.close_count == 1

    def test_unknown_and_missing_columns(self, create_fake_rows):
        rows = create_fake_rows([{'name': 'Alice', 'email': 'a@example.com'}])
        (person,) = build_mapping(Person).scan_all(rows)
        assert person == Person('Alice', None)

    def test_inferred_column_names(self, create_fake_rows):
        rows = create_fake_rows([{'user_id': 7, 'display_name': 'Seven'}])
        assert build_mapping(Account).scan_all(rows) == [Account(7, 'Seven')]

    def test_close_error_is_not_raised(self, create_fake_rows, caplog):
        """Test a failing close is logged and the result still returned"""
        rows = create_fake_rows(PEOPLE[:1])

        def broken_close():
            rows.close_count += 1
            raise OSError('socket already closed')

        rows.close = broken_close
        with caplog.at_level('WARNING', logger='dbmap.mapping'):
            people = build_mapping(Person).scan_all(rows)

        assert people == [Person('Alice', 30)]
        assert rows.close_count == 1
        assert 'socket already closed' in caplog.text

    def test_scan_frame(self, create_fake_rows):
        frame = build_mapping(Person).scan_frame(create_fake_rows(PEOPLE))
        assert list(frame.columns) == ['name', 'age']
        assert frame['name'].tolist() == ['Alice', 'Bob', 'Charlie']


class TestFacades:

    def test_scan_all(self, create_fake_rows):
        rows = create_fake_rows(PEOPLE)
        assert dbmap.scan_all(Person, rows)[0] == Person('Alice', 30)
        assert Person in dbmap.MappingCache.get_instance()

    def test_scan_one(self, create_fake_rows):
        target = Person()
        assert dbmap.scan_one(Person, target, create_fake_rows(PEOPLE)) is True
        assert target == Person('Alice', 30)

    def test_scan_stream(self, create_fake_rows):
        rows = create_fake_rows(PEOPLE)
        with dbmap.scan_stream(Person, rows) as stream:
            names = [p.name for p in stream]
        assert names == ['Alice', 'Bob', 'Charlie']
        assert rows.close_count == 1

    def test_mapping_is_reused(self, create_fake_rows):
        dbmap.scan_all(Person, create_fake_rows(PEOPLE))
        dbmap.scan_all(Person, create_fake_rows(PEOPLE))
        assert dbmap.mapping_for(Person) is dbmap.mapping_for(Person)
        assert len(dbmap.MappingCache.get_instance()) == 1


if __name__ == '__main__':
    __import__('pytest').main([__file__])
