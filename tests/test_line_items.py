"""
Tests for the Supplier / Line-Item sheet parser.
"""

from datetime import datetime

import pytest

from scm_dashboard.constants import PRODUCT_TYPE_LIST, ProductType
from scm_dashboard.ingest.csv_parser import parse_csv
from scm_dashboard.ingest.fields import normalize_headers
from scm_dashboard.ingest.line_items import SupplierSheetParser


def _parse(text):
    rows = parse_csv(text)
    return SupplierSheetParser().parse(normalize_headers(rows[0]), rows[1:])


def _row(**overrides):
    row = {
        'OrderID': 'BM-1',
        'LineItemID': 'BM-1-LI1',
        'Quantity': '2',
        'SupplierID_for_LineItem': 'SUP-101',
        'SupplierName_for_LineItem': 'AgroEquip India',
        'ProductType': 'Water Pump',
        'SupplierUnitCost_for_LineItem': '10',
    }
    row.update(overrides)
    return row


class TestSupplierRegistration:
    """Tests for supplier de-duplication."""

    def test_first_row_wins(self, supplier_csv):
        result = _parse(supplier_csv(
            _row(SupplierAvgTATDays_for_LineItem='20', SupplierDeliveryRate_for_LineItem='0.95'),
            _row(LineItemID='BM-1-LI2', SupplierName_for_LineItem='Renamed Supplier',
                 SupplierAvgTATDays_for_LineItem='99'),
        ))

        assert list(result.suppliers) == ['SUP-101']
        supplier = result.suppliers['SUP-101']
        assert supplier.name == 'AgroEquip India'
        assert supplier.avg_tat_days == 20.0
        assert supplier.delivery_rate == 0.95
        assert supplier.country == 'India'

    def test_missing_supplier_name(self, supplier_csv):
        result = _parse(supplier_csv(_row(SupplierID_for_LineItem='SUP-9', SupplierName_for_LineItem='')))

        assert result.suppliers['SUP-9'].name == 'Unknown Supplier SUP-9'
        assert any('SupplierName_for_LineItem' in e for e in result.errors)

    def test_rate_out_of_range_is_clamped(self, supplier_csv):
        result = _parse(supplier_csv(_row(SupplierDeliveryRate_for_LineItem='1.5')))

        assert result.suppliers['SUP-101'].delivery_rate == 1.0
        assert any('outside 0-1' in e for e in result.errors)

    def test_supplier_order_follows_first_appearance(self, supplier_csv):
        result = _parse(supplier_csv(
            _row(SupplierID_for_LineItem='SUP-103', SupplierName_for_LineItem='C'),
            _row(LineItemID='x2', SupplierID_for_LineItem='SUP-101', SupplierName_for_LineItem='A'),
            _row(LineItemID='x3', SupplierID_for_LineItem='SUP-103', SupplierName_for_LineItem='C'),
        ))
        assert list(result.suppliers) == ['SUP-103', 'SUP-101']


class TestLineItems:
    """Tests for line item construction."""

    def test_grouped_by_order_in_sheet_order(self, supplier_csv):
        result = _parse(supplier_csv(
            _row(LineItemID='A'),
            _row(OrderID='BM-2', LineItemID='B'),
            _row(LineItemID='C'),
        ))

        assert [li.id for li in result.line_items_by_order['BM-1']] == ['A', 'C']
        assert [li.id for li in result.line_items_by_order['BM-2']] == ['B']
        assert result.line_item_count == 3
        assert result.rows_read == 3

    def test_missing_order_id_skips_row(self, supplier_csv):
        result = _parse(supplier_csv(_row(OrderID='')))

        assert result.line_items_by_order == {}
        assert result.errors == ['Supplier CSV (Row 2): Missing OrderID for linking.']

    def test_default_line_item_id_and_product_fields(self, supplier_csv):
        result = _parse(supplier_csv(_row(LineItemID='')))
        line_item = result.line_items_by_order['BM-1'][0]

        assert line_item.id == 'BM-1-li-1'
        assert line_item.product_id == 'prod-li-1'
        assert line_item.product_name == 'Product BM-1-li-1'

    def test_unit_cost_and_quantity(self, supplier_csv):
        result = _parse(supplier_csv(_row(Quantity='3', SupplierUnitCost_for_LineItem='$1,250.50')))
        line_item = result.line_items_by_order['BM-1'][0]

        assert line_item.quantity == 3
        assert isinstance(line_item.quantity, int)
        assert line_item.final_price_per_unit == 1250.5
        assert line_item.supplier_cost == pytest.approx(3751.5)
        assert result.errors == []

    def test_unit_cost_alias_column(self, supplier_csv):
        headers = ['OrderID', 'LineItemID', 'Quantity', 'SupplierID_for_LineItem',
                   'SupplierName_for_LineItem', 'FinalPricePerUnit']
        result = _parse(supplier_csv(_row(FinalPricePerUnit='7'), headers=headers))

        assert result.line_items_by_order['BM-1'][0].final_price_per_unit == 7.0

    def test_non_numeric_quantity(self, supplier_csv):
        result = _parse(supplier_csv(_row(Quantity='abc')))

        assert result.line_items_by_order['BM-1'][0].quantity == 0
        assert len(result.errors) == 1
        assert 'BM-1' in result.errors[0]
        assert '"abc"' in result.errors[0]

    def test_negative_quantity(self, supplier_csv):
        result = _parse(supplier_csv(_row(Quantity='-4')))

        assert result.line_items_by_order['BM-1'][0].quantity == 0
        assert any('Negative quantity' in e for e in result.errors)

    def test_blank_quantity_is_zero_without_error(self, supplier_csv):
        result = _parse(supplier_csv(_row(Quantity='')))

        assert result.line_items_by_order['BM-1'][0].quantity == 0
        assert result.errors == []

    def test_product_type_matching(self, supplier_csv):
        result = _parse(supplier_csv(
            _row(ProductType='water pump'),
            _row(LineItemID='x2', ProductType='Hovercraft'),
            _row(LineItemID='x3', ProductType=''),
        ))
        items = result.line_items_by_order['BM-1']

        assert items[0].product_type == ProductType.WATER_PUMP
        assert items[1].product_type == PRODUCT_TYPE_LIST[1]
        assert items[2].product_type == PRODUCT_TYPE_LIST[2]
        assert len(result.errors) == 1
        assert 'Hovercraft' in result.errors[0]

    def test_supplier_dates_and_tranches(self, supplier_csv):
        result = _parse(supplier_csv(_row(
            SupplierProductionStartDate='2024-02-01',
            SupplierActualDispatchDate='not-a-date',
            SupplierAdvancePaidAmount='300',
            SupplierAdvancePaidDate='2024-01-28',
            SupplierBalancePaidAmount='oops',
            SupplierBLNumber='BL-1',
            SupplierPaymentTerms='30% Adv',
        )))
        line_item = result.line_items_by_order['BM-1'][0]

        assert line_item.supplier_production_start_date == datetime(2024, 2, 1)
        assert line_item.supplier_actual_dispatch_date is None
        assert line_item.supplier_advance_paid_amount == 300.0
        assert line_item.supplier_advance_paid_date == datetime(2024, 1, 28)
        assert line_item.supplier_balance_paid_amount is None
        assert line_item.supplier_bl_number == 'BL-1'
        assert line_item.supplier_payment_terms == '30% Adv'
        assert any('SupplierActualDispatchDate' in e for e in result.errors)
        assert any('SupplierBalancePaidAmount' in e for e in result.errors)
