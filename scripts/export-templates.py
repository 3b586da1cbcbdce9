#!/usr/bin/env python3
"""
Export the Order and Supplier sheet templates as CSV files.

The templates document the header contract and contain two example orders
(one in Production, one Cancelled) that reconcile without errors.

Usage:
    python scripts/export-templates.py [--output-dir ./templates]

The script will create:
    - templates/order_sheet_template.csv
    - templates/supplier_sheet_template.csv
"""

import argparse
import sys
from pathlib import Path

from scm_dashboard.ingest import (
    generate_order_sheet_template,
    generate_supplier_sheet_template,
    reconcile,
)


def main():
    parser = argparse.ArgumentParser(description='Export SCM dashboard sheet templates')
    parser.add_argument(
        '--output-dir',
        type=str,
        default='./templates',
        help='Output directory for template CSVs'
    )
    parser.add_argument(
        '--force',
        action='store_true',
        help='Overwrite existing templates'
    )

    args = parser.parse_args()

    output_dir = Path(args.output_dir)
    order_file = output_dir / 'order_sheet_template.csv'
    supplier_file = output_dir / 'supplier_sheet_template.csv'

    if (order_file.exists() or supplier_file.exists()) and not args.force:
        print(f"Templates already exist in {output_dir}")
        print("Use --force to overwrite")
        return 0

    order_csv = generate_order_sheet_template()
    supplier_csv = generate_supplier_sheet_template()

    # Sanity check: the examples must reconcile cleanly
    result = reconcile(order_csv, supplier_csv)
    if result.errors:
        print("Template examples failed to reconcile:")
        for error in result.errors:
            print(f"  - {error}")
        return 1

    output_dir.mkdir(parents=True, exist_ok=True)
    order_file.write_text(order_csv, encoding='utf-8')
    supplier_file.write_text(supplier_csv, encoding='utf-8')

    print(f"Wrote {order_file}")
    print(f"Wrote {supplier_file}")
    print(f"Examples: {len(result.orders)} orders, {len(result.suppliers)} suppliers")
    return 0


if __name__ == '__main__':
    sys.exit(main())
