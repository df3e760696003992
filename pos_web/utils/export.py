"""
Sales report export to Excel and CSV
"""

import csv
import io
from datetime import datetime
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from openpyxl.utils import get_column_letter

from pos_web.utils.helpers import format_datetime

EXCEL_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
CSV_MIMETYPE = 'text/csv'

SALES_COLUMNS = (
    ('order_number', 'Order #'),
    ('id', 'Order ID'),
    ('date', 'Date'),
    ('customer', 'Customer'),
    ('table', 'Table'),
    ('type', 'Type'),
    ('payment_method', 'Payment'),
    ('subtotal', 'Subtotal'),
    ('discount', 'Discount'),
    ('tax', 'Tax'),
    ('total', 'Total'),
)
MONEY_KEYS = {'subtotal', 'discount', 'tax', 'total'}
HEADER_ROW = 4

THIN = Side(style='thin')
BORDER = Border(left=THIN, right=THIN, top=THIN, bottom=THIN)


def sales_rows(orders):
    """Flatten Order objects into export rows"""
    return [{
        'order_number': order.order_number or '',
        'id': order.id or '',
        'date': format_datetime(order.created_at),
        'customer': order.customer_name or '-',
        'table': order.table_number or '-',
        'type': order.type_label,
        'payment_method': order.payment_method or 'Other',
        'subtotal': order.subtotal,
        'discount': order.discount,
        'tax': order.tax,
        'total': order.total,
    } for order in orders]


def sales_workbook(rows, title):
    """
    Workbook with a title row, a generation timestamp and one line per order

    Returns:
        BytesIO with the saved .xlsx
    """
    wb = Workbook()
    ws = wb.active
    ws.title = 'Sales'
    width = len(SALES_COLUMNS)

    ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=width)
    ws['A1'] = title
    ws['A1'].font = Font(bold=True, size=14)
    ws['A1'].alignment = Alignment(horizontal='center')

    ws.merge_cells(start_row=2, start_column=1, end_row=2, end_column=width)
    ws['A2'] = f"Generated: {datetime.now():%Y-%m-%d %H:%M:%S}"
    ws['A2'].font = Font(italic=True, size=10, color='666666')
    ws['A2'].alignment = Alignment(horizontal='center')

    header_fill = PatternFill(start_color='059669', end_color='059669', fill_type='solid')
    for col, (_, label) in enumerate(SALES_COLUMNS, 1):
        cell = ws.cell(row=HEADER_ROW, column=col, value=label)
        cell.font = Font(bold=True, color='FFFFFF')
        cell.fill = header_fill
        cell.border = BORDER
        cell.alignment = Alignment(horizontal='center')

    for row, data in enumerate(rows, HEADER_ROW + 1):
        for col, (key, _) in enumerate(SALES_COLUMNS, 1):
            cell = ws.cell(row=row, column=col, value=data[key])
            cell.border = BORDER
            if key in MONEY_KEYS:
                cell.number_format = '#,##0'

    # width from the header row down; the merged title would widen column A
    for col, (key, label) in enumerate(SALES_COLUMNS, 1):
        longest = max([len(label)] + [len(str(data[key])) for data in rows])
        ws.column_dimensions[get_column_letter(col)].width = min(longest + 2, 50)

    output = io.BytesIO()
    wb.save(output)
    output.seek(0)
    return output


def sales_csv(rows):
    """CSV with a UTF-8 BOM so Excel picks the right encoding"""
    text = io.StringIO()
    writer = csv.writer(text)
    writer.writerow([label for _, label in SALES_COLUMNS])
    for data in rows:
        writer.writerow([data[key] for key, _ in SALES_COLUMNS])
    return io.BytesIO(text.getvalue().encode('utf-8-sig'))


def export_sales_report(orders, format_type='excel', title='Sales Report'):
    """
    Export paid orders of the report page

    Args:
        orders: list of Order
        format_type: 'excel' or 'csv'

    Returns:
        tuple: (BytesIO, mimetype, file extension)
    """
    rows = sales_rows(orders)
    if format_type == 'csv':
        return sales_csv(rows), CSV_MIMETYPE, 'csv'
    return sales_workbook(rows, title), EXCEL_MIMETYPE, 'xlsx'
