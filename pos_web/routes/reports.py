"""
Report Routes
Sales report dashboard, best sellers and export
"""

from datetime import datetime
from flask import Blueprint, render_template, request, jsonify, send_file, current_app
from flask_login import current_user

from pos_web.models import Order
from pos_web.services.backend import get_backend, BackendError, BackendUnauthorized
from pos_web.utils.export import export_sales_report
from pos_web.utils.helpers import paginate, get_int_arg
from pos_web.utils.permissions import permission_required, has_permission, Permissions
from pos_web.utils import reports as report_utils

bp = Blueprint('reports', __name__)


def load_report_orders():
    """Every order known to the backend; empty when the call fails"""
    try:
        data = get_backend().report_orders(current_user.backend_token, period='all')
    except BackendUnauthorized:
        raise
    except BackendError as e:
        current_app.logger.error(f"Error loading report orders: {e}")
        return []
    return [Order.from_dict(o) for o in data if isinstance(o, dict)]


def load_top_products(report_filter):
    try:
        if report_filter.has_custom_range:
            return get_backend().top_products(
                current_user.backend_token,
                start=report_filter.start.isoformat(),
                end=report_filter.end.isoformat(),
            )
        return get_backend().top_products(current_user.backend_token, period=report_filter.period)
    except BackendUnauthorized:
        raise
    except BackendError as e:
        current_app.logger.error(f"Error loading top products: {e}")
        return []


@bp.route('/')
@permission_required(Permissions.ACCESS_REPORT)
def index():
    """Sales report"""
    report_filter = report_utils.ReportFilter.from_args(request.args)
    mode = request.args.get('mode', 'qty')
    if mode not in report_utils.TOP_PRODUCT_MODES:
        mode = 'qty'

    orders = load_report_orders()
    filtered = report_utils.filter_orders(orders, report_filter)
    page_orders, page, total_pages = paginate(
        filtered, get_int_arg(request.args, 'page', 1), current_app.config['ITEMS_PER_PAGE']
    )

    return render_template(
        'reports/index.html',
        report_filter=report_filter,
        periods=report_utils.PERIODS,
        period_titles=report_utils.PERIOD_TITLES,
        methods=report_utils.payment_methods(orders),
        has_paid_orders=bool(report_utils.paid_orders(orders)),
        summary=report_utils.summarize(filtered, report_filter),
        daily=report_utils.daily_series(filtered, report_filter),
        payment_data=report_utils.payment_breakdown(filtered),
        top_products=report_utils.top_product_bars(load_top_products(report_filter), mode),
        mode=mode,
        orders=page_orders,
        filtered_count=len(filtered),
        page=page,
        total_pages=total_pages,
        can_export=has_permission(current_user.role, Permissions.EXPORT_REPORT),
    )


@bp.route('/top-products')
@permission_required(Permissions.ACCESS_REPORT)
def top_products():
    """Best sellers as JSON for the chart"""
    report_filter = report_utils.ReportFilter.from_args(request.args)
    mode = request.args.get('mode', 'qty')
    rows = report_utils.top_product_bars(load_top_products(report_filter), mode)
    return jsonify({'success': True, 'data': rows})


@bp.route('/orders/<order_id>/details')
@permission_required(Permissions.ACCESS_REPORT)
def order_details(order_id):
    """Product lines of a reported order"""
    try:
        details = get_backend().order_details(current_user.backend_token, order_id)
    except BackendUnauthorized:
        raise
    except BackendError as e:
        current_app.logger.error(f"Error loading details of order {order_id}: {e}")
        return jsonify({'success': False, 'error': 'Failed to load order details'}), 502
    names = ', '.join(d.get('product_name') or '' for d in details if isinstance(d, dict))
    return jsonify({'success': True, 'data': details, 'products': names})


@bp.route('/export')
@permission_required(Permissions.EXPORT_REPORT)
def export():
    """
    Export the filtered paid orders

    Query params:
        format: excel or csv (default: excel)
        period, start, end, method, search: same filters as the report page
    """
    report_filter = report_utils.ReportFilter.from_args(request.args)
    export_format = request.args.get('format', 'excel')

    filtered = report_utils.filter_orders(load_report_orders(), report_filter)
    output, mimetype, extension = export_sales_report(
        filtered, format_type=export_format, title=f"Sales Report ({report_filter.title})"
    )
    filename = f"sales_report_{report_filter.period}_{datetime.now().strftime('%Y%m%d')}.{extension}"
    current_app.logger.info(f"{current_user.username} exported {len(filtered)} orders as {extension}")

    return send_file(output, mimetype=mimetype, as_attachment=True, download_name=filename)
