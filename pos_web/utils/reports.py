"""
Sales Report Utilities
Filtering and aggregation of paid orders for the report dashboard.

The backend returns every order; the period, payment-method and search
filters are applied here, and the figures are computed from what is left.
"""

import math
from datetime import datetime, date, timedelta

from pos_web.models import STATUS_PAID, STATUS_DRAFT, Product
from pos_web.utils.helpers import MONTHS_SHORT, safe_parse_total

PERIODS = ('today', '7days', '30days', 'all', 'custom')
DEFAULT_PERIOD = '7days'
PERIOD_DAYS = {'7days': 7, '30days': 30}

PERIOD_TITLES = {
    'today': 'Today',
    '7days': 'Last 7 Days',
    '30days': 'Last 30 Days',
    'all': 'All Time',
    'custom': 'Date Range',
}

TOP_PRODUCT_MODES = ('qty', 'revenue')
OTHER_METHOD = 'Other'

SECONDS_PER_DAY = 24 * 60 * 60

# Longest daily chart; wider custom ranges show their last MAX_SERIES_DAYS days
MAX_SERIES_DAYS = 366


def parse_date(value):
    """Parse YYYY-MM-DD, returns None for anything else"""
    if not value:
        return None
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        return None


class ReportFilter:
    """Filters chosen on the report page"""

    def __init__(self, period=DEFAULT_PERIOD, start=None, end=None, method='all', search=''):
        self.period = period if period in PERIODS else DEFAULT_PERIOD
        self.start = start
        self.end = end
        self.method = method or 'all'
        self.search = (search or '').strip()

    @classmethod
    def from_args(cls, args):
        return cls(
            period=args.get('period', DEFAULT_PERIOD),
            start=parse_date(args.get('start')),
            end=parse_date(args.get('end')),
            method=args.get('method', 'all'),
            search=args.get('search', ''),
        )

    @property
    def has_custom_range(self):
        return self.period == 'custom' and self.start is not None and self.end is not None

    @property
    def title(self):
        if self.has_custom_range:
            return f"{self.start.isoformat()} - {self.end.isoformat()}"
        return PERIOD_TITLES[self.period]

    def to_args(self):
        """Query arguments that reproduce this filter"""
        args = {'period': self.period, 'method': self.method}
        if self.search:
            args['search'] = self.search
        if self.start:
            args['start'] = self.start.isoformat()
        if self.end:
            args['end'] = self.end.isoformat()
        return args


def paid_orders(orders):
    return [o for o in orders if o.status == STATUS_PAID]


def is_today(created_at, now):
    return created_at is not None and created_at.date() == now.date()


def is_within_days(created_at, days, now):
    """True when the order is at most `days` calendar-day spans away from now"""
    if created_at is None:
        return False
    diff = abs((now - created_at).total_seconds())
    return math.ceil(diff / SECONDS_PER_DAY) <= days


def is_between_dates(created_at, start, end):
    """Inclusive on both dates"""
    if created_at is None:
        return False
    return start <= created_at.date() <= end


def matches_period(order, report_filter, now):
    period = report_filter.period
    if period == 'today':
        return is_today(order.created_at, now)
    if period in PERIOD_DAYS:
        return is_within_days(order.created_at, PERIOD_DAYS[period], now)
    if report_filter.has_custom_range:
        return is_between_dates(order.created_at, report_filter.start, report_filter.end)
    return True


def matches_search(order, term):
    if not term:
        return True
    needle = term.lower()
    return (
        needle in (order.customer_name or '').lower()
        or needle in str(order.id or '').lower()
    )


def filter_orders(orders, report_filter, now=None):
    """
    Paid orders matching the period, payment method and search term

    Args:
        orders: list of Order
        report_filter: ReportFilter
        now: reference time (defaults to the current local time)
    """
    now = now or datetime.now()
    result = []
    for order in paid_orders(orders):
        if not matches_period(order, report_filter, now):
            continue
        if report_filter.method != 'all' and order.payment_method != report_filter.method:
            continue
        if not matches_search(order, report_filter.search):
            continue
        result.append(order)
    return result


def payment_methods(orders):
    """Distinct payment methods of paid orders, in first-seen order"""
    methods = []
    for order in paid_orders(orders):
        if order.payment_method and order.payment_method not in methods:
            methods.append(order.payment_method)
    return methods


def custom_range_days(start, end):
    """Number of days covered by an inclusive date range"""
    return abs((end - start).days) + 1


def summarize(orders, report_filter):
    """
    Summary cards

    Returns:
        dict: count, revenue, average_per_transaction, average_per_day
        (average_per_day is None for the all-time period)
    """
    revenue = sum(o.total for o in orders)
    count = len(orders)

    period = report_filter.period
    if period == 'today':
        per_day = revenue
    elif period in PERIOD_DAYS:
        per_day = revenue / PERIOD_DAYS[period]
    elif report_filter.has_custom_range:
        per_day = revenue / custom_range_days(report_filter.start, report_filter.end)
    elif period == 'all':
        per_day = None
    else:
        # custom period without both dates
        per_day = revenue / 7

    return {
        'count': count,
        'revenue': revenue,
        'average_per_transaction': revenue / count if count else 0,
        'average_per_day': per_day,
    }


def day_label(day):
    """'Sat, 18 Oct'"""
    return f"{day.strftime('%a')}, {day.day} {MONTHS_SHORT[day.month - 1]}"


def daily_series(orders, report_filter, today=None):
    """
    One bucket per day with total revenue and order count

    Custom ranges get a bucket for each date in the range, up to the last
    MAX_SERIES_DAYS of it; every other period shows the last 7 or 30 days
    (7 unless the period is 30days).
    """
    today = today or date.today()

    if report_filter.has_custom_range:
        end = report_filter.end
        span = min((end - report_filter.start).days + 1, MAX_SERIES_DAYS)
        days = [end - timedelta(days=i) for i in range(span - 1, -1, -1)]
    else:
        span = 30 if report_filter.period == '30days' else 7
        days = [today - timedelta(days=i) for i in range(span - 1, -1, -1)]

    buckets = {d: {'date': d.isoformat(), 'label': day_label(d), 'total': 0, 'count': 0}
               for d in days}

    for order in orders:
        if order.created_at is None:
            continue
        bucket = buckets.get(order.created_at.date())
        if bucket:
            bucket['total'] += order.total
            bucket['count'] += 1

    return [buckets[d] for d in days]


def payment_breakdown(orders):
    """
    Transactions per payment method

    Returns:
        list: [{'name', 'value', 'percent'}] in first-seen order
    """
    counts = {}
    for order in orders:
        method = order.payment_method or OTHER_METHOD
        counts[method] = counts.get(method, 0) + 1

    total = sum(counts.values())
    return [
        {'name': name, 'value': value, 'percent': round(value / total * 100) if total else 0}
        for name, value in counts.items()
    ]


def top_product_bars(products, mode='qty'):
    """
    Rows for the best-sellers table with relative bar widths

    Args:
        products: list of {name, qty, revenue} dicts from the backend
        mode: 'qty' or 'revenue'
    """
    if mode not in TOP_PRODUCT_MODES:
        mode = 'qty'

    rows = []
    for item in products:
        if not isinstance(item, dict):
            continue
        rows.append({
            'name': item.get('name') or '',
            'qty': safe_parse_total(item.get('qty')),
            'revenue': safe_parse_total(item.get('revenue')),
        })

    max_value = max((row[mode] for row in rows), default=0)
    for row in rows:
        row['value'] = row[mode]
        row['width'] = (row[mode] / max_value * 100) if max_value else 0
    return rows


def count_drafts(orders):
    return sum(1 for o in orders if o.status == STATUS_DRAFT)


def admin_summary(users=None, products=None, orders=None):
    """
    Figures for the admin dashboard cards

    Any source may be None when its backend call failed; its figures stay 0.
    """
    active_products = [
        Product.from_dict(p) for p in (products or [])
        if isinstance(p, dict) and p.get('active') is True
    ]
    categories = {
        p.category.strip() for p in active_products
        if isinstance(p.category, str) and p.category.strip()
    }
    revenue = sum(o.total for o in paid_orders(orders or []))

    return {
        'users': len(users or []),
        'products': len(active_products),
        'categories': len(categories),
        'revenue': revenue,
    }
