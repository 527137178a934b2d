"""
Order Statistics Service

Dashboard numbers for the admin order-stats page: counts per status,
delivered revenue, and order/revenue series per day, week or month.
Trashed orders are excluded everywhere.

Author: Kuantum Ticaret
Date: 2025-11-02
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

import pandas as pd

from kuantum_admin.domain.order import Order, OrderStatus
from kuantum_admin.repositories.order_repository import OrderRepository

# group_by -> (number of buckets, bucket length)
PERIODS = {
    'day': (14, 'D'),
    'week': (8, 'W'),
    'month': (12, 'M'),
}


class OrderStatsService:
    """Service for order statistics"""

    def __init__(self, orders: OrderRepository):
        self.orders = orders

    def get_stats(self) -> Dict:
        """
        Get order statistics

        Returns:
            Dict with total orders, count per status and delivered revenue
        """
        orders = self.orders.find_all()

        by_status = {status.value: 0 for status in OrderStatus}
        for order in orders:
            by_status[order.status.value] += 1

        total_revenue = sum(
            (order.effective_total for order in orders if order.status == OrderStatus.DELIVERED),
            Decimal("0")
        )

        return {
            'total': len(orders),
            'by_status': by_status,
            'total_revenue': float(total_revenue),
        }

    def get_period_series(self, group_by: str = 'day', now: Optional[datetime] = None) -> List[Dict]:
        """
        Orders and delivered revenue per period

        Args:
            group_by: 'day' (last 14 days), 'week' (last 8 weeks, Monday
                start) or 'month' (last 12 months)
            now: Reference time (default: current UTC time)

        Returns:
            List of {period, orders, revenue}, oldest first, zero-filled
        """
        if group_by not in PERIODS:
            raise ValueError("group_by must be 'day', 'week', or 'month'")

        return self._series(self.orders.find_all(), group_by, now)

    @staticmethod
    def _series(orders: List[Order], group_by: str, now: Optional[datetime]) -> List[Dict]:
        count, unit = PERIODS[group_by]

        reference = pd.Timestamp(now or datetime.now(timezone.utc))
        if reference.tzinfo is not None:
            reference = reference.tz_convert("UTC").tz_localize(None)
        current = _period_start(pd.Series([reference]), unit).iloc[0]

        if unit == 'D':
            buckets = pd.date_range(end=current, periods=count, freq='D')
        elif unit == 'W':
            buckets = pd.date_range(end=current, periods=count, freq='7D')
        else:
            buckets = pd.date_range(end=current, periods=count, freq='MS')
        buckets = buckets.astype('datetime64[ns]')

        df = pd.DataFrame(
            [
                {
                    'created_at': order.created_at,
                    'revenue': float(order.effective_total) if order.status == OrderStatus.DELIVERED else 0.0,
                }
                for order in orders
                if order.created_at is not None
            ],
            columns=['created_at', 'revenue']
        )

        if df.empty:
            grouped = pd.DataFrame({'orders': 0, 'revenue': 0.0}, index=buckets)
        else:
            created = pd.to_datetime(df['created_at'], utc=True).dt.tz_localize(None)
            df['period'] = _period_start(created, unit).astype('datetime64[ns]')
            grouped = (
                df.groupby('period')
                .agg(orders=('revenue', 'size'), revenue=('revenue', 'sum'))
                .reindex(buckets, fill_value=0)
            )

        return [
            {
                'period': period.strftime('%Y-%m-%d'),
                'orders': int(row['orders']),
                'revenue': round(float(row['revenue']), 2),
            }
            for period, row in grouped.iterrows()
        ]


def _period_start(timestamps: pd.Series, unit: str) -> pd.Series:
    """Start of the day, Monday-based week or month containing each timestamp"""
    if unit == 'D':
        return timestamps.dt.normalize()
    if unit == 'W':
        # Weekly periods ending on Sunday start on Monday
        return timestamps.dt.to_period('W-SUN').dt.start_time
    return timestamps.dt.to_period('M').dt.start_time
