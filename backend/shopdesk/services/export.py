"""
Order Export Formatting

Flattens orders into CSV-ready records with a fixed column order. The
formatter only builds plain dicts; orders_to_csv does the serialization.
"""
import csv
import io
from decimal import Decimal
from typing import Any, Dict, Iterable, List

from shopdesk.models.order import Order

EXPORT_FIELDS: List[str] = [
    "Order ID",
    "Invoice",
    "Customer Name",
    "Customer Email",
    "Order Date",
    "Order Time",
    "Status",
    "Payment Method",
    "Sub Total",
    "Discount",
    "Shipping Cost",
    "Total",
    "Shipment Tracking",
    "Origin",
    "Address",
    "City",
    "Country",
    "Zip Code",
    "Contact",
]


def _text(value: Any) -> str:
    """Render a value for export; None becomes an empty string."""
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    return str(value)


def format_order_for_export(
    order: Order,
    date_format: str = "%m/%d/%Y",
    time_format: str = "%I:%M:%S %p",
) -> Dict[str, str]:
    """
    Flatten one order into an export record.

    Date and time come from the creation timestamp. Customer fields come
    from the billing snapshot, falling back to the linked account for name
    and email.
    """
    info = order.user_info or {}
    created = order.created_at

    return {
        "Order ID": _text(order.order_code),
        "Invoice": _text(order.invoice),
        "Customer Name": _text(order.customer_name),
        "Customer Email": _text(order.customer_email),
        "Order Date": created.strftime(date_format) if created else "",
        "Order Time": created.strftime(time_format) if created else "",
        "Status": _text(order.status),
        "Payment Method": _text(order.payment_method),
        "Sub Total": _text(order.sub_total),
        "Discount": _text(order.discount),
        "Shipping Cost": _text(order.shipping_cost),
        "Total": _text(order.total),
        "Shipment Tracking": _text(order.shipment_tracking),
        "Origin": _text(order.origin),
        "Address": _text(info.get("address")),
        "City": _text(info.get("city")),
        "Country": _text(info.get("country")),
        "Zip Code": _text(info.get("zip_code")),
        "Contact": _text(info.get("contact")),
    }


def orders_to_csv(rows: Iterable[Dict[str, str]]) -> str:
    """Serialize export records to CSV text with a header row."""
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=EXPORT_FIELDS)
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return output.getvalue()
