from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from app.crm.modules.forms.dynamic_form import FieldDescriptor


@dataclass(frozen=True)
class EntityCollection:
    slug: str
    label: str
    # Custom field entity type for this collection, if it can carry custom fields.
    entity_type: str | None
    columns: tuple[tuple[str, tuple[str, ...]], ...]


ENTITY_COLLECTIONS: dict[str, EntityCollection] = {
    c.slug: c
    for c in (
        EntityCollection("customers", "Customers", "customer", (
            ("Name", ("name", "companyName")),
            ("Email", ("email",)),
            ("Phone", ("phone",)),
            ("Status", ("status",)),
        )),
        EntityCollection("quotes", "Quotes", "quote", (
            ("Quote #", ("quoteNumber", "number", "id")),
            ("Customer", ("customerName", "customer")),
            ("Date", ("quoteDate", "date")),
            ("Total", ("totalAmount", "total")),
            ("Status", ("status",)),
        )),
        EntityCollection("sales-orders", "Sales Orders", None, (
            ("Order #", ("orderNumber", "number", "id")),
            ("Customer", ("customerName", "customer")),
            ("Date", ("orderDate", "date")),
            ("Total", ("totalAmount", "total")),
            ("Status", ("status",)),
        )),
        EntityCollection("invoices", "Invoices", "invoice", (
            ("Invoice #", ("invoiceNumber", "number", "id")),
            ("Customer", ("customerName", "customer")),
            ("Date", ("invoiceDate", "date")),
            ("Due", ("dueDate",)),
            ("Total", ("totalAmount", "total")),
            ("Status", ("status",)),
        )),
        EntityCollection("purchase-orders", "Purchase Orders", None, (
            ("PO #", ("poNumber", "number", "id")),
            ("Supplier", ("supplierName", "supplier")),
            ("Date", ("orderDate", "date")),
            ("Total", ("totalAmount", "total")),
            ("Status", ("status",)),
        )),
        EntityCollection("projects", "Projects", "project", (
            ("Name", ("name", "title")),
            ("Customer", ("customerName", "customer")),
            ("Due", ("dueDate",)),
            ("Status", ("status",)),
        )),
        EntityCollection("products", "Products", "product", (
            ("Name", ("name",)),
            ("SKU", ("sku",)),
            ("Description", ("description",)),
            ("Price", ("price",)),
        )),
    )
}

QUOTE_VALIDITY_DAYS = 30


def pick(record: Mapping[str, Any], *keys: str) -> Any:
    """First non-empty value among `keys`."""
    for k in keys:
        v = record.get(k)
        if v not in (None, ""):
            return v
    return None


def date_of(record: Mapping[str, Any], *keys: str) -> str | None:
    """ISO date (YYYY-MM-DD) from the first present key; timestamps are truncated."""
    v = pick(record, *keys)
    if v is None:
        return None
    return str(v)[:10]


def to_decimal(value: Any) -> Decimal:
    try:
        return Decimal(str(value)) if value not in (None, "") else Decimal("0")
    except InvalidOperation:
        return Decimal("0")


def amount_of(record: Mapping[str, Any]) -> Decimal:
    return to_decimal(pick(record, "totalAmount", "total", "amount"))


def custom_values_of(record: Mapping[str, Any]) -> dict[str, Any]:
    values = record.get("customFields")
    return dict(values) if isinstance(values, dict) else {}


def quote_standard_fields(customers: list[dict[str, Any]]) -> list[FieldDescriptor]:
    names = tuple(f"{pick(c, 'id')}: {pick(c, 'name', 'companyName')}" for c in customers)
    return [
        FieldDescriptor("customerId", "Customer", "dropdown", required=True, options=names),
        FieldDescriptor("quoteDate", "Quote Date", "date", required=True),
        FieldDescriptor("expirationDate", "Expiration Date", "date", required=True),
        FieldDescriptor("notes", "Notes", "textarea"),
    ]


def new_quote_defaults(today: date | None = None) -> dict[str, Any]:
    today = today or date.today()
    return {
        "customerId": "",
        "quoteDate": today.isoformat(),
        "expirationDate": (today + timedelta(days=QUOTE_VALIDITY_DAYS)).isoformat(),
        "notes": "",
    }


def customer_id_from_choice(choice: str) -> str:
    """Dropdown values look like '12: Acme Corp'."""
    return (choice or "").split(":", 1)[0].strip()


@dataclass(frozen=True)
class QuoteLine:
    product_id: str
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


def build_quote_lines(
    product_ids: list[str],
    quantities: list[str],
    products: list[dict[str, Any]],
) -> tuple[list[QuoteLine], list[str]]:
    """
    Pair posted product/quantity columns into priced lines. Unit prices always
    come from the product catalogue, never from the form.
    """
    by_id = {str(pick(p, "id")): p for p in products}
    lines: list[QuoteLine] = []
    errors: list[str] = []
    for row, (pid, qty) in enumerate(zip(product_ids, quantities), start=1):
        pid = (pid or "").strip()
        if not pid:
            continue
        product = by_id.get(pid)
        if product is None:
            errors.append(f"Line {row}: unknown product {pid}.")
            continue
        try:
            quantity = int(qty)
        except (TypeError, ValueError):
            errors.append(f"Line {row}: quantity must be a whole number.")
            continue
        if quantity < 1:
            errors.append(f"Line {row}: quantity must be at least 1.")
            continue
        lines.append(QuoteLine(pid, quantity, to_decimal(pick(product, "price"))))
    return lines, errors


def quote_total(lines: list[QuoteLine]) -> Decimal:
    return sum((line.line_total for line in lines), Decimal("0"))


def build_quote_payload(values: dict[str, Any], custom_values: dict[str, Any], lines: list[QuoteLine]) -> dict[str, Any]:
    return {
        "customerId": customer_id_from_choice(values.get("customerId") or ""),
        "quoteDate": values.get("quoteDate"),
        "expirationDate": values.get("expirationDate"),
        "notes": values.get("notes") or "",
        "items": [
            {
                "productId": line.product_id,
                "quantity": line.quantity,
                "unitPrice": float(line.unit_price),
                "lineTotal": float(line.line_total),
            }
            for line in lines
        ],
        "totalAmount": float(quote_total(lines)),
        "customFields": custom_values,
    }
