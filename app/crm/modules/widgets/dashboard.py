"""
Built-in dashboard widgets. Each one reads what it needs from the CRM API
and renders a small template under templates/widgets/.
"""
from __future__ import annotations

from collections import OrderedDict
from datetime import date, timedelta
from typing import Any

from flask import url_for

from app.crm.modules.entities.service import amount_of, date_of, pick
from app.crm.modules.widgets.registry import Widget, WidgetContext


class CustomerStats(Widget):
    template = "widgets/customer_stats.html"

    def get_context(self, ctx: WidgetContext) -> dict[str, Any]:
        customers = ctx.api.get_customers()
        this_month = date.today().strftime("%Y-%m")
        active = [c for c in customers if str(pick(c, "status") or "active").lower() == "active"]
        new = [c for c in customers if (date_of(c, "createdAt", "created_at") or "").startswith(this_month)]
        return {"total": len(customers), "active": len(active), "new_this_month": len(new)}


class RecentQuotes(Widget):
    template = "widgets/recent_quotes.html"
    limit = 5

    def get_context(self, ctx: WidgetContext) -> dict[str, Any]:
        quotes = sorted(ctx.api.get_quotes(), key=lambda q: date_of(q, "quoteDate", "date") or "", reverse=True)
        rows = [
            {
                "id": pick(q, "id"),
                "number": pick(q, "quoteNumber", "number", "id"),
                "customer": pick(q, "customerName", "customer"),
                "date": date_of(q, "quoteDate", "date"),
                "total": amount_of(q),
                "status": pick(q, "status"),
            }
            for q in quotes[: self.limit]
        ]
        return {"quotes": rows}


class SalesChart(Widget):
    template = "widgets/sales_chart.html"
    months = 6

    def get_context(self, ctx: WidgetContext) -> dict[str, Any]:
        buckets: OrderedDict[str, float] = OrderedDict()
        first = date.today().replace(day=1)
        for i in range(self.months - 1, -1, -1):
            y, m = divmod(first.year * 12 + first.month - 1 - i, 12)
            buckets[f"{y:04d}-{m + 1:02d}"] = 0.0
        for order in ctx.api.list("sales-orders"):
            month = (date_of(order, "orderDate", "date") or "")[:7]
            if month in buckets:
                buckets[month] += float(amount_of(order))
        peak = max(buckets.values(), default=0.0)
        bars = [
            {"month": month, "total": total, "pct": round(total * 100 / peak) if peak else 0}
            for month, total in buckets.items()
        ]
        return {"bars": bars, "grand_total": sum(buckets.values())}


class QuickActions(Widget):
    template = "widgets/quick_actions.html"

    def get_context(self, ctx: WidgetContext) -> dict[str, Any]:
        return {
            "actions": [
                ("Create Quote", url_for("entities.quote_new_get")),
                ("Customers", url_for("entities.entity_list", collection="customers")),
                ("Custom Fields", url_for("custom_fields.custom_fields_list")),
                ("Page Builder", url_for("layout.page_builder", page_name=ctx.page_name)),
            ]
        }


class UpcomingTasks(Widget):
    template = "widgets/upcoming_tasks.html"
    horizon_days = 14

    def get_context(self, ctx: WidgetContext) -> dict[str, Any]:
        today = date.today()
        horizon = (today + timedelta(days=self.horizon_days)).isoformat()
        due = []
        for project in ctx.api.list("projects"):
            due_date = date_of(project, "dueDate", "due_date")
            status = str(pick(project, "status") or "").lower()
            if not due_date or status in ("completed", "cancelled"):
                continue
            if due_date <= horizon:
                due.append(
                    {
                        "id": pick(project, "id"),
                        "name": pick(project, "name", "title"),
                        "due": due_date,
                        "overdue": due_date < today.isoformat(),
                    }
                )
        due.sort(key=lambda t: t["due"])
        return {"tasks": due, "horizon_days": self.horizon_days}


class RecentActivity(Widget):
    template = "widgets/recent_activity.html"
    limit = 8

    _SOURCES = (
        ("quotes", "Quote", ("quoteDate", "date"), ("quoteNumber", "number", "id")),
        ("sales-orders", "Sales order", ("orderDate", "date"), ("orderNumber", "number", "id")),
        ("invoices", "Invoice", ("invoiceDate", "date"), ("invoiceNumber", "number", "id")),
    )

    def get_context(self, ctx: WidgetContext) -> dict[str, Any]:
        events = []
        for collection, label, date_keys, number_keys in self._SOURCES:
            for record in ctx.api.list(collection):
                when = date_of(record, *date_keys)
                if not when:
                    continue
                events.append(
                    {
                        "when": when,
                        "label": label,
                        "ref": pick(record, *number_keys),
                        "customer": pick(record, "customerName", "customer"),
                        "collection": collection,
                        "id": pick(record, "id"),
                    }
                )
        events.sort(key=lambda e: e["when"], reverse=True)
        return {"events": events[: self.limit]}
