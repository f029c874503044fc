"""
Entity pages (customers, quotes, sales orders, invoices, purchase orders,
projects, products). Records come from the CRM API; custom field values are
read from and written to each record's `customFields` object.
"""
