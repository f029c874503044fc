"""
Custom Fields module.

Administrators attach extra data fields to customers, quotes, projects,
invoices and products. Definitions live in the configuration store; this
module validates drafts and drives the management screens.
"""
