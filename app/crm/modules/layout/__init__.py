"""
Page Builder: arrange which dashboard widgets appear on a named page.
"""
