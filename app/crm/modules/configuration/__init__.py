"""
Configuration module.

Owns the single Configuration document (general settings, theme, custom field
definitions, per-page widget layouts). Every write goes through
ConfigurationStore mutators; readers get an immutable snapshot.
"""
