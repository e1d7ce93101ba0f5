"""
Ingestion layer — dataset parsing into typed records.

Submodules:
  csv_loader — positional CSV parser; malformed rows are logged and dropped
"""
