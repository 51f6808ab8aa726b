"""
Object adapters package.

This package provides the following components:

- column_info: Column descriptors (name, declared type, accessor)
- discovery: Column discovery for element types, cached per type

Discovery principles:
1. An element type is introspected once per process; cursors share the result
2. Only scalar members are projected; nested objects and containers are skipped
3. Accessors are resolved at discovery time, never per row
"""

from objcursor.adapters.column_info import *
from objcursor.adapters.discovery import *
