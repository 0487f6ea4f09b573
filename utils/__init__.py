"""
Shared utilities for hydronet-mcp: units, constants, errors and helpers.
"""
