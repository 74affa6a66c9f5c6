"""Command-line interface for expensescan.

Usage:
    expensescan scan <image> [<image> ...] [--json]
    expensescan providers
    expensescan --config ocr.toml scan <image>
"""
