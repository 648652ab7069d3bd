"""
Domain package - Core billing logic with no external dependencies.

This package contains pure Python models, the totals calculator, the
document lifecycle machine, numbering and validation rules.
"""
