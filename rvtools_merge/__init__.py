"""RVTools export merge tool.

Merges several RVTools workbooks into one consolidated workbook with header
normalization, validation, anonymization and row limiting.
"""

__version__ = "1.0.0"
