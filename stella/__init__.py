"""
Stella

Business assistant that answers free-text questions about products, sales,
companies, categories and admins. Questions are routed to small talk, a
predefined catalog operation, or a generated read-only SQL query.
"""

__version__ = "0.3.0"
