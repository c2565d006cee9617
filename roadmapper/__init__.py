"""
Roadmapper

Multi-tenant product management service: goals, initiatives, ideas,
customer feedback and the customers they come from. Every row belongs to
exactly one tenant and every request is resolved to a tenant before any
data is read or written.
"""

__version__ = "1.0.0"
