"""
Correlation store.

Durable grouping-key → ticket-linkage records with a fixed retention window.
"""
