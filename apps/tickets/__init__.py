"""
Ticket bridge: turns monitoring events into tracked, idempotently updated tickets.
"""
