"""
Ticket Desk HTTP adapter.
"""
