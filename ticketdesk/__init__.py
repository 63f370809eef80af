"""
Ticket Desk Engine

Core ticket system with:
- Fixed status lifecycle (open -> in-progress -> resolved -> closed)
- Role-scoped visibility (submitter / resolver)
- Search and status/priority filtering
- Whole-collection durable store with commit-on-save
"""

__version__ = "0.1.0"
