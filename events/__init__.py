"""events/ -- The calendar event service process.

Stores per-user calendar events and exposes create / list / delete over
JSON-over-HTTP RPC. The gateway resolves the user; this service trusts the
user_id it is given.

Layer rule: events/ imports from core/ only.
"""
