"""auth/ -- Credentials, bearer tokens and sessions for Calendarium.

Layer rule: auth/ imports only core/, stdlib and third-party libraries.
It does NOT import from api/, account/, or events/.
account/ and api/ import from auth/, not the other way around.
"""
