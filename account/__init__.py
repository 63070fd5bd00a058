"""account/ -- The account service process.

Exposes CredentialAuthService (auth/service.py) over JSON-over-HTTP RPC so the
gateway can sign users up, log them in and out, and resolve bearer tokens.

Layer rule: account/ imports from auth/ and core/ only.
"""
