"""
asgi.py -- ASGI entry points for the three Calendarium processes.

Each process runs one of these apps; they share no in-memory state and talk
only over RPC. Importing the module builds all three apps but opens no
connections: stores and clients are created in each app's lifespan.

Run with:  uvicorn asgi:app --port 8080            (gateway)
           uvicorn asgi:account_app --port 8083    (account service)
           uvicorn asgi:events_app --port 8082     (events service)
"""

from account.main import app as account_app
from api.main import app
from events.main import app as events_app

__all__ = ["app", "account_app", "events_app"]
