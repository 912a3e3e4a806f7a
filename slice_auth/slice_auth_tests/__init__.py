"""
slice_auth tests

Covers the auth service package:

- Token issue/verify (`tokens.py`) and password hashing (`auth.py`)
- Account Manager business rules (`accounts.py`)
- Lifecycle event outbox and publisher (`events.py`)
- HTTP contract of the FastAPI app (`main.py`, `routes/`)
- Settings, database initialization and management commands
"""
