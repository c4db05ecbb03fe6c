"""
Dashboard Package.

HTTP surface of the retention engine.

Modules:
- main: FastAPI app factory
- container: store and service wiring
- routers/: board, workflow, customers, scoring config
"""
