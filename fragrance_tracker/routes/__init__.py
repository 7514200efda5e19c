# Routes package init
"""
Fragrance Tracker Backend: API Routes Package
==============================================

What:  HTTP route handlers that accept requests and return responses.
How:   Each route module handles one resource.

Route Inventory:
    - inventory.py:   /api/inventory     (bottle ledger, usage, alerts, sweep)
    - fragrances.py:  /api/fragrances    (catalog CRUD, external search)
    - daily_wear.py:  /api/daily-wear    (wear calendar, statistics)
    - health.py:      /health            (service health check)
    - deps.py:        shared dependencies (acting user, app.state services)

Design Principle:
    Routes stay thin. They extract request data, call a service, and wrap
    the result in the `{success, data}` envelope. Business logic lives in
    services so it can be tested without HTTP.
"""
