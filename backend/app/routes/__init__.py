# Routes package init
"""
CircuitMap Backend — API Routes Package
=========================================

Route Inventory:
    - positions.py: POST /api/positions/classify
    - panels.py:    /api/panels (CRUD, migrate-tandems, export, import)
    - breakers.py:  /api/breakers (CRUD, split)
    - devices.py:   POST /api/devices, GET /api/panels/{id}/devices
    - health.py:    GET  /health

Routes are thin: they read the request, call a service and shape the
response. Position rules live in app.services.
"""
