# Routes package init
"""
Storefront Backend — API Routes Package
=========================================

Route Inventory:
    - auth.py:      POST /api/auth/register, POST /api/auth/login, GET /api/auth/me
    - products.py:  /api/products (create, list) and /api/products/{id}
                    (get, update, delete)
    - admin.py:     /dashboard/admin (HTML list), /dashboard/admin/create
                    (HTML form and its POST)
    - files.py:     GET /api/files/{path} (locally stored images)
    - health.py:    GET /health

Routes stay thin: extract request data, call one service, shape the
envelope. Business rules live in app.services.
"""
