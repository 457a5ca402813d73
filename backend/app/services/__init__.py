# Services package init
"""
Storefront Backend — Services Layer
=====================================

Business rules between the routes (HTTP) and the models (persistence).

Service Inventory:
    - AuthService: register, login, authenticate (auth_service.py)
    - ProductService: product CRUD with multi-image uploads (product_service.py)
    - AdminService: dashboard create/list (admin_service.py)
    - authorization: the product access policy, pure functions
    - FileService: image validation and IMG-<millis>.<ext> naming
    - ImageUploader (abstract): ImageKitUploader and LocalImageUploader,
      selected by UPLOAD_BACKEND in uploaders.py
    - CircuitBreaker: fail-fast wrapper state for the image host

Each service module ends with a module-level singleton that routes import.
No service calls another service; shared rules live in the policy and
helper modules.
"""
