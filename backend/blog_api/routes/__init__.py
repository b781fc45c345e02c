"""
Modern Blog API — Routes Package
==================================

Route Inventory:
    - posts.py:       GET/POST /api/posts, GET/PUT/DELETE /api/posts/{id},
                      POST /api/posts/{id}/comments
    - categories.py:  GET/POST /api/categories, DELETE /api/categories/{id}
    - auth.py:        POST /api/auth/register, POST /api/auth/login, GET /api/auth/me
    - upload.py:      POST /api/upload
    - health.py:      GET  /api/health

Routes only translate HTTP into service calls; rules live in services.
"""
