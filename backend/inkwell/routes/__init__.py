# Routes package init
"""
Inkwell Backend: API Routes Package
====================================

Route Inventory:
    - posts.py:   POST/PUT/GET/DELETE /post   (post store)
    - github.py:  GET /github                 (recursive md/txt discovery)
    - health.py:  GET /health                 (service health check)

Routes stay thin: they pull data out of the request, call a service and
return its result. Errors are raised, never formatted here.
"""
