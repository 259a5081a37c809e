"""
Linite Backend — API Routes Package
====================================

Route Inventory:
    - generate.py:   POST /api/generate            (install commands)
                     POST /api/generate/script     (install script download)
    - uninstall.py:  POST /api/uninstall           (uninstall commands)
                     POST /api/uninstall/script    (uninstall script download)
    - health.py:     GET  /health                  (service health check)

Routes stay thin: parse the body, call the generator service, shape the
response. Errors propagate to the global handlers in main.py.
"""
