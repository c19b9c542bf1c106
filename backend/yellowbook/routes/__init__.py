"""
Yellow Book API: Routes Package
================================

Route Inventory:
    - yellow_books.py:  GET  /yellow-books           (list, ?q= search)
                        GET  /yellow-books/{id}      (single entry)
                        POST /yellow-books           (create)
    - health.py:        GET  /                       (service banner)
                        GET  /api/health             (liveness)
                        GET  /api/health/ready       (readiness)

Routes stay thin: they read the request, call EntryService with the
application's gateway, and set response headers.
"""
