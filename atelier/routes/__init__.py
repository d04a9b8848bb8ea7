"""
Atelier Backend — API Routes Package
======================================

Route Inventory:
    - studio.py:    /api/studio/*             (zones, navigation state, actions, keys)
    - webhooks.py:  POST /api/webhooks/square (Square payment / refund events)
    - cron.py:      GET  /api/cron/*          (booking reminders, review requests, birthdays)
    - health.py:    GET  /health

Routes stay thin: pull data off the request, call a service, shape the response.
"""
