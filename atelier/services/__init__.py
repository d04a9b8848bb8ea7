# Services package init
"""
Atelier Backend — Services Layer
==================================

What:  Business logic between the routes (HTTP) and the database.
How:   Class-based services with a module-level singleton each; routes call
       them with the request's AsyncSession and shape the result.

Service Inventory:
    - email_templates:  HTML bodies for reminders, birthday greetings, receipts
    - EmailService:     Resend delivery + sync_log audit (never raises)
    - SquareService:    webhook signature check, Orders API lookup with retries
    - SquareWebhookService: payment / refund event processing and linking
    - CronService:      booking reminders (24h / 48h) and birthday greetings

The studio navigation state machine is not a service: it lives in
atelier.studio and holds no database state.
"""
