"""서비스 패키지 — 비즈니스 로직 계층.

Service package — Business logic layer.
Services enforce the business rules (ownership, uniqueness, password
lifecycle, payment) and call repositories for database work. Routers
commit the session after a service call succeeds.
"""
