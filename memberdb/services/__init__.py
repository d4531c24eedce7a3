"""서비스 패키지 — 비즈니스 로직 계층.

Service package — Business logic layer.
Services call repositories and translate repository errors into HTTP errors;
routers commit the unit of work.
"""
