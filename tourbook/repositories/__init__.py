"""레포지토리 패키지 — 데이터베이스 쿼리 계층.

Repository package — Database query layer.
Each repository extends BaseRepository for generic CRUD and list queries
(driven by APIFeatures) and adds domain-specific queries: tour stats and
geo lookups, review rating recomputation, booked-tour lookups.
"""
