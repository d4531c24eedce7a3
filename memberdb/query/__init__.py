"""쿼리 구성 요소 — Finders, specifications, query by example and projections."""
