"""
Services Layer

Pure bracket logic plus the one stateful service that persists it:
- seeding / bracket_topology / progression_engine / tournament_queries accept a
  Tournament (or teams) and return new values; they never touch storage
- tournament_service serialises calls per tournament and writes through the
  record store
- Nothing here depends on HTTP request/response objects
"""
