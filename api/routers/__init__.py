"""
API Routers - Organized endpoint handlers for the Grouping API.

Each router handles a specific domain:
- engine: Stateless partition generation, candidates and scoring
- scenarios: Scenario lifecycle (generate, reset, publish, archive)
"""
