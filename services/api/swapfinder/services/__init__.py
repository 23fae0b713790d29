"""Business logic services.

Services contain all business logic and are called by routes:
- resolver / discovery / swap_cache: finding swaps for a product
- availability / enrichment / recipes: building the swaps response
- catalog / off_client: collaborators (PostgreSQL catalog, Open Food Facts)

Collaborators are passed in explicitly so tests can use in-memory fakes.
"""
