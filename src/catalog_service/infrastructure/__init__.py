"""External systems: PostgreSQL, Redis, Tiendanube."""
