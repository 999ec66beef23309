"""Business rules for each entity, on top of a SQLAlchemy session."""
