class PersistenceError(Exception):
    """Raised when contacts or job runs cannot be written to the database."""
