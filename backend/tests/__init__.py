# Force SQLModel table registration at test discovery time
# This ensures the record table is registered before any test database creation
from tourney.models.stored_record import StoredRecord  # noqa: F401
