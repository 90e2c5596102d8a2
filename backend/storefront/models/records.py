from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class StoredRecord(db.Model):
    """
    One value of the durable keyed record store.

    The order collection and the auto-confirm policy are each stored as a
    single serialized value under a stable string key.

    CONCURRENCY: version_id is an optimistic lock. Every save issues
    UPDATE ... WHERE version_id = <version read>, so a writer that loaded
    the collection before someone else saved it fails with StaleDataError
    instead of silently overwriting the other writer's changes.
    """
    __tablename__ = "stored_records"

    key = db.Column(db.String(128), primary_key=True)
    value = db.Column(db.Text, nullable=True)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "value": self.value,
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
