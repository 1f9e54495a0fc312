from pydantic import BaseModel


class IngestSummary(BaseModel):
    """Counts of what one ``ingest`` call did to the store."""

    upserted: int = 0
    dead_lettered: int = 0
    quarantined: int = 0

    def __iadd__(self, other: "IngestSummary") -> "IngestSummary":
        self.upserted += other.upserted
        self.dead_lettered += other.dead_lettered
        self.quarantined += other.quarantined
        return self
