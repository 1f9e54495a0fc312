from enum import StrEnum


class JobKind(StrEnum):
    odds = "odds"
    will_pays = "will_pays"
    results = "results"
    entries = "entries"


class JobStatus(StrEnum):
    pending = "pending"
    running = "running"
    completed = "completed"
    failed = "failed"


class WagerType(StrEnum):
    double = "double"
    pick_3 = "pick_3"
    pick_4 = "pick_4"
    pick_5 = "pick_5"
    pick_6 = "pick_6"


class HorseStatus(StrEnum):
    active = "active"
    scratched = "scratched"
    main_track_only = "main_track_only"


class Strategy(StrEnum):
    """Which extraction pass produced a record set."""

    structural = "structural"
    alternate_structure = "alternate_structure"
    text_pattern = "text_pattern"
    synthetic = "synthetic"
