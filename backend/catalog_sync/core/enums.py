from enum import Enum, unique


@unique
class ReconcileStage(str, Enum):
    FETCHING = "fetching"
    NORMALIZING = "normalizing"
    INDEX_BUILD = "index_build"
    FILTER = "filter"
    INSERT = "insert"
    DONE = "done"


@unique
class FailureKind(str, Enum):
    TRANSIENT = "transient"
    FATAL = "fatal"
