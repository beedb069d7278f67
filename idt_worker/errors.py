class WorkerError(Exception):
    """Base class for errors raised by the ingestion worker."""


class MalformedPayload(WorkerError):
    def __init__(self, reason: str):
        super().__init__(f"Malformed payload: {reason}")
        self.reason = reason


class SinkWriteFailure(WorkerError):
    def __init__(self, machine_id: str, reason: str):
        super().__init__(f"Sink write failed for machine {machine_id}: {reason}")
        self.machine_id = machine_id
        self.reason = reason
