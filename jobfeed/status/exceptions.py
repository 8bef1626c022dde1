"""Status store exceptions."""


class StateUpdateError(Exception):
    """Reading or writing the import status failed.

    Status reporting is best-effort: the pipeline logs this error and carries
    on rather than aborting an import.
    """
