class CareNotifyError(Exception):
    """Base class for errors raised by the notification engine."""


class NotFoundError(CareNotifyError):
    """A referenced patient, doctor, appointment, prescription, schedule or notification does not exist."""

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.capitalize()} with ID {entity_id} not found")


class PersistenceError(CareNotifyError):
    """The store could not read or write a record."""
