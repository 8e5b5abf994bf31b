"""
Typed errors raised by the business layer.

Every error carries the HTTP status the request boundary answers with, so the
presentation layer can translate them without inspecting messages.

    BackOfficeError (base)
    +-- ValidationError   400  missing/malformed field, field-level ``errors``
    +-- NotFoundError     404  referenced row does not exist
    +-- StateError        409  disallowed status transition
    +-- ConflictError     409  concurrent modification that could not be retried
"""


class BackOfficeError(Exception):
    status_code = 500

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.message = message
        self.errors = errors or {}

    def to_dict(self):
        payload = {'success': False, 'error': self.message}
        if self.errors:
            payload['errors'] = self.errors
        return payload


class ValidationError(BackOfficeError):
    status_code = 400

    @classmethod
    def for_field(cls, field, message):
        return cls(message, errors={field: message})


class NotFoundError(BackOfficeError):
    status_code = 404

    def __init__(self, entity, entity_id):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class StateError(BackOfficeError):
    status_code = 409


class ConflictError(BackOfficeError):
    status_code = 409
