# isovault/domain/exceptions.py


class IsoVaultError(Exception):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class MessageFormatError(IsoVaultError):
    """XML estructuralmente inválido, corresponde a un 400"""

    def __init__(self, message: str = "invalid XML"):
        super().__init__(message)


class FieldValidationError(IsoVaultError):
    """Campo ISO ausente o inválido, corresponde a un 400"""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class MissingFieldError(FieldValidationError):
    def __init__(self, field: str):
        super().__init__(field, f"Missing required field: {field}")


class InvalidFieldError(FieldValidationError):
    def __init__(self, field: str, reason: str):
        self.reason = reason
        super().__init__(field, f"Invalid field {field}: {reason}")


class DecryptionError(IsoVaultError):
    """El PAN almacenado no se puede descifrar, corresponde a un 500"""


class StoreError(IsoVaultError):
    """Fallo de persistencia, corresponde a un 503"""


class RecordNotFound(IsoVaultError):
    """Id inexistente, corresponde a un 404"""

    def __init__(self, record_id: int):
        self.record_id = record_id
        super().__init__(f"Message {record_id} not found.")
