class IceError(Exception):
    kind = "error"


class NotFoundError(IceError):
    kind = "not_found"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"no ICE mail named '{name}'")


class DuplicateNameError(IceError):
    kind = "duplicate_name"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"an ICE mail named '{name}' already exists")


class ValidationError(IceError):
    kind = "invalid"


class InvalidTriggerError(ValidationError):
    kind = "invalid_trigger"


class InvalidStateError(IceError):
    kind = "invalid_state"


class NotActiveError(InvalidStateError):
    kind = "not_active"


class ConfigError(IceError):
    kind = "config"


class StoreError(IceError):
    kind = "store"

    def __init__(self, path: object, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class StoreIOError(StoreError):
    kind = "store_io"


class CorruptStoreError(StoreError):
    kind = "store_corrupt"


class DeliveryError(IceError):
    kind = "delivery"

    def __init__(self, reason: str, transient: bool = True):
        self.reason = reason
        self.transient = transient
        label = "transient" if transient else "permanent"
        super().__init__(f"{reason} ({label})")
