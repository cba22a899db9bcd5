class ShopError(Exception):
    pass


class EmptyCartError(ShopError):
    def __init__(self, message: str = "cart is empty") -> None:
        super().__init__(message)


class PersistenceError(ShopError):
    """Store read/write failure; the original sqlite3 error is kept as __cause__."""


class NotFoundError(ShopError):
    def __init__(self, entity: str, entity_id: object) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class AuthError(ShopError):
    pass
