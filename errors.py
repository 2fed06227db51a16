class InventoryError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(InventoryError):
    status_code = 404


class ForbiddenError(InventoryError):
    status_code = 403


class ConflictError(InventoryError):
    status_code = 409


class BadRequestError(InventoryError):
    status_code = 400
