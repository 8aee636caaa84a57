"""Domain errors raised by the storefront services.

Each error carries the HTTP status it maps to; the FastAPI app registers a
single handler for ``StoreError`` that renders ``{"detail": message}``.
"""


class StoreError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class OrderNotFound(StoreError):
    status_code = 404

    def __init__(self, payment_id: str):
        super().__init__(f"Order not found for paymentId: {payment_id}")
        self.payment_id = payment_id


class VinylNotFound(StoreError):
    status_code = 404

    def __init__(self, vinyl_id: str):
        super().__init__(f"Vinyl not found: {vinyl_id}")
        self.vinyl_id = vinyl_id


class OutOfStock(StoreError):
    status_code = 409

    def __init__(self, vinyl_id: str):
        super().__init__(f"Out of stock for vinyl: {vinyl_id}")
        self.vinyl_id = vinyl_id


class DuplicatePayment(StoreError):
    status_code = 409

    def __init__(self, payment_id: str):
        super().__init__(f"Payment already in use: {payment_id}")
        self.payment_id = payment_id


class EmptyCart(StoreError):
    status_code = 400

    def __init__(self, user_id: str):
        super().__init__("Cart is empty")
        self.user_id = user_id
