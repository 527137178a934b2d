"""
Order Domain Exceptions

Author: Kuantum Ticaret
Date: 2025-11-02
"""


class OrderError(Exception):
    """Base class for order lifecycle errors"""


class OrderNotFoundError(OrderError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class OrderTrashedError(OrderError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order {order_id} is in the trash")


class InvalidTransitionError(OrderError):
    def __init__(self, order_id: str, previous_status: str, new_status: str):
        self.order_id = order_id
        self.previous_status = previous_status
        self.new_status = new_status
        super().__init__(f"Order {order_id} cannot move from '{previous_status}' to '{new_status}'")


class OrderValidationError(OrderError):
    """Input rejected before any remote call"""


class OrderTransitionError(OrderError):
    """An atomic transition failed and was rolled back"""

    def __init__(self, order_id: str, message: str):
        self.order_id = order_id
        super().__init__(f"Transition of order {order_id} rolled back: {message}")
