"""
Notification Repository - insert-only access to the notifications table
"""
from kuantum_admin.core.table_store import TableStore
from kuantum_admin.domain.notification import Notification

NOTIFICATIONS_TABLE = "notifications"


class NotificationRepository:

    def __init__(self, store: TableStore):
        self.store = store

    def create(self, user_id: str, message: str) -> Notification:
        row = self.store.insert(NOTIFICATIONS_TABLE, {
            'user_id': user_id,
            'message': message,
            'read': False,
        })
        return Notification(**row)
