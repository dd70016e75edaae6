# app/services/remote/notification.py
from app.core.errors import NotificationDeliveryError, ServiceError
from app.models.notification import Notification
from app.services.interfaces import NotificationService
from app.services.remote.transport import RemoteServiceClient


class HttpNotificationService(NotificationService):

    def __init__(self, remote: RemoteServiceClient):
        self.remote = remote

    async def send_notification(self, notification: Notification) -> None:
        try:
            await self.remote.call("POST", "/notifications", json=notification.model_dump(mode="json"))
        except ServiceError as exc:
            raise NotificationDeliveryError(
                f"Notification to user '{notification.user_id}' not delivered: {exc.detail}"
            ) from exc
