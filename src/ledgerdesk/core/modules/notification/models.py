from pydantic import BaseModel, Field


class PushNotification(BaseModel):
    """Push message addressed to one device registration token."""

    token: str = Field(..., min_length=1, description="FCM device registration token")
    title: str = Field(..., min_length=1, description="Notification title")
    body: str = Field(..., description="Notification body text")
    data: dict[str, str] = Field(default_factory=dict, description="Extra key/value payload for the client app")


class PushResult(BaseModel):
    success: bool = Field(..., description="Whether the provider accepted the message")
    message_id: str = Field(..., description="Provider message ID")
