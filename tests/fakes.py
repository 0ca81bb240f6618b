from dormfix.errors import UpstreamError
from dormfix.schemas.ticket import Classification
from dormfix.services.classifier import ClassificationError, TicketClassifier


class FakeMediaGateway:
    """Records uploads and hands back deterministic URLs."""

    def __init__(self, fail_on: int | None = None):
        self.uploads: list[bytes] = []
        self.fail_on = fail_on

    async def upload(self, image_bytes: bytes) -> str:
        if self.fail_on is not None and len(self.uploads) + 1 == self.fail_on:
            raise UpstreamError("Image upload failed", "Media host returned 500")
        self.uploads.append(image_bytes)
        return f"https://res.cloudinary.com/demo/image/upload/dormfix/img{len(self.uploads)}.jpg"


class StubClassifier(TicketClassifier):
    """Real fallback handling, canned model answer."""

    def __init__(self, result: Classification | None = None, error: Exception | None = None):
        super().__init__(client=None, http=None, model="test-model")
        self.result = result
        self.error = error or (None if result else ClassificationError("Vision model is not configured"))
        self.calls: list[dict] = []

    async def analyze(self, image_url, building, room, user_note=None):
        self.calls.append({"image_url": image_url, "building": building, "room": room, "user_note": user_note})
        if self.error:
            raise self.error
        return self.result
