"""Test helpers: canned images, an in-process image server and a fake clock."""

import httpx

PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR-fake"
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF-fake"

IMAGE_HOST = "https://images.test"
OK_URL = f"{IMAGE_HOST}/results/ok.png"
JPEG_URL = f"{IMAGE_HOST}/results/photo.jpg"
UNTYPED_URL = f"{IMAGE_HOST}/results/raw"
MISSING_URL = f"{IMAGE_HOST}/results/missing.png"
DOWN_URL = f"{IMAGE_HOST}/results/down.png"
HTML_URL = f"{IMAGE_HOST}/results/page.html"


class FakeClock:
    """Strictly increasing epoch-millisecond clock."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1_000) -> None:
        self.now = start
        self.step = step
        self.issued: list[int] = []

    def __call__(self) -> int:
        self.now += self.step
        self.issued.append(self.now)
        return self.now


class ImageServer:
    """MockTransport handler serving canned image responses.

    Attributes:
        requests: URLs requested so far, in order.
    """

    def __init__(self) -> None:
        self.requests: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)

        if url == MISSING_URL:
            return httpx.Response(404, text="not found")
        if url == DOWN_URL:
            raise httpx.ConnectError("connection refused", request=request)
        if url == HTML_URL:
            return httpx.Response(
                200,
                content=b"<html>error</html>",
                headers={"content-type": "text/html; charset=utf-8"},
            )
        if url == JPEG_URL:
            return httpx.Response(
                200,
                content=JPEG_BYTES,
                headers={"content-type": "image/jpeg; charset=binary"},
            )
        if url == UNTYPED_URL:
            return httpx.Response(200, content=PNG_BYTES)
        return httpx.Response(
            200, content=PNG_BYTES, headers={"content-type": "image/png"}
        )
