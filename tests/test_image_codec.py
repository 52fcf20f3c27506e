import base64
import io
import random
from pathlib import Path

import pytest
import requests
from PIL import Image

from memestamp.decoders import image_codec
from memestamp.decoders.image_codec import decode_image, encode_image, strip_data_url
from memestamp.errors import DecodeError, EncodeError, ValidationError


def _png_bytes(size=(32, 16), color=(10, 120, 200, 255)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", size, color=color).save(buffer, format="PNG")
    return buffer.getvalue()


class _FakeResponse:
    def __init__(self, content: bytes, status_code: int = 200) -> None:
        self.content = content
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


def test_decode_data_url_returns_rgba_surface() -> None:
    source = "data:image/png;base64," + base64.b64encode(_png_bytes()).decode("ascii")

    surface = decode_image(source)

    assert surface.mode == "RGBA"
    assert surface.size == (32, 16)
    assert surface.getpixel((0, 0)) == (10, 120, 200, 255)


def test_decode_accepts_bare_base64_payload() -> None:
    payload = base64.b64encode(_png_bytes(size=(5, 7))).decode("ascii")

    assert decode_image(payload).size == (5, 7)


def test_decode_tolerates_jpeg() -> None:
    buffer = io.BytesIO()
    Image.new("RGB", (20, 10), color="#FF0000").save(buffer, format="JPEG")
    source = "data:image/jpeg;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")

    surface = decode_image(source)

    assert surface.mode == "RGBA"
    assert surface.size == (20, 10)


def test_decode_local_path_when_allowed(tmp_path: Path) -> None:
    path = tmp_path / "base.png"
    path.write_bytes(_png_bytes(size=(9, 4)))

    assert decode_image(path, allow_local_paths=True).size == (9, 4)
    assert decode_image(str(path), allow_local_paths=True).size == (9, 4)


def test_decode_refuses_local_path_by_default(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "secret.png"
    path.write_bytes(_png_bytes(size=(9, 4)))
    reads = []
    monkeypatch.setattr(image_codec, "_read_local", lambda p: reads.append(p) or b"")

    with pytest.raises(ValidationError):
        decode_image(str(path))
    with pytest.raises(ValidationError):
        decode_image(path)
    assert reads == []


def test_decode_missing_local_path_is_a_decode_error_when_allowed(tmp_path: Path) -> None:
    with pytest.raises(DecodeError):
        decode_image(str(tmp_path / "missing.png"), allow_local_paths=True)


def _noisy_png_base64_with_long_segment() -> str:
    # Needs a "/"-free run longer than NAME_MAX (255) so the path check would hit ENAMETOOLONG.
    for seed in range(500):
        rng = random.Random(seed)
        noise = Image.frombytes("RGBA", (16, 16), bytes(rng.randrange(256) for _ in range(16 * 16 * 4)))
        buffer = io.BytesIO()
        noise.save(buffer, format="PNG")
        payload = base64.b64encode(buffer.getvalue()).decode("ascii")
        if max(len(segment) for segment in payload.split("/")) > 255:
            return payload
    pytest.skip("no noise image produced a long enough base64 segment")


@pytest.mark.parametrize("allow_local_paths", [False, True])
def test_decode_long_bare_base64_is_not_mistaken_for_a_path(allow_local_paths) -> None:
    payload = _noisy_png_base64_with_long_segment()
    assert len(payload) < 4096

    assert decode_image(payload, allow_local_paths=allow_local_paths).size == (16, 16)


def test_decode_rejects_non_image_payload() -> None:
    source = "data:image/png;base64," + base64.b64encode(b"not-a-real-image").decode("ascii")

    with pytest.raises(DecodeError):
        decode_image(source)


def test_decode_rejects_invalid_base64() -> None:
    with pytest.raises(DecodeError):
        decode_image("data:image/png;base64,@@@not base64@@@")


def test_decode_remote_url_forwards_caller_timeout(monkeypatch) -> None:
    calls = []

    def _fake_get(url, timeout=None):
        calls.append((url, timeout))
        return _FakeResponse(_png_bytes(size=(3, 3)))

    monkeypatch.setattr(image_codec.requests, "get", _fake_get)

    assert decode_image("https://example.test/a.png").size == (3, 3)
    assert decode_image("https://example.test/b.png", timeout=2.5).size == (3, 3)
    assert calls == [("https://example.test/a.png", None), ("https://example.test/b.png", 2.5)]


def test_decode_remote_failures_raise_decode_error(monkeypatch) -> None:
    def _unreachable(url, timeout=None):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(image_codec.requests, "get", _unreachable)
    with pytest.raises(DecodeError) as exc_info:
        decode_image("http://example.test/missing.png")
    assert "connection refused" in str(exc_info.value)

    monkeypatch.setattr(image_codec.requests, "get", lambda url, timeout=None: _FakeResponse(b"", 404))
    with pytest.raises(DecodeError):
        decode_image("http://example.test/missing.png")


def test_encode_is_deterministic_png_data_url() -> None:
    surface = Image.new("RGBA", (12, 12), color=(1, 2, 3, 255))

    first = encode_image(surface)
    second = encode_image(surface)

    assert first == second
    assert first.startswith("data:image/png;base64,")
    assert decode_image(first).getpixel((5, 5)) == (1, 2, 3, 255)


def test_encode_rejects_unknown_format() -> None:
    with pytest.raises(EncodeError):
        encode_image(Image.new("RGBA", (2, 2)), fmt="bmp")


def test_strip_data_url_leaves_bare_payload_untouched() -> None:
    assert strip_data_url("data:image/jpeg;base64,QUJD") == "QUJD"
    assert strip_data_url("QUJD") == "QUJD"
